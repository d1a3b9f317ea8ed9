"""Replay a scenario through the full capture and dispatch pipeline."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from hearo.config import AppConfig
from hearo.model.classifier import Classifier, ToneClassifier
from hearo.simulation.event_player import EventPlayer, Scenario
from hearo.system.channels import NotificationChannel
from hearo.system.dispatcher import AlertDispatcher
from hearo.system.history import HistoryStore
from hearo.system.models import Alert
from hearo.system.monitor import SoundMonitor
from hearo.system.state import AppState


@dataclass
class ReplayResult:
    alerts: List[Alert]
    latencies: Dict[str, List[float]]
    misses: Dict[str, int]
    false_alerts: int = 0
    app_state: Optional[AppState] = field(default=None, repr=False)

    def summary(self) -> Dict[str, float]:
        return {label: float(np.mean(values)) for label, values in self.latencies.items() if values}


def replay(
    scenario: Scenario,
    config: Optional[AppConfig] = None,
    classifier: Optional[Classifier] = None,
    channels: Sequence[NotificationChannel] = (),
    realtime: bool = False,
) -> ReplayResult:
    """Run *scenario* through a SoundMonitor and score alerts against its schedule.

    Unless *realtime*, the capture cadence is simulated: each tick consumes
    one interval of audio without sleeping. Alerts are returned oldest first.
    """
    config = config or AppConfig()
    player = EventPlayer(scenario, sample_rate=config.sample_rate)
    source = player.source(interval_s=config.capture_interval_s)
    run_config = config if realtime else dataclasses.replace(config, capture_interval_s=0.0)

    history = HistoryStore(max(config.history_capacity, len(scenario.events) * 4))
    app_state = AppState(history=history)
    dispatched: List[Tuple[Alert, float]] = []
    monitor = SoundMonitor(
        source,
        classifier or ToneClassifier(sample_rate=config.sample_rate),
        AlertDispatcher(history, channels=channels),
        config=run_config,
        app_state=app_state,
        on_alert=lambda alert, at: dispatched.append((alert, at)),
    )
    monitor.run()

    schedule = {label: sorted(times) for label, times in player.event_schedule().items()}
    durations = {event.label: event.duration_s for event in scenario.events}
    seen = {label: [False] * len(times) for label, times in schedule.items()}
    latencies: Dict[str, List[float]] = {label: [] for label in schedule}
    false_alerts = 0
    for alert, at in dispatched:
        matched = False
        for idx, start in enumerate(schedule.get(alert.label, [])):
            if seen[alert.label][idx]:
                continue
            if start <= at <= start + durations[alert.label] + config.capture_interval_s:
                latencies[alert.label].append(at - start)
                seen[alert.label][idx] = True
                matched = True
                break
        if not matched:
            false_alerts += 1
    misses = {label: flags.count(False) for label, flags in seen.items()}
    return ReplayResult(
        alerts=[alert for alert, _ in dispatched],
        latencies=latencies,
        misses=misses,
        false_alerts=false_alerts,
        app_state=app_state,
    )
