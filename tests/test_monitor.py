import threading
import time

import numpy as np
import pytest

from hearo.audio.sources import ArraySource
from hearo.model.classifier import Classifier
from hearo.system.dispatcher import AlertDispatcher
from hearo.system.errors import AcquisitionError
from hearo.system.history import HistoryStore
from hearo.system.monitor import SoundMonitor
from hearo.system.state import AppState, MonitorState, Screen
from tests.fakes import (
    BLOCK,
    SAMPLE_RATE,
    DeniedSource,
    EndlessSource,
    ScriptedClassifier,
    fast_config,
    level_blocks,
)

LABELS = {0.5: "doorbell", 0.6: "fire_alarm", 0.7: "baby_cry"}


def block_source(levels) -> ArraySource:
    return ArraySource(
        level_blocks(levels), sample_rate=SAMPLE_RATE, chunk_size=1000, interval_s=BLOCK / SAMPLE_RATE
    )


def build(source, classifier, **overrides):
    history = HistoryStore(10)
    app_state = AppState(history=history)
    dispatcher = AlertDispatcher(history)
    monitor = SoundMonitor(source, classifier, dispatcher, config=fast_config(**overrides), app_state=app_state)
    return monitor, history, app_state


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class BlockingClassifier(Classifier):
    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    def predict(self, window):
        self.started.set()
        self.release.wait(5.0)
        return "fire_alarm", 0.95


def test_alerts_follow_capture_order_not_completion_order():
    classifier = ScriptedClassifier(LABELS, delays={0.5: 0.3})
    monitor, history, _ = build(block_source([0.5, 0.6]), classifier)
    monitor.run()

    assert classifier.completed == [0.6, 0.5]
    assert [a.label for a in history.recent()] == ["fire_alarm", "doorbell"]
    assert [a.id for a in history.recent()] == [2, 1]
    assert monitor.state is MonitorState.STOPPED


def test_quiet_windows_are_not_classified():
    classifier = ScriptedClassifier(LABELS)
    monitor, history, app_state = build(block_source([0.0, 0.01, 0.5]), classifier)
    monitor.run()

    assert monitor.windows_captured == 3
    assert monitor.windows_submitted == 1
    assert classifier.completed == [0.5]
    assert [a.label for a in history.recent()] == ["doorbell"]
    assert app_state.audio_level > 0


def test_stuck_window_is_abandoned_after_timeout():
    classifier = ScriptedClassifier(LABELS, delays={0.5: 0.6})
    monitor, history, _ = build(block_source([0.5, 0.6]), classifier, window_timeout_s=0.1)
    started = time.monotonic()
    monitor.run()

    assert time.monotonic() - started < 0.5
    assert [a.label for a in history.recent()] == ["fire_alarm"]


def test_failed_window_does_not_stop_the_loop():
    classifier = ScriptedClassifier(LABELS, failures=[0.5])
    monitor, history, _ = build(block_source([0.5, 0.6, 0.7]), classifier)
    monitor.run()
    assert [a.label for a in history.recent()] == ["baby_cry", "fire_alarm"]


class FlakySource(ArraySource):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = 0

    def drain(self):
        self.calls += 1
        if self.calls == 2:
            raise OSError("input overflow")
        return super().drain()


def test_loop_recovers_from_a_failed_capture():
    source = FlakySource(level_blocks([0.5, 0.6]), sample_rate=SAMPLE_RATE, chunk_size=1000, interval_s=0.25)
    monitor, history, _ = build(source, ScriptedClassifier(LABELS))
    monitor.run()
    assert source.calls == 3
    assert [a.label for a in history.recent()] == ["fire_alarm", "doorbell"]


def test_low_confidence_and_cooldown_suppress_alerts():
    low = ScriptedClassifier(LABELS, confidence=0.3)
    monitor, history, _ = build(block_source([0.5, 0.6]), low)
    monitor.run()
    assert history.recent() == []

    monitor, history, _ = build(block_source([0.5, 0.5, 0.5]), ScriptedClassifier(LABELS), cooldown_s=0.5)
    monitor.run()
    assert len(history) == 2


def test_critical_alert_switches_to_emergency_screen():
    seen = []
    history = HistoryStore()
    app_state = AppState(history=history)
    monitor = SoundMonitor(
        block_source([0.6]),
        ScriptedClassifier(LABELS),
        AlertDispatcher(history),
        config=fast_config(),
        app_state=app_state,
        location_provider=lambda label: "Kitchen",
        on_alert=lambda alert, at: seen.append((alert.label, at)),
    )
    monitor.run()

    assert app_state.screen is Screen.EMERGENCY
    assert history.recent()[0].location == "Kitchen"
    assert seen == [("fire_alarm", 0.25)]
    assert app_state.listening is False


def test_broken_location_sensor_falls_back_to_default():
    def sensor(label):
        raise RuntimeError("sensor offline")

    history = HistoryStore()
    monitor = SoundMonitor(
        block_source([0.5]),
        ScriptedClassifier(LABELS),
        AlertDispatcher(history),
        config=fast_config(),
        location_provider=sensor,
    )
    monitor.run()
    assert history.recent()[0].location == "Front Door"


def test_acquisition_failure_is_reported():
    monitor, history, app_state = build(DeniedSource(), ScriptedClassifier(LABELS))
    with pytest.raises(AcquisitionError):
        monitor.start()
    assert monitor.state is MonitorState.STOPPED
    assert app_state.listening is False
    assert app_state.last_error == "permission denied"
    assert history.recent() == []


def test_monitor_cannot_start_twice():
    monitor, _, _ = build(block_source([0.5]), ScriptedClassifier(LABELS))
    monitor.run()
    with pytest.raises(RuntimeError):
        monitor.run()


def test_no_history_changes_after_stop():
    source = EndlessSource(level=0.5)
    monitor, history, app_state = build(source, ScriptedClassifier(LABELS), capture_interval_s=0.01)
    monitor.start()
    assert app_state.listening is True
    assert wait_for(lambda: len(history) >= 2)

    monitor.stop(timeout=2.0)
    frozen = history.snapshot()
    time.sleep(0.2)

    assert history.snapshot() is frozen
    assert monitor.state is MonitorState.STOPPED
    assert source.closed
    assert app_state.listening is False
    assert monitor.wait(0)


def test_stop_discards_in_flight_classification():
    classifier = BlockingClassifier()
    monitor, history, _ = build(EndlessSource(level=0.5), classifier, capture_interval_s=0.01)
    monitor.start()
    assert classifier.started.wait(2.0)

    monitor.stop(timeout=2.0)
    classifier.release.set()
    time.sleep(0.1)

    assert history.recent() == []
    assert monitor.in_flight == 0


def test_capture_clock_counts_samples():
    monitor, _, _ = build(block_source([0.0, 0.0]), ScriptedClassifier(LABELS))
    monitor.run()
    assert monitor.capture_time == pytest.approx(0.5)
    assert np.isclose(monitor.capture_time * SAMPLE_RATE, 2 * BLOCK)
