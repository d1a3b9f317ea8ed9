"""Scenario and event simulation utilities."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

import numpy as np

from hearo.audio.features import sine_mix
from hearo.audio.sources import ArraySource
from hearo.utils.constants import AUDIO, CAPTURE, TONE


@dataclass
class AudioEvent:
    label: str
    start_s: float
    duration_s: float
    amplitude: float = 0.8


@dataclass
class Scenario:
    name: str
    length_s: float
    noise_level: float
    events: List[AudioEvent] = field(default_factory=list)
    seed: int = 0


class EventPlayer:
    """Synthesizes a scenario: seeded noise plus each event's signature tones."""

    def __init__(
        self,
        scenario: Scenario,
        sample_rate: int = AUDIO.sample_rate,
        signatures: Mapping[str, Sequence[float]] | None = None,
    ) -> None:
        self.scenario = scenario
        self.sample_rate = sample_rate
        self.signatures = dict(signatures or TONE.signatures)
        self.timeline = self._synthesize()

    @property
    def duration_s(self) -> float:
        return len(self.timeline) / self.sample_rate

    def _synthesize(self) -> np.ndarray:
        num_samples = int(self.scenario.length_s * self.sample_rate)
        rng = np.random.default_rng(self.scenario.seed)
        timeline = rng.normal(scale=self.scenario.noise_level, size=num_samples).astype(np.float32)
        for event in self.scenario.events:
            if event.label not in self.signatures:
                raise ValueError(f"No tone signature for {event.label}")
            start = int(event.start_s * self.sample_rate)
            length = int(event.duration_s * self.sample_rate)
            end = min(start + length, num_samples)
            if end <= start:
                continue
            waveform = sine_mix(self.signatures[event.label], length, self.sample_rate, event.amplitude)
            waveform *= np.hanning(length).astype(np.float32)
            timeline[start:end] += waveform[: end - start]
        return timeline

    def source(self, interval_s: float = CAPTURE.interval_s, chunk_size: int = AUDIO.chunk_size) -> ArraySource:
        return ArraySource(self.timeline, sample_rate=self.sample_rate, chunk_size=chunk_size, interval_s=interval_s)

    def event_schedule(self) -> Dict[str, List[float]]:
        schedule: Dict[str, List[float]] = {}
        for event in self.scenario.events:
            schedule.setdefault(event.label, []).append(event.start_s)
        return schedule
