"""Audible channel: a short decaying sine tone whose pitch tracks severity."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np

from hearo.audio.features import sine_mix
from hearo.system.channels import NotificationChannel, coerce_severity, for_severity
from hearo.system.models import Severity

TONE_FREQUENCIES: Dict[Severity, float] = {
    Severity.CRITICAL: 800.0,
    Severity.HIGH: 600.0,
    Severity.MEDIUM: 400.0,
    Severity.LOW: 300.0,
}
TONE_DURATION_S = 0.5
GAIN_START = 0.1
GAIN_END = 0.01
PLAYBACK_RATE = 44100


def tone_waveform(
    frequency: float,
    duration_s: float = TONE_DURATION_S,
    sample_rate: int = PLAYBACK_RATE,
    gain_start: float = GAIN_START,
    gain_end: float = GAIN_END,
) -> np.ndarray:
    length = max(1, int(duration_s * sample_rate))
    envelope = np.geomspace(gain_start, gain_end, num=length).astype(np.float32)
    return sine_mix([frequency], length, sample_rate) * envelope


def _play_with_sounddevice(wave: np.ndarray, sample_rate: int) -> None:
    import sounddevice as sd

    sd.play(wave, sample_rate)  # non-blocking


@dataclass
class AudibleToneChannel(NotificationChannel):
    frequencies: Dict[Severity, float] = field(default_factory=lambda: dict(TONE_FREQUENCIES))
    duration_s: float = TONE_DURATION_S
    sample_rate: int = PLAYBACK_RATE
    player: Optional[Callable[[np.ndarray, int], None]] = None
    enabled: bool = True
    history: List[Severity] = field(default_factory=list)

    name = "audible"

    def frequency_for(self, severity: Severity | str) -> float:
        return for_severity(self.frequencies, severity)

    def trigger(self, severity: Severity | str) -> bool:
        wave = tone_waveform(self.frequency_for(severity), self.duration_s, self.sample_rate)
        play = self.player or _play_with_sounddevice
        play(wave, self.sample_rate)
        self.history.append(coerce_severity(severity))
        return True
