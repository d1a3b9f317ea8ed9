"""Indoor apartment scenario."""
from __future__ import annotations

from hearo.simulation.event_player import AudioEvent, Scenario


def build_scenario() -> Scenario:
    events = [
        AudioEvent("doorbell", start_s=5.0, duration_s=3.0, amplitude=0.9),
        AudioEvent("phone_ring", start_s=20.0, duration_s=4.0, amplitude=0.6),
    ]
    return Scenario(name="indoor", length_s=35.0, noise_level=0.01, events=events, seed=1)
