"""Nursery scenario: a crying baby, then a car horn outside."""
from __future__ import annotations

from hearo.simulation.event_player import AudioEvent, Scenario


def build_scenario() -> Scenario:
    events = [
        AudioEvent("baby_cry", start_s=6.0, duration_s=5.0, amplitude=0.7),
        AudioEvent("car_horn", start_s=22.0, duration_s=3.0, amplitude=0.8),
    ]
    return Scenario(name="nursery", length_s=32.0, noise_level=0.02, events=events, seed=2)
