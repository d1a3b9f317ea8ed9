"""Kitchen fire: the fire alarm sounds, then the smoke detector joins in."""
from __future__ import annotations

from hearo.simulation.event_player import AudioEvent, Scenario


def build_scenario() -> Scenario:
    events = [
        AudioEvent("fire_alarm", start_s=3.0, duration_s=6.0, amplitude=1.0),
        AudioEvent("smoke_detector", start_s=14.0, duration_s=6.0, amplitude=0.9),
    ]
    return Scenario(name="kitchen_fire", length_s=24.0, noise_level=0.02, events=events, seed=3)
