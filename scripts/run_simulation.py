"""Run Hearo scenario simulations."""
from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path

from hearo.config import load_config
from hearo.simulation.indoor import build_scenario as indoor_scenario
from hearo.simulation.kitchen_fire import build_scenario as kitchen_fire_scenario
from hearo.simulation.nursery import build_scenario as nursery_scenario
from hearo.simulation.replay import replay
from hearo.system.channels import build_channels
from hearo.utils.log import setup_logging

SCENARIOS = {
    "indoor": indoor_scenario,
    "nursery": nursery_scenario,
    "kitchen_fire": kitchen_fire_scenario,
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Run Hearo simulations.")
    parser.add_argument("scenario", choices=SCENARIOS.keys(), help="Scenario name")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument("--realtime", action="store_true", help="Capture on the wall clock")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(config.log_level, debug=args.debug)
    # Simulated runs stay off the speakers.
    config = dataclasses.replace(config, channels=dataclasses.replace(config.channels, audible=False))

    channels = build_channels(config.channels)
    result = replay(SCENARIOS[args.scenario](), config, channels=channels, realtime=args.realtime)
    for alert in result.alerts:
        print(f"#{alert.id:<3} {alert.label:15s} {alert.category.value:10s} {alert.severity.value:8s} {alert.location}")
    print(f"Latency summary: {result.summary()}")
    print(f"Missed events: {result.misses}")
    print(f"False alerts: {result.false_alerts}")


if __name__ == "__main__":
    main()
