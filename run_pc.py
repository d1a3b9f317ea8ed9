from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from pathlib import Path

from hearo import get_version
from hearo.audio.sources import MicSource
from hearo.config import load_config
from hearo.model.discovery import Backend, build_classifier, discover_backends
from hearo.system.channels import build_channels
from hearo.system.dispatcher import AlertDispatcher
from hearo.system.errors import AcquisitionError
from hearo.system.history import HistoryStore
from hearo.system.monitor import SoundMonitor
from hearo.system.state import AppState
from hearo.system.udp_mirror import UdpAlertMirror
from hearo.system.visual import PygameFlashSurface, VisualFlashChannel
from hearo.utils.log import setup_logging

LOGGER = logging.getLogger("hearo.run_pc")


def main() -> int:
    parser = argparse.ArgumentParser(description="Listen on the microphone and dispatch sound alerts.")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument("--remote_url", default=None, help="Remote classifier base URL")
    parser.add_argument("--model_path", default=None, help="Path to TFLite model")
    parser.add_argument("--interval", type=float, default=None, help="Capture interval in seconds")
    parser.add_argument("--device", default=None, help="Input device index or name")
    parser.add_argument("--flash", action="store_true", help="Flash a pygame window on alerts")
    parser.add_argument("--log_file", type=Path, default=None)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ValueError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2
    overrides = {
        "remote_url": args.remote_url,
        "model_path": args.model_path,
        "capture_interval_s": args.interval,
    }
    config = dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})
    setup_logging(config.log_level, log_file=args.log_file, debug=args.debug)
    LOGGER.info("Hearo %s starting", get_version())

    backends = discover_backends(config)
    classifier = build_classifier(backends, config)
    history = HistoryStore(config.history_capacity)
    app_state = AppState(history=history, backends=frozenset(b.value for b in backends))

    visual = VisualFlashChannel(surface=PygameFlashSurface()) if args.flash else None
    channels = build_channels(config.channels, visual=visual)
    mirrors = [UdpAlertMirror(config.mirror_host, config.mirror_port)] if config.mirror_host else []
    dispatcher = AlertDispatcher(history, channels=channels, mirrors=mirrors)

    if Backend.MICROPHONE not in backends:
        LOGGER.warning("No input device reported; trying the default device anyway")
    device = int(args.device) if args.device and args.device.isdigit() else args.device
    source = MicSource(sample_rate=config.sample_rate, device=device)
    monitor = SoundMonitor(source, classifier, dispatcher, config=config, app_state=app_state)

    done = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: done.set())
    signal.signal(signal.SIGTERM, lambda *_: done.set())

    try:
        monitor.start()
    except AcquisitionError as exc:
        print(f"Unable to access microphone: {exc}", file=sys.stderr)
        return 1

    print("Listening... Ctrl+C to stop")
    while not done.wait(0.5):
        if monitor.wait(0):
            break
    monitor.stop(timeout=config.window_timeout_s)
    classifier.close()

    for alert in history.recent():
        print(f"#{alert.id:<3} {alert.label:15s} {alert.severity.value:8s} {alert.location:12s} {alert.confidence:.2f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
