"""Runtime configuration: defaults from constants, overrides from JSON."""
from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from hearo.utils.constants import AUDIO, CAPTURE, HISTORY, MODEL, POLICY

LOGGER = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ChannelToggles:
    visual: bool = True
    haptic: bool = True
    audible: bool = True


@dataclass
class AppConfig:
    sample_rate: int = AUDIO.sample_rate
    window_samples: int = AUDIO.window_samples
    capture_interval_s: float = CAPTURE.interval_s
    activity_threshold: float = CAPTURE.activity_threshold
    classify_timeout_s: float = CAPTURE.classify_timeout_s
    window_timeout_s: float = CAPTURE.window_timeout_s
    max_workers: int = CAPTURE.max_workers
    min_confidence: float = POLICY.min_confidence
    cooldown_s: float = POLICY.cooldown_s
    history_capacity: int = HISTORY.capacity
    remote_url: Optional[str] = None
    model_path: str = MODEL.model_path
    mirror_host: Optional[str] = None
    mirror_port: int = 5005
    log_level: str = "INFO"
    channels: ChannelToggles = field(default_factory=ChannelToggles)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        data = dict(data)
        channels = ChannelToggles(**data.pop("channels", {}))
        return cls(channels=channels, **data)


def get_default_config() -> Dict[str, Any]:
    return AppConfig().to_dict()


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate configuration structure and values."""
    defaults = get_default_config()
    for key in config:
        if key not in defaults:
            return False, f"Unknown config key: {key}"
    if not isinstance(config.get("channels"), dict):
        return False, "channels must be an object"
    for key in config["channels"]:
        if key not in defaults["channels"]:
            return False, f"Unknown channel: {key}"
    for key, value in config["channels"].items():
        if not isinstance(value, bool):
            return False, f"channels.{key} must be true or false"

    for key in ("sample_rate", "window_samples", "max_workers", "history_capacity"):
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            return False, f"{key} must be a positive integer"
    for key in ("capture_interval_s", "classify_timeout_s", "window_timeout_s"):
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            return False, f"{key} must be a non-negative number"
    if config["window_timeout_s"] < config["classify_timeout_s"]:
        return False, "window_timeout_s must be at least classify_timeout_s"
    for key in ("activity_threshold", "min_confidence"):
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
            return False, f"{key} must be within [0, 1]"
    cooldown = config.get("cooldown_s")
    if isinstance(cooldown, bool) or not isinstance(cooldown, (int, float)) or cooldown < 0:
        return False, "cooldown_s must be a non-negative number"
    port = config.get("mirror_port")
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        return False, "mirror_port must be a valid UDP port"
    if str(config.get("log_level", "")).upper() not in LOG_LEVELS:
        return False, f"log_level must be one of {', '.join(LOG_LEVELS)}"
    return True, None


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration from a JSON file, merged over the defaults.

    A missing file yields the defaults. Invalid JSON or values raise
    ValueError.
    """
    defaults = get_default_config()
    if config_path is None:
        return AppConfig.from_dict(defaults)

    config_path = Path(config_path)
    if not config_path.exists():
        LOGGER.info("Config file %s not found, using defaults", config_path)
        return AppConfig.from_dict(defaults)

    try:
        with config_path.open(encoding="utf-8") as fh:
            overrides = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {config_path}: {exc}") from exc
    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    merged = _deep_merge(defaults, overrides)
    ok, message = validate_config(merged)
    if not ok:
        raise ValueError(f"Invalid config {config_path}: {message}")
    return AppConfig.from_dict(merged)
