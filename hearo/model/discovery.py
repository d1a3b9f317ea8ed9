"""Capability discovery: which classification and input backends are usable."""
from __future__ import annotations

import importlib.util
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Optional

import httpx

from hearo.config import AppConfig
from hearo.model.classifier import Classifier, FallbackClassifier, ToneClassifier
from hearo.model.remote import RemoteClassifier

LOGGER = logging.getLogger(__name__)


class Backend(str, Enum):
    REMOTE = "remote"
    TFLITE = "tflite"
    TONE = "tone"
    MICROPHONE = "microphone"


def _probe_remote(config: AppConfig, client: Optional[httpx.Client] = None) -> bool:
    if not config.remote_url:
        return False
    url = f"{config.remote_url.rstrip('/')}/health"
    try:
        if client is not None:
            response = client.get(url)
        else:
            response = httpx.get(url, timeout=config.classify_timeout_s)
    except httpx.HTTPError as exc:
        LOGGER.debug("Remote backend probe failed: %s", exc)
        return False
    return response.is_success


def _probe_tflite(config: AppConfig) -> bool:
    return importlib.util.find_spec("tensorflow") is not None and Path(config.model_path).is_file()


def _probe_microphone(config: AppConfig) -> bool:
    try:
        import sounddevice as sd

        sd.query_devices(kind="input")
    except (OSError, ValueError) as exc:
        LOGGER.debug("Microphone probe failed: %s", exc)
        return False
    return True


def discover_backends(
    config: AppConfig,
    client: Optional[httpx.Client] = None,
    probes: Optional[Dict[Backend, Callable[[AppConfig], bool]]] = None,
) -> FrozenSet[Backend]:
    """Probe every backend and return the set that is available right now."""
    checks: Dict[Backend, Callable[[AppConfig], bool]] = {
        Backend.REMOTE: lambda cfg: _probe_remote(cfg, client),
        Backend.TFLITE: _probe_tflite,
        Backend.TONE: lambda cfg: True,
        Backend.MICROPHONE: _probe_microphone,
    }
    if probes:
        checks.update(probes)
    available = set()
    for backend, check in checks.items():
        try:
            ok = check(config)
        except Exception:
            LOGGER.exception("Probe for %s backend raised", backend.value)
            ok = False
        if ok:
            available.add(backend)
    LOGGER.info("Available backends: %s", ", ".join(sorted(b.value for b in available)) or "none")
    return frozenset(available)


def build_classifier(
    backends: FrozenSet[Backend],
    config: AppConfig,
    client: Optional[httpx.Client] = None,
) -> Classifier:
    """Pick the best local classifier, fronted by the remote one when reachable."""
    local: Classifier
    if Backend.TFLITE in backends:
        from hearo.model.infer import TFLiteClassifier

        local = TFLiteClassifier(config.model_path, sample_rate=config.sample_rate)
    else:
        local = ToneClassifier(sample_rate=config.sample_rate)
    if Backend.REMOTE in backends and config.remote_url:
        remote = RemoteClassifier(
            config.remote_url,
            timeout_s=config.classify_timeout_s,
            sample_rate=config.sample_rate,
            client=client,
        )
        return FallbackClassifier(remote, local, timeout_s=config.classify_timeout_s)
    return local
