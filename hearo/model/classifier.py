"""Classifier port and the local, deterministic tone classifier."""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Dict, Mapping, Sequence, Tuple

import numpy as np

from hearo.audio.features import band_energy_ratio, power_spectrum
from hearo.system.errors import ClassifierUnavailable
from hearo.system.models import Classification, Source
from hearo.utils.constants import AUDIO, CAPTURE, TONE

LOGGER = logging.getLogger(__name__)


class Classifier(ABC):
    """Turns one fixed-length audio window into a :class:`Classification`."""

    source: Source = Source.LOCAL
    sample_rate: int = AUDIO.sample_rate

    def classify(self, window: np.ndarray) -> Classification:
        started = time.perf_counter()
        label, confidence = self.predict(np.asarray(window, dtype=np.float32))
        latency_ms = int(round((time.perf_counter() - started) * 1000))
        confidence = float(min(1.0, max(0.0, confidence)))
        return Classification(label=label, confidence=confidence, source=self.source, latency_ms=latency_ms)

    @abstractmethod
    def predict(self, window: np.ndarray) -> Tuple[str, float]:
        """Return (label, confidence) for *window*."""

    def close(self) -> None:
        pass


class ToneClassifier(Classifier):
    """Scores each label by the share of spectral energy in its signature bands.

    Labels are scored in mapping order and argmax keeps the first maximum,
    so ties always resolve to the earlier label.
    """

    def __init__(
        self,
        signatures: Mapping[str, Sequence[float]] | None = None,
        half_width_hz: float = TONE.band_hz,
        sample_rate: int = AUDIO.sample_rate,
    ) -> None:
        self.signatures: Dict[str, Tuple[float, ...]] = {
            label: tuple(freqs) for label, freqs in (signatures or TONE.signatures).items()
        }
        if not self.signatures:
            raise ValueError("ToneClassifier needs at least one signature")
        self.labels = list(self.signatures)
        self.half_width_hz = half_width_hz
        self.sample_rate = sample_rate

    def scores(self, window: np.ndarray) -> np.ndarray:
        power, freqs = power_spectrum(window, self.sample_rate)
        return np.array(
            [band_energy_ratio(power, freqs, self.signatures[label], self.half_width_hz) for label in self.labels]
        )

    def predict(self, window: np.ndarray) -> Tuple[str, float]:
        if len(window) == 0:
            raise ClassifierUnavailable("empty audio window")
        scores = self.scores(window)
        idx = int(np.argmax(scores))
        return self.labels[idx], float(scores[idx])


class FallbackClassifier(Classifier):
    """Primary backend with a bounded wait, then the fallback backend.

    The primary runs on a private thread so a hung backend cannot hold the
    caller past ``timeout_s``.
    """

    def __init__(self, primary: Classifier, fallback: Classifier, timeout_s: float = CAPTURE.classify_timeout_s) -> None:
        self.primary = primary
        self.fallback = fallback
        self.timeout_s = timeout_s
        self.sample_rate = fallback.sample_rate
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="hearo-primary")

    @property
    def source(self) -> Source:  # type: ignore[override]
        return self.primary.source

    def classify(self, window: np.ndarray) -> Classification:
        future = self._executor.submit(self.primary.classify, window)
        try:
            return future.result(timeout=self.timeout_s)
        except FutureTimeout:
            future.cancel()
            LOGGER.warning("Primary classifier timed out after %.2fs, using fallback", self.timeout_s)
        except Exception as exc:
            LOGGER.warning("Primary classifier unavailable (%s), using fallback", exc)
        try:
            return self.fallback.classify(window)
        except ClassifierUnavailable:
            raise
        except Exception as exc:
            raise ClassifierUnavailable(f"fallback classifier failed: {exc}") from exc

    def predict(self, window: np.ndarray) -> Tuple[str, float]:
        result = self.classify(window)
        return result.label, result.confidence

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.primary.close()
        self.fallback.close()
