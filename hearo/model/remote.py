"""Remote classification backend over HTTP."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

import httpx
import numpy as np

from hearo.model.classifier import Classifier
from hearo.system.errors import ClassifierUnavailable
from hearo.system.models import Source
from hearo.utils.constants import AUDIO, CAPTURE

LOGGER = logging.getLogger(__name__)


class RemoteClassifier(Classifier):
    """POSTs windows to ``{base_url}/classify``.

    Request body: ``{"sample_rate": int, "samples": [float, ...]}``.
    Response body: ``{"label": str, "confidence": float}``.
    """

    source = Source.REMOTE

    def __init__(
        self,
        base_url: str,
        timeout_s: float = CAPTURE.classify_timeout_s,
        sample_rate: int = AUDIO.sample_rate,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sample_rate = sample_rate
        self._client = client or httpx.Client(timeout=timeout_s)
        self._owns_client = client is None

    def predict(self, window: np.ndarray) -> Tuple[str, float]:
        payload = {"sample_rate": self.sample_rate, "samples": window.astype(float).tolist()}
        try:
            response = self._client.post(f"{self.base_url}/classify", json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise ClassifierUnavailable(f"remote returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ClassifierUnavailable(f"remote request failed: {exc}") from exc
        except ValueError as exc:
            raise ClassifierUnavailable("remote returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise ClassifierUnavailable("remote returned an unexpected payload")
        label = body.get("label")
        confidence = body.get("confidence")
        if not isinstance(label, str) or not label:
            raise ClassifierUnavailable("remote payload is missing a label")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ClassifierUnavailable("remote payload is missing a confidence")
        if not 0.0 <= float(confidence) <= 1.0:
            raise ClassifierUnavailable(f"remote confidence out of range: {confidence}")
        LOGGER.debug("Remote classified window as %s (%.2f)", label, confidence)
        return label, float(confidence)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
