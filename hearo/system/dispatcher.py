"""Turns classifications into alerts, fans them out and records them."""
from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from hearo.system.channels import NotificationChannel
from hearo.system.errors import ChannelFailure
from hearo.system.history import HistoryStore
from hearo.system.models import Alert, Classification
from hearo.system.policy_table import is_known, lookup

LOGGER = logging.getLogger(__name__)


class AlertMirror(Protocol):
    def publish(self, alert: Alert) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertDispatcher:
    """Single writer of the history store.

    ``dispatch`` never fails on account of a label or a channel: unknown
    labels map to the fallback policy entry, and each channel or mirror
    error is logged and contained.
    """

    def __init__(
        self,
        history: HistoryStore,
        channels: Sequence[NotificationChannel] = (),
        mirrors: Sequence[AlertMirror] = (),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.history = history
        self.channels: List[NotificationChannel] = list(channels)
        self.mirrors: List[AlertMirror] = list(mirrors)
        self._clock = clock
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.last_delivery: Dict[str, bool] = {}

    def dispatch(self, classification: Classification, location: Optional[str] = None) -> Alert:
        with self._lock:
            entry = lookup(classification.label)
            if not is_known(classification.label):
                LOGGER.info("Unknown sound label %r, using default policy", classification.label)
            alert = Alert(
                id=next(self._ids),
                label=classification.label,
                category=entry.category,
                severity=entry.severity,
                location=location or entry.default_location,
                confidence=classification.confidence,
                source=classification.source,
                created_at=self._clock(),
            )
            LOGGER.info(
                "Alert #%d: %s (%s, %s) at %s, confidence %.2f via %s",
                alert.id,
                alert.label,
                alert.category.value,
                alert.severity.value,
                alert.location,
                alert.confidence,
                alert.source.value,
            )
            self.last_delivery = self._notify(alert)
            self.history.append(alert)
            self._mirror(alert)
            return alert

    def _notify(self, alert: Alert) -> Dict[str, bool]:
        delivery: Dict[str, bool] = {}
        for channel in self.channels:
            if not channel.enabled:
                continue
            try:
                ok = bool(channel.trigger(alert.severity))
                if not ok:
                    raise ChannelFailure(channel.name, "trigger reported failure")
            except Exception as exc:
                failure = exc if isinstance(exc, ChannelFailure) else ChannelFailure(channel.name, str(exc))
                LOGGER.warning("Alert #%d: %s", alert.id, failure)
                ok = False
            delivery[channel.name] = ok
        return delivery

    def _mirror(self, alert: Alert) -> None:
        for mirror in self.mirrors:
            try:
                mirror.publish(alert)
            except Exception:
                LOGGER.warning("Alert #%d: mirror %r failed", alert.id, mirror, exc_info=True)
