"""Bounded, newest-first alert history.

Writers serialize on a lock and publish a fresh immutable tuple; readers
just grab the current tuple, so ``recent`` never blocks and never sees a
half-applied append.
"""
from __future__ import annotations

import threading
from typing import List, Tuple

from hearo.system.models import Alert
from hearo.utils.constants import HISTORY


class HistoryStore:
    def __init__(self, capacity: int = HISTORY.capacity) -> None:
        if capacity <= 0:
            raise ValueError("history capacity must be positive")
        self.capacity = capacity
        self._snapshot: Tuple[Alert, ...] = ()
        self._write_lock = threading.Lock()

    def append(self, alert: Alert) -> None:
        with self._write_lock:
            self._snapshot = (alert,) + self._snapshot[: self.capacity - 1]

    def recent(self, k: int | None = None) -> List[Alert]:
        snapshot = self._snapshot
        if k is None:
            return list(snapshot)
        if k < 0:
            raise ValueError("k must be non-negative")
        return list(snapshot[:k])

    def snapshot(self) -> Tuple[Alert, ...]:
        return self._snapshot

    def clear(self) -> None:
        with self._write_lock:
            self._snapshot = ()

    def __len__(self) -> int:
        return len(self._snapshot)
