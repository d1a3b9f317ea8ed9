"""Circular buffer for streaming audio."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass
class RingBuffer:
    """Fixed-size sample buffer shared by the capture callback and the loop.

    Writes longer than the buffer keep only their tail.
    """

    size: int
    dtype: type = np.float32
    buffer: np.ndarray = field(init=False)
    write_pos: int = field(init=False, default=0)
    filled: int = field(init=False, default=0)
    _lock: threading.Lock = field(init=False, repr=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("ring buffer size must be positive")
        self.buffer = np.zeros(self.size, dtype=self.dtype)

    @property
    def is_full(self) -> bool:
        return self.filled >= self.size

    def write(self, data: np.ndarray) -> None:
        data = np.asarray(data, dtype=self.dtype).ravel()
        if len(data) > self.size:
            data = data[-self.size :]
        n = len(data)
        with self._lock:
            end = self.write_pos + n
            if end <= self.size:
                self.buffer[self.write_pos:end] = data
            else:
                first = self.size - self.write_pos
                self.buffer[self.write_pos:] = data[:first]
                self.buffer[: end - self.size] = data[first:]
            self.write_pos = end % self.size
            self.filled = min(self.size, self.filled + n)

    def read(self, length: int, offset: int = 0) -> Optional[np.ndarray]:
        """Return the *length* most recent samples, skipping the newest *offset*."""
        if length > self.size:
            raise ValueError(f"cannot read {length} samples from a buffer of {self.size}")
        with self._lock:
            if self.filled < length + offset:
                return None
            start = (self.write_pos - offset - length) % self.size
            if start + length <= self.size:
                return self.buffer[start : start + length].copy()
            first = self.size - start
            return np.concatenate((self.buffer[start:], self.buffer[: length - first]))

    def clear(self) -> None:
        with self._lock:
            self.buffer.fill(0)
            self.write_pos = 0
            self.filled = 0
