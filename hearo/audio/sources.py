"""Audio input boundary: live microphone and array/WAV replay."""
from __future__ import annotations

import logging
import queue
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

import numpy as np

from hearo.system.errors import AcquisitionError
from hearo.utils.constants import AUDIO, CAPTURE
from hearo.utils.helpers import load_audio, normalize_signal

LOGGER = logging.getLogger(__name__)


class AudioSource(ABC):
    """Yields fixed-length float32 frames at a declared sample rate."""

    sample_rate: int

    @abstractmethod
    def open(self) -> None:
        """Acquire the input; raise AcquisitionError if that is impossible."""

    @abstractmethod
    def drain(self) -> List[np.ndarray]:
        """Return the frames captured since the previous call."""

    @property
    def exhausted(self) -> bool:
        return False

    def close(self) -> None:
        pass


class MicSource(AudioSource):
    def __init__(
        self,
        sample_rate: int = AUDIO.sample_rate,
        chunk_size: int = AUDIO.chunk_size,
        device: Optional[int | str] = None,
        max_chunks: int = CAPTURE.queue_chunks,
    ) -> None:
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.device = device
        self._queue: "queue.Queue[np.ndarray]" = queue.Queue(maxsize=max_chunks)
        self._stream = None
        self.dropped = 0

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            LOGGER.debug("Input stream status: %s", status)
        try:
            self._queue.put_nowait(np.asarray(indata[:, 0], dtype=np.float32).copy())
        except queue.Full:
            # drop newest chunk to keep realtime
            self.dropped += 1

    def open(self) -> None:
        if self._stream is not None:
            return
        try:
            import sounddevice as sd
        except OSError as exc:
            raise AcquisitionError(f"PortAudio is not available: {exc}") from exc
        try:
            stream = sd.InputStream(
                device=self.device,
                channels=1,
                samplerate=self.sample_rate,
                blocksize=self.chunk_size,
                dtype="float32",
                callback=self._callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as exc:
            raise AcquisitionError(f"Unable to access microphone: {exc}") from exc
        self._stream = stream
        LOGGER.info("Microphone opened at %d Hz", self.sample_rate)

    def drain(self) -> List[np.ndarray]:
        chunks = []
        while True:
            try:
                chunks.append(self._queue.get_nowait())
            except queue.Empty:
                return chunks

    def close(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        stream.stop()
        stream.close()
        LOGGER.info("Microphone closed")


class ArraySource(AudioSource):
    """Replays a waveform, one capture interval per :meth:`drain` call."""

    def __init__(
        self,
        data: np.ndarray,
        sample_rate: int = AUDIO.sample_rate,
        chunk_size: int = AUDIO.chunk_size,
        interval_s: float = CAPTURE.interval_s,
        normalize: bool = False,
    ) -> None:
        data = np.asarray(data, dtype=np.float32)
        self.data = normalize_signal(data) if normalize else data
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.samples_per_drain = max(1, int(round(interval_s * sample_rate)))
        self.position = 0
        self.opened = False

    @classmethod
    def from_wav(cls, path: str | Path, sample_rate: int = AUDIO.sample_rate, **kwargs) -> "ArraySource":
        try:
            data, sr = load_audio(path, sample_rate)
        except (OSError, RuntimeError) as exc:
            raise AcquisitionError(f"Unable to read {path}: {exc}") from exc
        return cls(data, sample_rate=sr, **kwargs)

    def open(self) -> None:
        self.opened = True

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.data)

    def drain(self) -> List[np.ndarray]:
        end = min(self.position + self.samples_per_drain, len(self.data))
        segment = self.data[self.position : end]
        self.position = end
        chunks = []
        for idx in range(0, len(segment), self.chunk_size):
            chunk = segment[idx : idx + self.chunk_size]
            if len(chunk) < self.chunk_size and self.exhausted:
                chunk = np.concatenate((chunk, np.zeros(self.chunk_size - len(chunk), dtype=np.float32)))
            chunks.append(chunk)
        return chunks

    def close(self) -> None:
        self.opened = False
