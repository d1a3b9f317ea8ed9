"""Utility helpers shared by multiple Hearo subsystems."""
from __future__ import annotations

from pathlib import Path
from typing import Tuple

import numpy as np
import soundfile as sf


FloatArray = np.ndarray


def ensure_mono(signal: FloatArray) -> FloatArray:
    """Ensure waveform is mono by averaging channels if necessary."""
    if signal.ndim == 1:
        return signal
    return signal.mean(axis=1)


def load_audio(path: str | Path, target_sr: int) -> Tuple[FloatArray, int]:
    """Load an audio file and resample with librosa when the rate differs."""
    data, sr = sf.read(str(path), always_2d=False)
    data = ensure_mono(data.astype(np.float32))
    if sr == target_sr:
        return data, sr
    import librosa

    resampled = librosa.resample(y=data, orig_sr=sr, target_sr=target_sr)
    return resampled.astype(np.float32), target_sr


def softmax(logits: FloatArray) -> FloatArray:
    """Compute numerically stable softmax."""
    shifted = logits - np.max(logits)
    exp = np.exp(shifted)
    return exp / np.sum(exp)


def normalize_signal(signal: FloatArray) -> FloatArray:
    """Scale signal to unit range for consistent processing."""
    max_val = np.max(np.abs(signal)) + 1e-10
    return signal / max_val


def rms(signal: FloatArray) -> float:
    if len(signal) == 0:
        return 0.0
    signal = np.asarray(signal, dtype=np.float32)
    return float(np.sqrt(np.mean(signal * signal)))


def audio_level(value: float) -> int:
    """Map an RMS value to the 0-100 meter shown to the user.

    A full-scale sine (RMS 1/sqrt(2)) reads 100.
    """
    return int(round(min(1.0, max(0.0, value) * np.sqrt(2.0)) * 100))
