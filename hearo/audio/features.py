"""Spectral features: band energies for the tone classifier, log-mel for the CNN."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from hearo.utils.constants import AUDIO, MODEL


def power_spectrum(window: np.ndarray, sample_rate: int) -> tuple[np.ndarray, np.ndarray]:
    """Hann-windowed power spectrum of a single window and its bin frequencies."""
    window = np.asarray(window, dtype=np.float32)
    tapered = window * np.hanning(len(window)).astype(np.float32)
    power = (np.abs(np.fft.rfft(tapered)) ** 2).astype(np.float64)
    freqs = np.fft.rfftfreq(len(window), d=1.0 / sample_rate)
    return power, freqs


def band_energy_ratio(
    power: np.ndarray,
    freqs: np.ndarray,
    centers: Sequence[float],
    half_width: float,
) -> float:
    """Fraction of total energy within +-half_width Hz of any center."""
    total = float(np.sum(power))
    if total <= 0.0:
        return 0.0
    mask = np.zeros_like(freqs, dtype=bool)
    for center in centers:
        mask |= np.abs(freqs - center) <= half_width
    return float(np.sum(power[mask]) / total)


def sine_mix(frequencies: Sequence[float], length: int, sample_rate: int, amplitude: float = 1.0) -> np.ndarray:
    """Equal-weight sum of sines, scaled so the peak stays near *amplitude*."""
    t = np.arange(length, dtype=np.float64) / sample_rate
    wave = np.zeros(length, dtype=np.float64)
    for freq in frequencies:
        wave += np.sin(2 * np.pi * freq * t)
    if frequencies:
        wave /= len(frequencies)
    return (amplitude * wave).astype(np.float32)


def pre_emphasis(signal: np.ndarray, coeff: float = 0.97) -> np.ndarray:
    emphasized = np.append(signal[0], signal[1:] - coeff * signal[:-1])
    return emphasized.astype(np.float32)


def log_mel_spectrogram(
    signal: np.ndarray,
    sample_rate: int = AUDIO.sample_rate,
    frame_length: int = AUDIO.frame_length,
    hop_length: int = AUDIO.hop_length,
    n_mels: int = AUDIO.n_mels,
    fmin: int = AUDIO.fmin,
    fmax: int = AUDIO.fmax,
) -> np.ndarray:
    """Log-mel spectrogram shaped (frames, n_mels)."""
    import librosa

    signal = np.asarray(signal, dtype=np.float32)
    if len(signal) < frame_length:
        signal = np.concatenate((signal, np.zeros(frame_length - len(signal), dtype=np.float32)))
    emphasized = pre_emphasis(signal)
    num_frames = 1 + (len(emphasized) - frame_length) // hop_length
    frames = np.lib.stride_tricks.sliding_window_view(emphasized, frame_length)[::hop_length][:num_frames]
    frames = frames * np.hamming(frame_length).astype(np.float32)
    spec = (np.abs(np.fft.rfft(frames, n=frame_length)) ** 2).astype(np.float32)
    mel_fb = librosa.filters.mel(sr=sample_rate, n_fft=frame_length, n_mels=n_mels, fmin=fmin, fmax=fmax)
    mel_spec = np.maximum(spec @ mel_fb.T.astype(np.float32), 1e-10)
    return np.log(mel_spec).astype(np.float32)


def model_input(
    log_mel: np.ndarray,
    frames_expected: int = MODEL.frames_expected,
    mean: float = MODEL.train_mean,
    std: float = MODEL.train_std,
) -> np.ndarray:
    """Normalize with training stats and pad or crop to the model's frame count."""
    data = (log_mel - mean) / (std + 1e-6)
    if data.shape[0] < frames_expected:
        pad = np.zeros((frames_expected - data.shape[0], data.shape[1]), dtype=np.float32)
        data = np.concatenate((data, pad), axis=0)
    elif data.shape[0] > frames_expected:
        data = data[-frames_expected:]
    return data[np.newaxis, ..., np.newaxis].astype(np.float32)
