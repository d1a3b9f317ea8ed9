"""Global constants shared across Hearo modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class AudioConstants:
    sample_rate: int = 16000
    frame_length: int = 512
    hop_length: int = 160
    n_mels: int = 40
    fmin: int = 20
    fmax: int = 7600
    chunk_size: int = 1024
    window_samples: int = 2048
    ring_buffer_size: int = 16384


@dataclass(frozen=True)
class CaptureConstants:
    interval_s: float = 3.0
    activity_threshold: float = 0.03
    classify_timeout_s: float = 2.0
    window_timeout_s: float = 5.0
    max_workers: int = 2
    queue_chunks: int = 64


@dataclass(frozen=True)
class PolicyConstants:
    min_confidence: float = 0.5
    cooldown_s: float = 4.0


@dataclass(frozen=True)
class HistoryConstants:
    capacity: int = 10


@dataclass(frozen=True)
class ModelConstants:
    class_labels: Tuple[str, ...] = (
        "fire_alarm",
        "smoke_detector",
        "doorbell",
        "phone_ring",
        "baby_cry",
        "car_horn",
        "glass_break",
        "scream",
    )
    model_path: str = "hearo/model/hearo_cnn.tflite"
    frames_expected: int = 197
    train_mean: float = -10.733114242553711
    train_std: float = 5.043337821960449


@dataclass(frozen=True)
class ToneConstants:
    band_hz: float = 25.0
    # Signature frequencies per label; the simulator synthesizes these and
    # the tone classifier scores energy around them.
    signatures: Dict[str, Tuple[float, ...]] = field(
        default_factory=lambda: {
            "fire_alarm": (3100.0,),
            "smoke_detector": (3700.0,),
            "doorbell": (660.0, 880.0),
            "phone_ring": (1400.0, 1800.0),
            "baby_cry": (500.0, 1000.0),
            "car_horn": (340.0, 415.0),
            "glass_break": (4500.0, 6000.0),
            "scream": (1200.0, 2600.0),
        }
    )


AUDIO = AudioConstants()
CAPTURE = CaptureConstants()
POLICY = PolicyConstants()
HISTORY = HistoryConstants()
MODEL = ModelConstants()
TONE = ToneConstants()
