"""Run TFLite inference with the Hearo CNN."""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from hearo.audio.features import log_mel_spectrogram, model_input
from hearo.model.classifier import Classifier
from hearo.utils.constants import AUDIO, MODEL
from hearo.utils.helpers import normalize_signal, softmax


class TFLiteClassifier(Classifier):
    def __init__(
        self,
        model_path: str = MODEL.model_path,
        labels: Sequence[str] = MODEL.class_labels,
        sample_rate: int = AUDIO.sample_rate,
    ) -> None:
        try:
            import tensorflow as tf
        except ImportError as exc:
            raise ImportError(
                "tensorflow is required for hearo.model.infer. Install the 'tflite' extra."
            ) from exc
        self.labels = tuple(labels)
        self.sample_rate = sample_rate
        self.interpreter = tf.lite.Interpreter(model_path=model_path)
        self.interpreter.allocate_tensors()
        self.input_detail = self.interpreter.get_input_details()[0]
        self.output_detail = self.interpreter.get_output_details()[0]
        num_outputs = int(self.output_detail["shape"][-1])
        if num_outputs != len(self.labels):
            raise ValueError(f"model has {num_outputs} outputs but {len(self.labels)} labels were given")

    def _quantize(self, tensor: np.ndarray) -> np.ndarray:
        if self.input_detail["dtype"] == np.float32:
            return tensor.astype(np.float32)
        scale, zero_point = self.input_detail["quantization"]
        return (tensor / scale + zero_point).astype(self.input_detail["dtype"])

    def _dequantize(self, tensor: np.ndarray) -> np.ndarray:
        if self.output_detail["dtype"] == np.float32:
            return tensor.astype(np.float32)
        scale, zero_point = self.output_detail["quantization"]
        return (tensor.astype(np.float32) - zero_point) * scale

    def predict_proba(self, window: np.ndarray) -> np.ndarray:
        spec = log_mel_spectrogram(normalize_signal(window), sample_rate=self.sample_rate)
        frames_expected = int(self.input_detail["shape"][1])
        x = model_input(spec, frames_expected=frames_expected)
        self.interpreter.set_tensor(self.input_detail["index"], self._quantize(x))
        self.interpreter.invoke()
        output = self.interpreter.get_tensor(self.output_detail["index"])
        probs = self._dequantize(output[0])
        # Quantized models emit logits; float models already end in softmax.
        if not np.isclose(float(np.sum(probs)), 1.0, atol=1e-3):
            probs = softmax(probs)
        return probs

    def predict(self, window: np.ndarray) -> Tuple[str, float]:
        probs = self.predict_proba(window)
        idx = int(np.argmax(probs))
        return self.labels[idx], float(probs[idx])
