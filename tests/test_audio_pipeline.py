import numpy as np
import pytest
import soundfile as sf

from hearo.audio.features import band_energy_ratio, log_mel_spectrogram, model_input, power_spectrum, sine_mix
from hearo.audio.ring_buffer import RingBuffer
from hearo.audio.sources import ArraySource
from hearo.utils.constants import AUDIO, MODEL
from hearo.utils.helpers import audio_level, rms


def test_ring_buffer_basic():
    rb = RingBuffer(16)
    rb.write(np.arange(16, dtype=np.float32))
    window = rb.read(8)
    assert window is not None
    np.testing.assert_array_equal(window, np.arange(8, 16, dtype=np.float32))


def test_ring_buffer_wraps_and_offsets():
    rb = RingBuffer(8)
    rb.write(np.arange(6, dtype=np.float32))
    rb.write(np.arange(6, 10, dtype=np.float32))
    np.testing.assert_array_equal(rb.read(8), np.arange(2, 10, dtype=np.float32))
    np.testing.assert_array_equal(rb.read(3, offset=2), np.array([5, 6, 7], dtype=np.float32))


def test_ring_buffer_needs_enough_samples():
    rb = RingBuffer(8)
    rb.write(np.ones(3, dtype=np.float32))
    assert rb.read(4) is None
    rb.write(np.ones(1, dtype=np.float32))
    assert rb.read(4) is not None


def test_ring_buffer_oversized_write_keeps_tail():
    rb = RingBuffer(4)
    rb.write(np.arange(10, dtype=np.float32))
    assert rb.is_full
    np.testing.assert_array_equal(rb.read(4), np.array([6, 7, 8, 9], dtype=np.float32))
    rb.clear()
    assert rb.read(1) is None


def test_log_mel_shape():
    signal = np.random.default_rng(0).standard_normal(AUDIO.frame_length * 2).astype(np.float32)
    spec = log_mel_spectrogram(signal)
    assert spec.shape[1] == AUDIO.n_mels


def test_model_input_pads_to_expected_frames():
    spec = np.zeros((10, AUDIO.n_mels), dtype=np.float32)
    x = model_input(spec)
    assert x.shape == (1, MODEL.frames_expected, AUDIO.n_mels, 1)


def test_band_energy_ratio_of_pure_tone():
    tone = sine_mix([1000.0], 2048, AUDIO.sample_rate)
    power, freqs = power_spectrum(tone, AUDIO.sample_rate)
    assert band_energy_ratio(power, freqs, [1000.0], 25.0) > 0.99
    assert band_energy_ratio(power, freqs, [3000.0], 25.0) < 0.01
    assert band_energy_ratio(np.zeros_like(power), freqs, [1000.0], 25.0) == 0.0


def test_rms_and_level():
    assert rms(np.zeros(32, dtype=np.float32)) == 0.0
    assert rms(np.array([], dtype=np.float32)) == 0.0
    full_scale = sine_mix([440.0], AUDIO.sample_rate, AUDIO.sample_rate)
    assert audio_level(rms(full_scale)) == 100
    assert audio_level(0.0) == 0


def test_array_source_drains_one_interval_at_a_time():
    source = ArraySource(np.ones(10000, dtype=np.float32), sample_rate=16000, chunk_size=1000, interval_s=0.25)
    source.open()
    assert [len(source.drain()) for _ in range(3)] == [4, 4, 2]
    assert source.exhausted
    assert source.drain() == []


def test_array_source_pads_final_chunk():
    source = ArraySource(np.ones(1500, dtype=np.float32), sample_rate=16000, chunk_size=1000, interval_s=1.0)
    chunks = source.drain()
    assert [len(c) for c in chunks] == [1000, 1000]
    assert chunks[-1][-1] == 0.0


def test_array_source_from_wav(tmp_path):
    path = tmp_path / "tone.wav"
    sf.write(str(path), sine_mix([660.0], 16000, 16000, 0.5), 16000)
    source = ArraySource.from_wav(path, sample_rate=16000, chunk_size=1000, interval_s=0.5)
    assert source.sample_rate == 16000
    assert len(source.drain()) == 8


def test_ring_buffer_rejects_oversized_read():
    with pytest.raises(ValueError):
        RingBuffer(4).read(5)


def test_mic_source_drops_when_queue_full():
    from hearo.audio.sources import MicSource

    mic = MicSource(chunk_size=4, max_chunks=2)
    block = np.ones((4, 1), dtype=np.float32)
    for _ in range(3):
        mic._callback(block, 4, None, None)
    assert mic.dropped == 1
    assert len(mic.drain()) == 2
    assert mic.drain() == []


def test_mic_source_open_failure_is_acquisition_error(monkeypatch):
    import sys
    import types

    from hearo.audio.sources import MicSource
    from hearo.system.errors import AcquisitionError

    class PortAudioError(Exception):
        pass

    def refuse(**kwargs):
        raise PortAudioError("Error querying device -1")

    fake = types.SimpleNamespace(PortAudioError=PortAudioError, InputStream=refuse)
    monkeypatch.setitem(sys.modules, "sounddevice", fake)
    with pytest.raises(AcquisitionError):
        MicSource().open()
