"""Shared fixtures: synthetic WAV files written to a temporary directory."""

import numpy as np
import pytest

from generate_test_audio import generate_sine_wave, generate_stereo, save_wav

SR = 44100


@pytest.fixture
def write_wav(tmp_path):
    """Write an array to <tmp_path>/<name> and return the path."""

    def _write(name, audio, sr=SR):
        return save_wav(str(tmp_path / name), audio, sr)

    return _write


@pytest.fixture
def a440_file(write_wav):
    """2 seconds of A4 (440 Hz), mono, 44.1 kHz."""
    return write_wav("a440.wav", generate_sine_wave(440.0, 2.0, SR))


@pytest.fixture
def c4_file(write_wav):
    return write_wav("c4.wav", generate_sine_wave(261.63, 2.0, SR))


@pytest.fixture
def stereo_g3_file(write_wav):
    g3 = generate_sine_wave(196.0, 1.5, SR)
    return write_wav("stereo_g3.wav", generate_stereo(g3, 0.5 * g3))


@pytest.fixture
def silence_file(write_wav):
    return write_wav("silence.wav", np.zeros(SR, dtype=np.float32))


@pytest.fixture
def empty_file(write_wav):
    return write_wav("empty.wav", np.zeros((0, 1), dtype=np.float32))
