"""Tests for the analysis layer (window, spectrum, peak refinement)."""

import numpy as np
import pytest

from note_tuner.analysis import (
    AnalysisConfig,
    FrameAnalyzer,
    downmix,
    find_fundamental,
    hann_window,
    refine_frequency,
)
from note_tuner.analysis.spectrum import SpectralTransform

from generate_test_audio import generate_stereo

SR = 44100


def _sine(freq, n, sr=SR):
    return (0.5 * np.sin(2 * np.pi * freq * np.arange(n) / sr)).astype(np.float32)


class TestHannWindow:
    """Tests for the symmetric Hann window."""

    def test_matches_formula(self):
        n = 16
        i = np.arange(n)
        expected = 0.5 * (1 - np.cos(2 * np.pi * i / (n - 1)))
        assert np.allclose(hann_window(n), expected)

    def test_symmetric_endpoints(self):
        window = hann_window(8192)
        assert window[0] == pytest.approx(0.0, abs=1e-12)
        assert window[-1] == pytest.approx(0.0, abs=1e-12)


class TestRefineFrequency:
    """Tests for parabolic interpolation."""

    def test_first_bin_not_interpolated(self):
        magnitudes = np.array([5.0, 3.0, 1.0, 0.5])
        assert refine_frequency(0, magnitudes, 8, 8000) == 0.0

    def test_last_bin_not_interpolated(self):
        n = 8
        magnitudes = np.array([0.5, 1.0, 3.0, 5.0])
        assert refine_frequency(n // 2 - 1, magnitudes, n, 8000) == (n // 2 - 1) * 8000 / n

    def test_symmetric_neighbours_no_adjustment(self):
        magnitudes = np.zeros(512)
        magnitudes[99:102] = [2.0, 6.0, 2.0]
        assert refine_frequency(100, magnitudes, 1024, SR) == 100 * SR / 1024

    def test_moves_toward_larger_neighbour(self):
        magnitudes = np.zeros(512)
        magnitudes[99:102] = [1.0, 6.0, 4.0]
        refined = refine_frequency(100, magnitudes, 1024, SR)
        bin_width = SR / 1024
        assert 100 * bin_width < refined < 100.5 * bin_width

    def test_flat_neighbourhood_returns_bin(self):
        magnitudes = np.ones(512)
        assert refine_frequency(10, magnitudes, 1024, SR) == 10 * SR / 1024


class TestFindFundamental:
    def test_first_maximum_wins(self):
        magnitudes = np.array([0.0, 4.0, 1.0, 4.0, 0.0, 0.0])
        observation = find_fundamental(magnitudes, 12, 1200)
        assert observation.peak_index == 1
        assert observation.magnitude == 4.0


class TestFrameAnalyzer:
    """Tests for FrameAnalyzer."""

    @pytest.mark.parametrize("n_fft", [64, 1024, 8192])
    def test_silent_block(self, n_fft):
        analyzer = FrameAnalyzer(SR, AnalysisConfig(n_fft=n_fft))
        observation = analyzer.analyze(np.zeros((n_fft, 2), dtype=np.float32))

        assert observation.magnitude == 0.0
        assert observation.peak_index == 0
        assert observation.frequency == 0.0
        assert observation.is_silent

    def test_bin_centred_sine(self):
        n_fft = 8192
        bin_index = 82
        freq = bin_index * SR / n_fft
        analyzer = FrameAnalyzer(SR, AnalysisConfig(n_fft=n_fft))

        observation = analyzer.analyze(_sine(freq, n_fft))

        assert observation.peak_index == bin_index
        assert observation.frequency == pytest.approx(freq, abs=0.05 * analyzer.bin_width)

    def test_a440_estimate(self):
        analyzer = FrameAnalyzer(SR)
        observation = analyzer.analyze(_sine(440.0, 8192))

        assert observation.frequency == pytest.approx(440.0, abs=1.0)
        assert observation.magnitude > 0

    def test_stereo_downmix_matches_mono(self):
        mono = _sine(330.0, 8192)
        stereo = generate_stereo(mono, mono)
        analyzer = FrameAnalyzer(SR)

        assert analyzer.analyze(stereo).frequency == pytest.approx(
            analyzer.analyze(mono).frequency
        )

    def test_short_block_is_zero_padded(self):
        analyzer = FrameAnalyzer(SR)
        observation = analyzer.analyze(_sine(440.0, 4096))
        assert observation.frequency == pytest.approx(440.0, abs=3.0)

    def test_long_block_rejected(self):
        analyzer = FrameAnalyzer(SR, AnalysisConfig(n_fft=1024))
        with pytest.raises(ValueError):
            analyzer.analyze(np.zeros(2048))

    def test_custom_transform_is_used(self):
        calls = []

        class RecordingFFT(SpectralTransform):
            def execute(self, signal):
                calls.append(len(signal))
                return np.fft.rfft(signal)

        analyzer = FrameAnalyzer(SR, AnalysisConfig(n_fft=2048, transform=RecordingFFT()))
        analyzer.analyze(np.zeros(2048))
        assert calls == [2048]

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            AnalysisConfig(n_fft=1001)
        with pytest.raises(ValueError):
            FrameAnalyzer(0)


def test_downmix_averages_channels():
    block = np.array([[1.0, 0.0], [0.5, 0.5], [-1.0, 1.0]])
    assert np.allclose(downmix(block), [0.5, 0.5, 0.0])
