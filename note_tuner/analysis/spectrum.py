"""Spectral transform and window utilities."""

from abc import ABC, abstractmethod

import numpy as np
import librosa


class SpectralTransform(ABC):
    """Forward real-to-complex transform of a fixed length."""

    @abstractmethod
    def execute(self, signal: np.ndarray) -> np.ndarray:
        """
        Transform a windowed real signal.

        Args:
            signal: Real array of length N

        Returns:
            Complex spectrum of length N // 2 + 1
        """
        pass


class RealFFT(SpectralTransform):
    """numpy real FFT."""

    def execute(self, signal: np.ndarray) -> np.ndarray:
        return np.fft.rfft(signal)


def hann_window(n: int) -> np.ndarray:
    """Symmetric Hann window: w[i] = 0.5 * (1 - cos(2*pi*i / (n - 1)))."""
    return librosa.filters.get_window("hann", n, fftbins=False)


def magnitude_spectrum(spectrum: np.ndarray, n: int) -> np.ndarray:
    """Magnitudes of the first n // 2 bins of a real FFT."""
    return np.abs(spectrum[: n // 2])
