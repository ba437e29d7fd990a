"""Frame analysis - fundamental frequency estimation for one audio block.

Each block is downmixed to mono, Hann-windowed and transformed; the
strongest bin of the magnitude spectrum is refined with parabolic
interpolation over its neighbours.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .spectrum import SpectralTransform, RealFFT, hann_window, magnitude_spectrum
from ..core import PitchObservation
from ..core.constants import DEFAULT_N_FFT


@dataclass
class AnalysisConfig:
    """Configuration for the analysis pass.

    Attributes:
        n_fft: FFT size N, also the number of frames per analysis block (default: 8192)
        transform: Spectral transform used for each block (default: numpy real FFT)
    """

    n_fft: int = DEFAULT_N_FFT
    transform: SpectralTransform = field(default_factory=RealFFT)

    def __post_init__(self):
        if self.n_fft < 4 or self.n_fft % 2:
            raise ValueError(f"n_fft must be an even number >= 4, got {self.n_fft}")


def downmix(block: np.ndarray) -> np.ndarray:
    """Average channels of a (frames, channels) block into mono."""
    block = np.asarray(block, dtype=np.float64)
    if block.ndim == 1:
        return block
    return block.mean(axis=1)


def refine_frequency(
    peak_index: int,
    magnitudes: np.ndarray,
    n_fft: int,
    sample_rate: float,
) -> float:
    """
    Refine a peak bin to a frequency by parabolic interpolation.

    Args:
        peak_index: Bin of the spectral peak
        magnitudes: Magnitude spectrum (n_fft // 2 bins)
        n_fft: FFT size
        sample_rate: Sample rate in Hz

    Returns:
        Frequency in Hz
    """
    bin_frequency = peak_index * sample_rate / n_fft

    # Edge bins have no neighbour on one side
    if peak_index <= 0 or peak_index >= n_fft // 2 - 1:
        return bin_frequency

    alpha = magnitudes[peak_index - 1]
    beta = magnitudes[peak_index]
    gamma = magnitudes[peak_index + 1]

    denominator = alpha - 2.0 * beta + gamma
    if denominator == 0:
        return bin_frequency

    adjustment = 0.5 * (alpha - gamma) / denominator
    return (peak_index + adjustment) * sample_rate / n_fft


def find_fundamental(
    magnitudes: np.ndarray,
    n_fft: int,
    sample_rate: float,
) -> PitchObservation:
    """Pick the strongest bin and refine it."""
    peak_index = int(np.argmax(magnitudes))
    max_magnitude = float(magnitudes[peak_index])
    frequency = refine_frequency(peak_index, magnitudes, n_fft, sample_rate)
    return PitchObservation(
        frequency=float(frequency),
        magnitude=max_magnitude,
        peak_index=peak_index,
    )


class FrameAnalyzer:
    """Turns fixed-size audio blocks into pitch observations."""

    def __init__(
        self,
        sample_rate: int,
        config: Optional[AnalysisConfig] = None,
    ):
        """
        Initialize FrameAnalyzer.

        Args:
            sample_rate: Sample rate of the blocks in Hz
            config: Optional AnalysisConfig (FFT size, transform)
        """
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")

        self.config = config or AnalysisConfig()
        self.sample_rate = sample_rate
        self.n_fft = self.config.n_fft
        self.transform = self.config.transform
        self.window = hann_window(self.n_fft)

    @property
    def bin_width(self) -> float:
        """Frequency resolution in Hz."""
        return self.sample_rate / self.n_fft

    def spectrum(self, block: np.ndarray) -> np.ndarray:
        """Magnitude spectrum of one block, zero-padded to n_fft frames."""
        mono = downmix(block)

        if len(mono) > self.n_fft:
            raise ValueError(
                f"Block has {len(mono)} frames, expected at most {self.n_fft}"
            )
        if len(mono) < self.n_fft:
            mono = np.pad(mono, (0, self.n_fft - len(mono)))

        windowed = mono * self.window
        return magnitude_spectrum(self.transform.execute(windowed), self.n_fft)

    def analyze(self, block: np.ndarray) -> PitchObservation:
        """
        Estimate the fundamental frequency of one block.

        Args:
            block: Audio block shaped (frames, channels) or (frames,)

        Returns:
            PitchObservation; a silent block gives frequency 0 and magnitude 0
        """
        magnitudes = self.spectrum(block)
        return find_fundamental(magnitudes, self.n_fft, self.sample_rate)
