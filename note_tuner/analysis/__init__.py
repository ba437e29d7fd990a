"""Analysis layer - Low-level signal analysis.

This layer turns raw audio blocks into pitch observations:
- Spectral transform and windowing
- Peak picking with parabolic refinement
"""

from .spectrum import SpectralTransform, RealFFT, hann_window, magnitude_spectrum
from .frame import (
    FrameAnalyzer,
    AnalysisConfig,
    downmix,
    find_fundamental,
    refine_frequency,
)

__all__ = [
    "SpectralTransform",
    "RealFFT",
    "hann_window",
    "magnitude_spectrum",
    "FrameAnalyzer",
    "AnalysisConfig",
    "downmix",
    "find_fundamental",
    "refine_frequency",
]
