"""Processing layer - Signal transformation.

This layer re-pitches audio:
- Streaming pitch transforms (phase vocoder, librosa-backed)
- Whole-recording pitch shift with latency flush and onset trim
"""

from .stretch import (
    STRETCH_ENGINES,
    TimeStretchEngine,
    PhaseVocoderStretch,
    LibrosaStretch,
    StretchState,
)
from .pitch_shift import PitchShiftEngine, ShiftConfig, ShiftState, find_trim_point

__all__ = [
    "STRETCH_ENGINES",
    "TimeStretchEngine",
    "PhaseVocoderStretch",
    "LibrosaStretch",
    "StretchState",
    "PitchShiftEngine",
    "ShiftConfig",
    "ShiftState",
    "find_trim_point",
]
