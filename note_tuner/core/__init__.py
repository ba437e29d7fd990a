"""Core types and constants for Note Tuner."""

from .types import AudioInfo, PitchObservation, PitchShiftRequest
from .errors import (
    TunerError,
    FileOpenError,
    UnsupportedFormatError,
    EmptyAudioError,
    PartialIOError,
    StretchStateError,
)
from .constants import (
    PITCH_NAMES,
    DEFAULT_N_FFT,
    DEFAULT_TARGET,
    DEFAULT_TONALITY_LIMIT,
)

__all__ = [
    "AudioInfo",
    "PitchObservation",
    "PitchShiftRequest",
    "TunerError",
    "FileOpenError",
    "UnsupportedFormatError",
    "EmptyAudioError",
    "PartialIOError",
    "StretchStateError",
    "PITCH_NAMES",
    "DEFAULT_N_FFT",
    "DEFAULT_TARGET",
    "DEFAULT_TONALITY_LIMIT",
]
