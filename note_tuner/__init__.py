"""Note Tuner - Detect the dominant note of a recording and retune it.

Architecture Layers:
    1. input/       - Block-wise audio reading
    2. analysis/    - Per-block spectral pitch estimation
    3. inference/   - Pitch-class classification, voting, semitone offsets
    4. processing/  - Streaming pitch shift with latency trim
    5. output/      - Float WAV writing
    pipeline        - Two-pass analyse-then-tune orchestration
"""

__version__ = "0.1.0"

# Core types
from .core import (
    AudioInfo,
    PitchObservation,
    PitchShiftRequest,
    TunerError,
    FileOpenError,
    UnsupportedFormatError,
    EmptyAudioError,
    PartialIOError,
    StretchStateError,
)

# Input layer
from .input import AudioSource

# Analysis layer
from .analysis import FrameAnalyzer, AnalysisConfig

# Inference layer
from .inference import NoteClassifier, NoteAggregator, NoteTally, semitones_to

# Processing layer
from .processing import PitchShiftEngine, PhaseVocoderStretch, ShiftConfig

# Output layer
from .output import AudioSink

# Pipeline
from .pipeline import analyze_file, tune_file, run

__all__ = [
    # Core
    "AudioInfo",
    "PitchObservation",
    "PitchShiftRequest",
    "TunerError",
    "FileOpenError",
    "UnsupportedFormatError",
    "EmptyAudioError",
    "PartialIOError",
    "StretchStateError",
    # Input
    "AudioSource",
    # Analysis
    "FrameAnalyzer",
    "AnalysisConfig",
    # Inference
    "NoteClassifier",
    "NoteAggregator",
    "NoteTally",
    "semitones_to",
    # Processing
    "PitchShiftEngine",
    "PhaseVocoderStretch",
    "ShiftConfig",
    # Output
    "AudioSink",
    # Pipeline
    "analyze_file",
    "tune_file",
    "run",
]
