"""Global constants for Note Tuner."""

# Pitch names, in the fixed order used for classification and tie-breaking
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Reference octave for pitch-class folding (C4..B4)
REFERENCE_OCTAVE = 4
REFERENCE_A4 = 440.0

# Analysis defaults
DEFAULT_N_FFT = 8192
DEFAULT_TARGET = "C"

# Pitch shift defaults
DEFAULT_TONALITY_LIMIT = 8000.0  # Hz
DEFAULT_STRETCH_FFT = 4096
DEFAULT_STRETCH_OVERSAMPLE = 4

# Onset trim defaults
DEFAULT_TRIM_WINDOW = 256  # samples
DEFAULT_TRIM_THRESHOLD = 1e-4  # RMS
DEFAULT_TRIM_REQUIRED_WINDOWS = 3

# Output naming
OUTPUT_TEMPLATE = "tuned_{label}.wav"
