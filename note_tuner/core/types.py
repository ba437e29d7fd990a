"""Plain data types shared across layers."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AudioInfo:
    """Properties of an opened audio file."""

    path: str
    sample_rate: int
    channels: int
    frames: int
    format: Optional[str] = None
    subtype: Optional[str] = None

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.frames / self.sample_rate


@dataclass(frozen=True)
class PitchObservation:
    """Fundamental frequency estimate for one analysis block."""

    frequency: float  # Hz, 0.0 for a silent block
    magnitude: float  # Peak bin magnitude
    peak_index: int = 0  # FFT bin of the peak

    @property
    def is_silent(self) -> bool:
        return self.magnitude <= 0.0


@dataclass(frozen=True)
class PitchShiftRequest:
    """Everything the shift engine needs besides the audio itself."""

    semitones: float  # Positive shifts up, negative shifts down
    sample_rate: int
    channels: int

    @property
    def ratio(self) -> float:
        """Frequency ratio for the requested shift."""
        return 2.0 ** (self.semitones / 12.0)
