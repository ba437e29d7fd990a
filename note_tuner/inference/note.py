"""Pitch-class classification of estimated frequencies."""

import math
from typing import Dict, Optional

import numpy as np
import librosa

from ..core import PITCH_NAMES
from ..core.constants import REFERENCE_OCTAVE


class NoteClassifier:
    """Maps a frequency to one of the 12 pitch-class labels.

    Frequencies are folded by octaves into the reference octave
    [C4, C5) and matched to the nearest reference frequency by linear Hz
    distance. C5 is kept as a wrap-around candidate labelled "C".
    """

    def __init__(self, octave: int = REFERENCE_OCTAVE):
        self.octave = octave
        self.reference = np.asarray(
            librosa.note_to_hz([f"{name}{octave}" for name in PITCH_NAMES]),
            dtype=np.float64,
        )
        self.lowest = float(self.reference[0])
        self.upper = 2.0 * self.lowest

        # Candidates include the next C for values just below the octave edge
        self._candidates = np.append(self.reference, self.upper)
        self._labels = PITCH_NAMES + [PITCH_NAMES[0]]

    @property
    def reference_table(self) -> Dict[str, float]:
        """Reference frequency per label."""
        return {name: float(freq) for name, freq in zip(PITCH_NAMES, self.reference)}

    def fold(self, frequency: float) -> float:
        """Fold a positive frequency into [C4, C5) by doubling or halving."""
        while frequency < self.lowest:
            frequency *= 2.0
        while frequency >= self.upper:
            frequency /= 2.0
        return frequency

    def classify(self, frequency: float) -> Optional[str]:
        """
        Classify a frequency.

        Args:
            frequency: Frequency in Hz

        Returns:
            Pitch-class label, or None for zero, negative or non-finite input
        """
        if not math.isfinite(frequency) or frequency <= 0:
            return None

        folded = self.fold(frequency)
        index = int(np.argmin(np.abs(self._candidates - folded)))
        return self._labels[index]
