"""Inference layer - Musical decisions from pitch observations.

Pipeline: PitchObservation -> [NoteClassifier] -> label -> [NoteAggregator]
-> dominant pitch class -> semitone offset to the target
"""

from .note import NoteClassifier
from .aggregate import NoteAggregator, NoteTally, DominantNote
from .tuning import SEMITONES_TO_C, pitch_class_of, semitones_to, shift_table

__all__ = [
    "NoteClassifier",
    "NoteAggregator",
    "NoteTally",
    "DominantNote",
    "SEMITONES_TO_C",
    "pitch_class_of",
    "semitones_to",
    "shift_table",
]
