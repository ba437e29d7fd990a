"""Semitone offsets between pitch classes (12-tone equal temperament)."""

from typing import Dict

from ..core import PITCH_NAMES
from ..core.constants import DEFAULT_TARGET


def pitch_class_of(label: str) -> str:
    """Strip an octave suffix: 'A#4' -> 'A#', 'C' -> 'C'."""
    text = label.strip()
    name = text[:2] if len(text) > 1 and text[1] == "#" else text[:1]
    octave = text[len(name):]

    if name not in PITCH_NAMES or (octave and not octave.lstrip("-").isdigit()):
        raise ValueError(f"Unknown pitch class: {label!r}")
    return name


def semitones_to(label: str, target: str = DEFAULT_TARGET) -> int:
    """
    Shortest signed semitone shift that moves ``label`` onto ``target``.

    The result lies in [-6, +5]; the tritone resolves downward.

    Args:
        label: Detected pitch class (octave suffix allowed)
        target: Reference pitch class

    Returns:
        Signed semitone offset
    """
    source_index = PITCH_NAMES.index(pitch_class_of(label))
    target_index = PITCH_NAMES.index(pitch_class_of(target))

    distance = (target_index - source_index) % 12
    if distance >= 6:
        distance -= 12
    return distance


def shift_table(target: str = DEFAULT_TARGET) -> Dict[str, int]:
    """Offsets from every pitch class to ``target``."""
    return {name: semitones_to(name, target) for name in PITCH_NAMES}


# C: 0, C#: -1, D: -2, D#: -3, E: -4, F: -5, F#: -6,
# G: +5, G#: +4, A: +3, A#: +2, B: +1
SEMITONES_TO_C = shift_table("C")
