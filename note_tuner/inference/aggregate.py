"""Cross-frame voting for the dominant pitch class."""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core import PITCH_NAMES, PitchObservation


def _zero_counts() -> Dict[str, int]:
    return {name: 0 for name in PITCH_NAMES}


def _zero_magnitudes() -> Dict[str, float]:
    return {name: 0.0 for name in PITCH_NAMES}


@dataclass
class NoteTally:
    """Per-label observation count and magnitude sum for one file."""

    counts: Dict[str, int] = field(default_factory=_zero_counts)
    magnitudes: Dict[str, float] = field(default_factory=_zero_magnitudes)

    def add(self, label: str, magnitude: float) -> None:
        if label not in self.counts:
            raise KeyError(f"Unknown pitch class: {label!r}")
        self.counts[label] += 1
        self.magnitudes[label] += magnitude

    def score(self, label: str) -> float:
        """magnitude_sum * sqrt(count)."""
        return self.magnitudes[label] * math.sqrt(self.counts[label])

    def scores(self) -> Dict[str, float]:
        """Scores for all labels, in pitch-class order."""
        return {name: self.score(name) for name in PITCH_NAMES}

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def ranking(self) -> List[str]:
        """Observed labels, best score first; ties keep pitch-class order."""
        observed = [name for name in PITCH_NAMES if self.counts[name] > 0]
        return sorted(observed, key=lambda name: -self.score(name))


@dataclass
class DominantNote:
    """Winning label of a tally."""

    label: str
    score: float
    count: int
    magnitude_sum: float


class NoteAggregator:
    """Accumulates labelled observations and picks the dominant label.

    Create one aggregator per file; its tally is never shared.
    """

    def __init__(self):
        self.tally = NoteTally()

    def add(self, label: Optional[str], magnitude: float) -> None:
        """Count one labelled observation; unlabelled ones are ignored."""
        if label is None:
            return
        self.tally.add(label, magnitude)

    def observe(self, observation: PitchObservation, label: Optional[str]) -> None:
        self.add(label, observation.magnitude)

    def winner(self) -> Optional[DominantNote]:
        """
        Pick the label with the strictly greatest score.

        Labels are visited in PITCH_NAMES order, so ties resolve to the
        earlier label.

        Returns:
            DominantNote, or None if nothing was observed
        """
        best: Optional[str] = None
        best_score = 0.0

        for name in PITCH_NAMES:
            if self.tally.counts[name] == 0:
                continue
            score = self.tally.score(name)
            if best is None or score > best_score:
                best = name
                best_score = score

        if best is None:
            return None

        return DominantNote(
            label=best,
            score=best_score,
            count=self.tally.counts[best],
            magnitude_sum=self.tally.magnitudes[best],
        )
