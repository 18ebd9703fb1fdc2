"""Named note values for beat lengths.

Lengths are in quarter-note beats.  A length is notatable when it equals a
base value times its dot factor (x1, x3/2 or x7/4); triplet values are the
base value times 2/3.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Dict, List, Optional


class NoteValue(Enum):
    WHOLE = Fraction(4)
    HALF = Fraction(2)
    QUARTER = Fraction(1)
    EIGHTH = Fraction(1, 2)
    SIXTEENTH = Fraction(1, 4)
    THIRTY_SECOND = Fraction(1, 8)
    SIXTY_FOURTH = Fraction(1, 16)

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


class Dots(Enum):
    NONE = Fraction(1)
    DOTTED = Fraction(3, 2)
    DOUBLE_DOTTED = Fraction(7, 4)

    @property
    def label(self) -> str:
        return {"NONE": "", "DOTTED": "dotted", "DOUBLE_DOTTED": "double dotted"}[self.name]


_TRIPLET_FACTOR = Fraction(2, 3)


@dataclass(frozen=True)
class DurationType:
    value: NoteValue
    dots: Dots = Dots.NONE
    triplet: bool = False

    @property
    def beats(self) -> Fraction:
        beats = self.value.value * self.dots.value
        if self.triplet:
            beats *= _TRIPLET_FACTOR
        return beats

    @property
    def label(self) -> str:
        parts = [self.dots.label, self.value.label, "triplet" if self.triplet else ""]
        return " ".join(p for p in parts if p)


_STRAIGHT: Dict[Fraction, DurationType] = {
    DurationType(v, d).beats: DurationType(v, d) for v in NoteValue for d in Dots
}

_TRIPLETS: Dict[Fraction, DurationType] = {
    DurationType(v, triplet=True).beats: DurationType(v, triplet=True)
    for v in (NoteValue.HALF, NoteValue.QUARTER, NoteValue.EIGHTH, NoteValue.SIXTEENTH)
}

# every notatable straight length, longest first
NOTATABLE_LENGTHS: List[Fraction] = sorted(_STRAIGHT, reverse=True)
TRIPLET_LENGTHS: List[Fraction] = sorted(_TRIPLETS, reverse=True)


def duration_type(beats: Fraction, *, triplet: bool = False) -> Optional[DurationType]:
    """Exact lookup; None when ``beats`` is not a single notatable value."""
    if triplet and beats in _TRIPLETS:
        return _TRIPLETS[beats]
    return _STRAIGHT.get(beats)


def split_duration(beats: Fraction, step: Fraction, *, triplet: bool = False) -> List[Fraction]:
    """Break ``beats`` into notatable lengths, longest first, to be tied.

    Only lengths that are whole multiples of ``step`` are used, so every
    piece boundary stays on the grid.  The pieces sum to ``beats`` exactly.
    With ``triplet`` the pieces are triplet values instead.
    """
    if beats <= 0:
        raise ValueError(f"cannot split non-positive length {beats}")
    if beats % step:
        raise ValueError(f"length {beats} is not a multiple of step {step}")

    lengths = TRIPLET_LENGTHS if triplet else NOTATABLE_LENGTHS
    candidates = [length for length in lengths if length % step == 0]
    pieces: List[Fraction] = []
    remaining = beats
    while remaining > 0:
        fit = next((length for length in candidates if length <= remaining), None)
        if fit is None:
            raise ValueError(f"no notatable length fits {remaining} beats on step {step}")
        pieces.append(fit)
        remaining -= fit
    return pieces
