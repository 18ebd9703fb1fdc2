"""Quantization grid configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction


class Precision(Enum):
    """Grid resolution; the value is the step length in quarter-note beats."""

    WHOLE = Fraction(4)
    HALF = Fraction(2)
    QUARTER = Fraction(1)
    EIGHTH = Fraction(1, 2)
    SIXTEENTH = Fraction(1, 4)

    @property
    def step(self) -> Fraction:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "Precision":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            valid = ", ".join(p.name.lower() for p in cls)
            raise ValueError(f"precision must be one of: {valid}") from None


TRIPLET_STEP = Fraction(1, 3)


@dataclass(frozen=True)
class Grid:
    """Quantization settings for one conversion.

    ``fuzz_ticks`` is the largest distance (in file ticks) at which a raw
    position still counts as sitting on a grid point.  It has no default.
    """

    precision: Precision
    triplet_enabled: bool
    fuzz_ticks: int

    def __post_init__(self) -> None:
        if not isinstance(self.precision, Precision):
            raise ValueError(f"precision must be a Precision, got {self.precision!r}")
        if not isinstance(self.fuzz_ticks, int) or isinstance(self.fuzz_ticks, bool):
            raise ValueError("fuzz_ticks must be an integer")
        if self.fuzz_ticks < 0:
            raise ValueError(f"fuzz_ticks must be >= 0, got {self.fuzz_ticks}")

    @property
    def step(self) -> Fraction:
        return self.precision.step


class GridClassification(Enum):
    """How a note's rhythm was resolved."""

    STRAIGHT = "straight"
    TRIPLET = "triplet"  # eighth-note triplet, thirds of a beat
    UNSUPPORTED = "unsupported"  # other tuplet; kept on the straight grid
