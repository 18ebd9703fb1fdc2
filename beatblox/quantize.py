"""Snap beat positions and durations onto the straight grid."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from fractions import Fraction
from typing import Iterable, List, Optional

from .beats import BeatNote
from .errors import SoftIssue
from .grid import Grid, GridClassification
from .pairing import Note

logger = logging.getLogger(__name__)

_HALF = Fraction(1, 2)


@dataclass(frozen=True)
class QuantizedNote:
    note: Note
    start: Fraction  # raw onset, beats
    duration: Fraction  # raw length, beats
    grid_start: Fraction
    grid_duration: Fraction
    classification: GridClassification = GridClassification.STRAIGHT
    off_grid: bool = False  # onset missed the grid by more than fuzz_ticks

    @property
    def is_triplet(self) -> bool:
        return self.classification is GridClassification.TRIPLET

    @property
    def pitch(self) -> int:
        return self.note.pitch

    @property
    def velocity(self) -> int:
        return self.note.velocity

    @property
    def channel(self) -> int:
        return self.note.channel

    @property
    def tied(self) -> bool:
        return self.note.tied

    @property
    def grid_end(self) -> Fraction:
        return self.grid_start + self.grid_duration

    def with_grid(
        self,
        grid_start: Fraction,
        grid_duration: Fraction,
        classification: GridClassification,
    ) -> "QuantizedNote":
        return replace(
            self,
            grid_start=grid_start,
            grid_duration=grid_duration,
            classification=classification,
        )


def snap(position: Fraction, step: Fraction) -> Fraction:
    """Nearest multiple of ``step``; exact halves round up."""
    return math.floor(position / step + _HALF) * step


def within_fuzz(position: Fraction, target: Fraction, ticks_per_quarter_note: int, fuzz_ticks: int) -> bool:
    return abs(position - target) * ticks_per_quarter_note <= fuzz_ticks


def quantize_note(bn: BeatNote, grid: Grid, ticks_per_quarter_note: int) -> Optional[QuantizedNote]:
    """Quantize one note, or return None when its length collapses to nothing.

    A length that rounds to zero steps is dropped if the raw length is itself
    within ``fuzz_ticks`` of zero; otherwise it is clamped to one step.
    """
    step = grid.step
    grid_start = snap(bn.start, step)
    off_grid = not within_fuzz(bn.start, grid_start, ticks_per_quarter_note, grid.fuzz_ticks)

    grid_duration = snap(bn.duration, step)
    if grid_duration <= 0:
        if bn.duration * ticks_per_quarter_note <= grid.fuzz_ticks:
            logger.warning(
                "%s: pitch %d at tick %d lasts %d tick(s), dropped",
                SoftIssue.DEGENERATE_NOTE.value,
                bn.note.pitch,
                bn.note.start_tick,
                bn.note.duration_ticks,
            )
            return None
        grid_duration = step

    return QuantizedNote(
        note=bn.note,
        start=bn.start,
        duration=bn.duration,
        grid_start=grid_start,
        grid_duration=grid_duration,
        off_grid=off_grid,
    )


def quantize_notes(notes: Iterable[BeatNote], grid: Grid, ticks_per_quarter_note: int) -> List[QuantizedNote]:
    out: List[QuantizedNote] = []
    for bn in notes:
        qn = quantize_note(bn, grid, ticks_per_quarter_note)
        if qn is not None:
            out.append(qn)
    return out
