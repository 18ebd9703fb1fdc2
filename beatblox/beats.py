"""Tick -> beat conversion.

Beats are quarter notes: ``beat = tick / ticks_per_quarter_note``.  Every
position is an exact ``Fraction`` so later grid comparisons never accumulate
float error.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, List, Tuple

from .events import MidiHeader
from .pairing import Note


@dataclass(frozen=True)
class BeatNote:
    note: Note
    start: Fraction  # onset in beats
    duration: Fraction  # length in beats

    @property
    def end(self) -> Fraction:
        return self.start + self.duration


def tick_to_beat(tick: int, ticks_per_quarter_note: int) -> Fraction:
    return Fraction(tick, ticks_per_quarter_note)


def beat_to_ticks(beat: Fraction, ticks_per_quarter_note: int) -> Fraction:
    """Inverse of ``tick_to_beat``; may be fractional for off-tick grid points."""
    return beat * ticks_per_quarter_note


def map_beats(notes: Iterable[Note], header: MidiHeader) -> List[BeatNote]:
    tpq = header.ticks_per_quarter_note
    return [
        BeatNote(
            note=n,
            start=tick_to_beat(n.start_tick, tpq),
            duration=tick_to_beat(n.end_tick - n.start_tick, tpq),
        )
        for n in notes
    ]


def bar_position(position: Fraction, bar_beats: Fraction) -> Tuple[int, Fraction]:
    """Split a beat position into (0-based bar, beat offset inside the bar)."""
    bar = position // bar_beats
    return int(bar), position - bar * bar_beats
