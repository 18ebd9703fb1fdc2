"""Package chord groups into the final ordered BeatEvent sequence.

Each group becomes one event, unless its length is not a single notatable
value or it runs over a bar line; then it is emitted as a chain of tied
pieces and every piece after the first is ``tied_from_previous``.  Rests are
not modelled: a gap between events is left to the output adapter.

Triplet groups are cut into triplet values, and at a bar line only when the
bar line falls on a third of a beat.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, List, Optional, Sequence, Tuple

from .beats import bar_position
from .chords import ChordGroup
from .durations import DurationType, duration_type, split_duration
from .errors import SequenceError
from .events import MidiHeader
from .grid import TRIPLET_STEP, Grid
from .quantize import QuantizedNote


@dataclass(frozen=True)
class BeatEvent:
    position: Fraction  # beats from the start of the file
    duration: Fraction
    notes: Tuple[QuantizedNote, ...]  # pitch-ascending
    channel: int
    is_triplet: bool
    tied_from_previous: bool
    bar: int  # 0-based
    beat_in_bar: Fraction
    duration_type: Optional[DurationType]
    tied: bool = False  # built from tie-merged MIDI notes
    unsupported_tuplet: bool = False  # tuplet rhythm forced onto the straight grid

    @property
    def end(self) -> Fraction:
        return self.position + self.duration

    @property
    def is_chord(self) -> bool:
        return len(self.notes) > 1

    @property
    def pitches(self) -> Tuple[int, ...]:
        return tuple(n.pitch for n in self.notes)

    @property
    def velocities(self) -> Tuple[int, ...]:
        return tuple(n.velocity for n in self.notes)


def _fraction_gcd(a: Fraction, b: Fraction) -> Fraction:
    den = a.denominator * b.denominator // math.gcd(a.denominator, b.denominator)
    return Fraction(math.gcd(int(a * den), int(b * den)), den)


def alignment_unit(grid: Grid, bar_beats: Fraction) -> Fraction:
    """Smallest straight unit an emitted position may fall on."""
    return _fraction_gcd(grid.step, bar_beats)


def _bar_segments(start: Fraction, length: Fraction, bar_beats: Fraction) -> List[Tuple[Fraction, Fraction]]:
    segments: List[Tuple[Fraction, Fraction]] = []
    end = start + length
    pos = start
    while pos < end:
        bar_end = (pos // bar_beats + 1) * bar_beats
        seg_end = min(end, bar_end)
        segments.append((pos, seg_end - pos))
        pos = seg_end
    return segments


def _group_pieces(group: ChordGroup, bar_beats: Fraction, unit: Fraction) -> List[Tuple[Fraction, Fraction]]:
    triplet = group.is_triplet
    step = TRIPLET_STEP if triplet else unit
    if triplet and bar_beats % TRIPLET_STEP:
        # a bar line between two thirds cannot be a piece boundary
        segments = [(group.grid_start, group.grid_duration)]
    else:
        segments = _bar_segments(group.grid_start, group.grid_duration, bar_beats)
    pieces: List[Tuple[Fraction, Fraction]] = []
    for seg_start, seg_len in segments:
        if duration_type(seg_len, triplet=triplet) is not None:
            pieces.append((seg_start, seg_len))
            continue
        pos = seg_start
        for length in split_duration(seg_len, step, triplet=triplet):
            pieces.append((pos, length))
            pos += length
    return pieces


def _event_order(ev: BeatEvent):
    return (ev.position, ev.channel, ev.is_triplet, ev.duration, ev.pitches)


def emit_sequence(groups: Iterable[ChordGroup], header: MidiHeader, grid: Grid) -> List[BeatEvent]:
    bar_beats = header.bar_beats
    unit = alignment_unit(grid, bar_beats)

    events: List[BeatEvent] = []
    for group in groups:
        for i, (position, length) in enumerate(_group_pieces(group, bar_beats, unit)):
            bar, beat_in_bar = bar_position(position, bar_beats)
            events.append(
                BeatEvent(
                    position=position,
                    duration=length,
                    notes=group.notes,
                    channel=group.channel,
                    is_triplet=group.is_triplet,
                    tied_from_previous=i > 0,
                    bar=bar,
                    beat_in_bar=beat_in_bar,
                    duration_type=duration_type(length, triplet=group.is_triplet),
                    tied=group.tied,
                    unsupported_tuplet=group.unsupported_tuplet,
                )
            )

    events.sort(key=_event_order)
    validate_sequence(events, grid, bar_beats)
    return events


def validate_sequence(events: Sequence[BeatEvent], grid: Grid, bar_beats: Fraction) -> None:
    """Raise ``SequenceError`` unless events are ordered and on the grid."""
    unit = alignment_unit(grid, bar_beats)
    previous = Fraction(0)
    for i, ev in enumerate(events):
        if ev.position < previous:
            raise SequenceError(f"event {i} at beat {ev.position} is before beat {previous}")
        if ev.duration <= 0:
            raise SequenceError(f"event {i} at beat {ev.position} has length {ev.duration}")
        step = TRIPLET_STEP if ev.is_triplet else unit
        if ev.position % step or (not ev.is_triplet and ev.duration % step):
            raise SequenceError(f"event {i} at beat {ev.position} is off the grid")
        previous = ev.position


def describe_event(ev: BeatEvent) -> str:
    beat = ev.beat_in_bar + 1
    where = f"bar {ev.bar + 1:>3} beat {str(beat):<5}"
    if ev.duration_type is not None:
        length = ev.duration_type.label
    else:
        length = f"{ev.duration} beats"
    pitches = " ".join(str(p) for p in ev.pitches)
    velocities = "/".join(str(v) for v in ev.velocities)
    kind = "chord" if ev.is_chord else "note"
    tie = "~ " if ev.tied_from_previous else ""
    return f"{where} ch{ev.channel:<2} {tie}{kind} [{pitches}] {length} vel {velocities}"


def describe_sequence(events: Iterable[BeatEvent]) -> List[str]:
    return [describe_event(ev) for ev in events]
