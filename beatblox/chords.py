"""Group quantized notes that share a grid slot into chords."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, Iterable, List, Tuple

from .grid import GridClassification
from .quantize import QuantizedNote

# (grid_start, grid_duration, is_triplet, channel)
ChordKey = Tuple[Fraction, Fraction, bool, int]


@dataclass(frozen=True)
class ChordGroup:
    """Notes sounding together as one rhythmic event, pitch-ascending.

    A group of one note is a plain note.  Velocities stay per note.
    """

    grid_start: Fraction
    grid_duration: Fraction
    is_triplet: bool
    channel: int
    notes: Tuple[QuantizedNote, ...]

    @property
    def key(self) -> ChordKey:
        return (self.grid_start, self.grid_duration, self.is_triplet, self.channel)

    @property
    def is_chord(self) -> bool:
        return len(self.notes) > 1

    @property
    def pitches(self) -> Tuple[int, ...]:
        return tuple(n.pitch for n in self.notes)

    @property
    def velocities(self) -> Tuple[int, ...]:
        return tuple(n.velocity for n in self.notes)

    @property
    def tied(self) -> bool:
        return any(n.tied for n in self.notes)

    @property
    def unsupported_tuplet(self) -> bool:
        return any(n.classification is GridClassification.UNSUPPORTED for n in self.notes)


def chord_key(qn: QuantizedNote) -> ChordKey:
    return (qn.grid_start, qn.grid_duration, qn.is_triplet, qn.channel)


def _member_order(qn: QuantizedNote):
    n = qn.note
    return (n.pitch, n.velocity, n.start_tick, n.end_tick, n.track, n.segments)


def group_chords(notes: Iterable[QuantizedNote]) -> List[ChordGroup]:
    """Merge notes by grid slot.  The result does not depend on input order."""
    buckets: Dict[ChordKey, List[QuantizedNote]] = defaultdict(list)
    for qn in notes:
        buckets[chord_key(qn)].append(qn)

    groups = [
        ChordGroup(
            grid_start=key[0],
            grid_duration=key[1],
            is_triplet=key[2],
            channel=key[3],
            notes=tuple(sorted(members, key=_member_order)),
        )
        for key, members in buckets.items()
    ]
    groups.sort(key=lambda g: g.key)
    return groups
