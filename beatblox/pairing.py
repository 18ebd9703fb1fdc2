"""Pair NoteOn/NoteOff events into notes, merging ties.

Unmatched NoteOns are queued per (pitch, channel) and closed FIFO, so
overlapping retriggers of the same key close in the order they started.

A NoteOn that arrives within ``tie_epsilon`` ticks of the NoteOff that closed
the previous note on the same key (and with nothing else still sounding on
that key) re-opens that note instead of starting a new one.  The merged note
keeps the first onset and is flagged ``tied``.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, List, Set, Tuple

from .errors import SoftIssue
from .events import EventKind, RawEvent

logger = logging.getLogger(__name__)

NoteKey = Tuple[int, int]  # (pitch, channel)


@dataclass
class Note:
    """A sounding note in absolute ticks."""

    pitch: int
    velocity: int
    start_tick: int
    end_tick: int
    channel: int
    tied: bool = False
    track: int = 0
    segments: int = 1  # number of MIDI note events merged into this note

    @property
    def duration_ticks(self) -> int:
        return self.end_tick - self.start_tick


@dataclass
class _OpenNote:
    note: Note
    reopened: bool = False


def pair_notes(events: Iterable[RawEvent], *, tie_epsilon: int = 0) -> List[Note]:
    """Build notes from a normalized event list.

    Returns notes in onset order.  Notes still open at the end of the stream
    are dropped, as are zero-length notes.
    """
    if tie_epsilon < 0:
        raise ValueError(f"tie_epsilon must be >= 0, got {tie_epsilon}")

    pending: Dict[NoteKey, Deque[_OpenNote]] = defaultdict(deque)
    last_closed: Dict[NoteKey, Note] = {}
    notes: List[Note] = []
    dropped: Set[int] = set()

    for ev in events:
        key = (ev.pitch, ev.channel)

        if ev.kind is EventKind.NOTE_ON:
            prev = last_closed.pop(key, None)
            if (
                prev is not None
                and not pending[key]
                and 0 <= ev.abs_tick - prev.end_tick <= tie_epsilon
            ):
                prev.tied = True
                prev.segments += 1
                pending[key].append(_OpenNote(prev, reopened=True))
                logger.debug(
                    "tie: pitch %d ch %d continues at tick %d (started %d)",
                    ev.pitch,
                    ev.channel,
                    ev.abs_tick,
                    prev.start_tick,
                )
                continue

            note = Note(
                pitch=ev.pitch,
                velocity=ev.velocity,
                start_tick=ev.abs_tick,
                end_tick=ev.abs_tick,
                channel=ev.channel,
                track=ev.track,
            )
            pending[key].append(_OpenNote(note))
            notes.append(note)
            continue

        queue = pending.get(key)
        if not queue:
            logger.debug(
                "%s: pitch %d ch %d at tick %d",
                SoftIssue.UNMATCHED_NOTE_OFF.value,
                ev.pitch,
                ev.channel,
                ev.abs_tick,
            )
            continue

        entry = queue.popleft()
        note = entry.note
        if ev.abs_tick <= note.start_tick:
            dropped.add(id(note))
            logger.warning(
                "%s: pitch %d ch %d has zero length at tick %d",
                SoftIssue.DEGENERATE_NOTE.value,
                note.pitch,
                note.channel,
                note.start_tick,
            )
            continue
        note.end_tick = ev.abs_tick
        last_closed[key] = note

    for key, queue in pending.items():
        for entry in queue:
            note = entry.note
            if entry.reopened:
                # only the trailing segment is unclosed; keep what was closed
                note.segments -= 1
                note.tied = note.segments > 1
            else:
                dropped.add(id(note))
            logger.warning(
                "%s: pitch %d ch %d opened at tick %d never closed",
                SoftIssue.UNCLOSED_NOTE_ON.value,
                key[0],
                key[1],
                note.start_tick if not entry.reopened else note.end_tick,
            )

    return [n for n in notes if id(n) not in dropped]
