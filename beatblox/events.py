"""Event stream normalization.

The upstream chunk reader hands over one list of ``TrackRecord`` per track:
absolute tick, status byte (``None`` when the file used running status) and
the raw data bytes.  ``normalize_streams`` decodes them into ``RawEvent``
objects and merges every track into a single time-ordered list.

Channel voice message lengths (data bytes after the status byte):

  0x8n NoteOff          2     0xBn Control change    2
  0x9n NoteOn           2     0xCn Program change    1
  0xAn Poly pressure    2     0xDn Channel pressure  1
  0xEn Pitch bend       2

Status bytes 0xF0-0xFF (sysex, meta, system common) carry their own length
and are skipped; they also cancel running status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import List, Optional, Sequence, Tuple

from .errors import MalformedEventError, ParseError

logger = logging.getLogger(__name__)

NOTE_OFF_STATUS = 0x80
NOTE_ON_STATUS = 0x90
MAX_DENOMINATOR = 64

_DATA_LENGTHS = {
    0x80: 2,
    0x90: 2,
    0xA0: 2,
    0xB0: 2,
    0xC0: 1,
    0xD0: 1,
    0xE0: 2,
}


class EventKind(Enum):
    NOTE_ON = "note_on"
    NOTE_OFF = "note_off"


@dataclass(frozen=True)
class TrackRecord:
    """One undecoded event as produced by the chunk reader."""

    abs_tick: int
    status: Optional[int]  # None = running status
    data: bytes = b""


@dataclass(frozen=True)
class RawEvent:
    """A decoded note event with its global ordering key."""

    track: int
    abs_tick: int
    kind: EventKind
    pitch: int
    velocity: int
    channel: int
    index: int = 0  # position within the source track

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        return (self.abs_tick, self.track, self.index)


@dataclass(frozen=True)
class MidiHeader:
    """File-level fields the core needs from the MIDI header chunk."""

    ticks_per_quarter_note: int
    time_signature: Tuple[int, int] = (4, 4)
    track_count: int = 1

    def validate(self) -> None:
        if self.ticks_per_quarter_note <= 0:
            raise ParseError(
                f"ticks_per_quarter_note must be positive, got {self.ticks_per_quarter_note}"
            )
        numerator, denominator = self.time_signature
        if numerator < 1:
            raise ParseError(f"time signature numerator must be >= 1, got {numerator}")
        if denominator < 1 or denominator & (denominator - 1):
            raise ParseError(
                f"time signature denominator must be a power of two, got {denominator}"
            )
        if denominator > MAX_DENOMINATOR:
            # bar lengths must stay notatable with sixty-fourth notes
            raise ParseError(
                f"time signature denominator must be <= {MAX_DENOMINATOR}, got {denominator}"
            )

    @property
    def bar_beats(self) -> Fraction:
        """Length of one bar in quarter-note beats."""
        numerator, denominator = self.time_signature
        return Fraction(numerator * 4, denominator)


def decode_track(track: int, records: Sequence[TrackRecord]) -> List[RawEvent]:
    """Decode one track's records into note events.

    Raises ``MalformedEventError`` on the first inconsistent record; nothing
    decoded so far is returned in that case.
    """
    events: List[RawEvent] = []
    running: Optional[int] = None
    last_tick = 0

    for index, rec in enumerate(records):
        if rec.abs_tick < 0:
            raise MalformedEventError(f"negative tick {rec.abs_tick}", track=track, index=index)
        if rec.abs_tick < last_tick:
            raise MalformedEventError(
                f"tick {rec.abs_tick} goes backwards (previous {last_tick})",
                track=track,
                index=index,
            )
        last_tick = rec.abs_tick

        status = rec.status
        if status is None:
            if running is None:
                raise MalformedEventError(
                    "running status with no preceding status byte", track=track, index=index
                )
            status = running
        elif not 0x80 <= status <= 0xFF:
            raise MalformedEventError(
                f"invalid status byte 0x{status:02X}", track=track, index=index
            )

        if status >= 0xF0:
            # sysex / meta / system common: not a note, cancels running status
            running = None
            logger.debug("track %d event %d: skipping system status 0x%02X", track, index, status)
            continue

        running = status
        high = status & 0xF0
        expected = _DATA_LENGTHS[high]
        if len(rec.data) != expected:
            raise MalformedEventError(
                f"status 0x{status:02X} expects {expected} data byte(s), got {len(rec.data)}",
                track=track,
                index=index,
            )
        for value in rec.data:
            if value > 0x7F:
                raise MalformedEventError(
                    f"data byte 0x{value:02X} has the high bit set", track=track, index=index
                )

        if high not in (NOTE_ON_STATUS, NOTE_OFF_STATUS):
            continue

        pitch, velocity = rec.data[0], rec.data[1]
        if high == NOTE_ON_STATUS and velocity > 0:
            kind = EventKind.NOTE_ON
        else:
            kind = EventKind.NOTE_OFF
        events.append(
            RawEvent(
                track=track,
                abs_tick=rec.abs_tick,
                kind=kind,
                pitch=pitch,
                velocity=velocity,
                channel=status & 0x0F,
                index=index,
            )
        )

    return events


def normalize_streams(streams: Sequence[Sequence[TrackRecord]]) -> List[RawEvent]:
    """Merge per-track records into one list ordered by (tick, track, index)."""
    merged: List[RawEvent] = []
    for track, records in enumerate(streams):
        merged.extend(decode_track(track, records))
    merged.sort(key=lambda ev: ev.sort_key)
    return merged
