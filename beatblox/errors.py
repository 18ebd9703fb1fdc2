"""Error taxonomy for MIDI -> beat sequence conversion.

Only malformed input and broken output post-conditions are raised.  The
remaining conditions are recovered locally (the offending note is dropped or
approximated) and reported through ``logging``; ``SoftIssue`` names them so
log records stay greppable.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class SoftIssue(str, Enum):
    """Recoverable conditions.  Logged, never raised."""

    UNMATCHED_NOTE_OFF = "unmatched_note_off"
    UNCLOSED_NOTE_ON = "unclosed_note_on"
    DEGENERATE_NOTE = "degenerate_note"
    UNSUPPORTED_TUPLET = "unsupported_tuplet"


class ParseError(ValueError):
    """Base class for conversions that must abort."""


class MalformedEventError(ParseError):
    """An event's encoding is inconsistent (bad length, status or tick)."""

    def __init__(self, reason: str, *, track: Optional[int] = None, index: Optional[int] = None):
        self.reason = reason
        self.track = track
        self.index = index
        where = ""
        if track is not None:
            where = f"track {track}"
            if index is not None:
                where += f" event {index}"
            where += ": "
        super().__init__(f"malformed event: {where}{reason}")


class SequenceError(ParseError):
    """The emitted sequence violates ordering or grid alignment."""
