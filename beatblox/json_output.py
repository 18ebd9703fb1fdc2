"""Serialize a BeatEvent sequence into a JSON document.

Gaps between events become explicit rest entries here; the core leaves
them implicit.  Overlapping events (a new onset before the previous event
ended) produce no rest.
"""

from __future__ import annotations

import json
from fractions import Fraction
from pathlib import Path
from typing import List, Optional, Sequence

from .durations import duration_type, split_duration
from .emitter import BeatEvent
from .events import MidiHeader
from .midi_reader import MidiInfo

OUTPUT_VERSION = 1


def _beats_json(value: Fraction):
    """Integers stay integers; anything else becomes a "n/d" string."""
    if value.denominator == 1:
        return value.numerator
    return f"{value.numerator}/{value.denominator}"


def _event_json(ev: BeatEvent) -> dict:
    return {
        "position": _beats_json(ev.position),
        "bar": ev.bar + 1,
        "beat": _beats_json(ev.beat_in_bar + 1),
        "duration": _beats_json(ev.duration),
        "value": ev.duration_type.label if ev.duration_type is not None else None,
        "triplet": ev.is_triplet,
        "tied_from_previous": ev.tied_from_previous,
        "tied": ev.tied,
        "unsupported_tuplet": ev.unsupported_tuplet,
        "channel": ev.channel,
        "notes": [{"pitch": n.pitch, "velocity": n.velocity} for n in ev.notes],
    }


def _rest_json(position: Fraction, length: Fraction) -> dict:
    dt = duration_type(length)
    return {
        "rest": True,
        "position": _beats_json(position),
        "duration": _beats_json(length),
        "value": dt.label if dt is not None else None,
    }


def _rests(start: Fraction, length: Fraction, unit: Fraction) -> List[dict]:
    if length % unit:
        return [_rest_json(start, length)]
    out: List[dict] = []
    pos = start
    for piece in split_duration(length, unit):
        out.append(_rest_json(pos, piece))
        pos += piece
    return out


def events_to_json(events: Sequence[BeatEvent], *, rest_unit: Fraction = Fraction(1, 8)) -> List[dict]:
    """Events in order with rests filling the silences between them."""
    out: List[dict] = []
    cursor = Fraction(0)
    for ev in events:
        if ev.position > cursor:
            out.extend(_rests(cursor, ev.position - cursor, rest_unit))
        out.append(_event_json(ev))
        cursor = max(cursor, ev.end)
    return out


def build_payload(
    events: Sequence[BeatEvent],
    header: MidiHeader,
    info: Optional[MidiInfo] = None,
) -> dict:
    payload = {
        "version": OUTPUT_VERSION,
        "ticks_per_quarter_note": header.ticks_per_quarter_note,
        "time_signature": list(header.time_signature),
        "events": events_to_json(events),
    }
    if info is not None:
        payload["bpm"] = round(info.bpm, 2)
        payload["tracks"] = info.track_names
    return payload


def write_payload(payload: dict, output_path: Path | str) -> Path:
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out
