"""Conversion entry points.

``convert`` runs the whole rhythm pipeline on already-read event streams:

    normalize -> pair -> beats -> quantize -> tuplets -> chords -> emit

Each stage consumes the complete output of the previous one.  No state
survives between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, List, Optional, Sequence

from .beats import map_beats
from .chords import group_chords
from .config import ConversionConfig
from .emitter import BeatEvent, emit_sequence
from .events import MidiHeader, TrackRecord, normalize_streams
from .grid import Grid
from .midi_reader import MidiInfo, load_midi_file, read_midi
from .pairing import pair_notes
from .quantize import quantize_notes
from .tuplets import detect_tuplets


@dataclass(frozen=True)
class ConversionResult:
    header: MidiHeader
    info: MidiInfo
    events: List[BeatEvent]


def convert(
    streams: Sequence[Sequence[TrackRecord]],
    header: MidiHeader,
    grid: Grid,
    *,
    tie_epsilon: int = 0,
    tracks: Optional[AbstractSet[int]] = None,
) -> List[BeatEvent]:
    """Turn per-track event records into an ordered BeatEvent sequence.

    Parameters
    ----------
    streams : sequence of sequences of TrackRecord
        One record list per track; the list index is the track number.
    header : MidiHeader
        Ticks per quarter note and the (constant) time signature.
    grid : Grid
        Quantization settings.
    tie_epsilon : int
        Largest NoteOff -> NoteOn gap, in ticks, that still ties two notes.
    tracks : set[int], optional
        Restrict the output to these track indices.  Every track is still
        decoded, so a malformed track fails the run either way.

    Raises ``ParseError`` (``MalformedEventError``, ``SequenceError``) when
    the input is malformed; nothing is returned in that case.
    """
    header.validate()
    tpq = header.ticks_per_quarter_note

    events = normalize_streams(streams)
    if tracks is not None:
        events = [ev for ev in events if ev.track in tracks]

    notes = pair_notes(events, tie_epsilon=tie_epsilon)
    quantized = quantize_notes(map_beats(notes, header), grid, tpq)
    quantized = detect_tuplets(quantized, grid, tpq)
    return emit_sequence(group_chords(quantized), header, grid)


def convert_file(
    path: Path | str,
    config: ConversionConfig,
    *,
    tracks: Optional[AbstractSet[int]] = None,
) -> ConversionResult:
    mid = load_midi_file(path)
    streams, header, info = read_midi(mid, time_signature=config.time_signature)
    events = convert(
        streams,
        header,
        config.grid,
        tie_epsilon=config.tie_epsilon,
        tracks=tracks,
    )
    return ConversionResult(header=header, info=info, events=events)
