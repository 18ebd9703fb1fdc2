"""Read a standard MIDI file with mido and hand its events to the core.

mido already resolves running status and delta times, so each channel
message is re-expanded into ``TrackRecord(abs_tick, status, data)`` from its
raw bytes.  Meta and sysex messages are passed through as bare system status
records so the normalizer sees the complete stream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import mido

from .errors import ParseError
from .events import MidiHeader, TrackRecord

logger = logging.getLogger(__name__)

DEFAULT_TEMPO = 500000  # microseconds per quarter note (120 BPM)
DEFAULT_TIME_SIGNATURE = (4, 4)

META_STATUS = 0xFF
SYSEX_STATUS = 0xF0


@dataclass(frozen=True)
class TimeSignatureEvent:
    numerator: int
    denominator: int
    tick: int


@dataclass
class MidiInfo:
    """File facts that are not needed by the core but useful to callers."""

    ticks_per_quarter_note: int
    midi_type: int = 1
    tempo: int = DEFAULT_TEMPO
    time_signatures: List[TimeSignatureEvent] = field(default_factory=list)
    track_names: List[str] = field(default_factory=list)

    @property
    def bpm(self) -> float:
        return mido.tempo2bpm(self.tempo)

    @property
    def time_signature(self) -> Tuple[int, int]:
        if not self.time_signatures:
            return DEFAULT_TIME_SIGNATURE
        first = self.time_signatures[0]
        return (first.numerator, first.denominator)


def track_records(track: mido.MidiTrack) -> List[TrackRecord]:
    records: List[TrackRecord] = []
    abs_tick = 0
    for msg in track:
        abs_tick += msg.time
        if msg.is_meta:
            records.append(TrackRecord(abs_tick=abs_tick, status=META_STATUS))
            continue
        if msg.type == "sysex":
            records.append(TrackRecord(abs_tick=abs_tick, status=SYSEX_STATUS))
            continue
        raw = msg.bytes()
        records.append(TrackRecord(abs_tick=abs_tick, status=raw[0], data=bytes(raw[1:])))
    return records


def _scan_meta(mid: mido.MidiFile) -> MidiInfo:
    info = MidiInfo(ticks_per_quarter_note=mid.ticks_per_beat, midi_type=mid.type)
    tempos: List[int] = []
    for track in mid.tracks:
        name = ""
        abs_tick = 0
        for msg in track:
            abs_tick += msg.time
            if msg.type == "track_name" and not name:
                name = msg.name
            elif msg.type == "set_tempo":
                tempos.append(msg.tempo)
            elif msg.type == "time_signature":
                info.time_signatures.append(
                    TimeSignatureEvent(msg.numerator, msg.denominator, abs_tick)
                )
        info.track_names.append(name)

    info.time_signatures.sort(key=lambda ts: ts.tick)
    if tempos:
        info.tempo = tempos[0]
    if len(set(tempos)) > 1:
        logger.warning("tempo changes are not supported; using %.2f BPM throughout", info.bpm)
    if len({(ts.numerator, ts.denominator) for ts in info.time_signatures}) > 1:
        logger.warning(
            "time signature changes are not supported; using %d/%d throughout",
            *info.time_signature,
        )
    return info


def read_midi(
    mid: mido.MidiFile,
    *,
    time_signature: Optional[Tuple[int, int]] = None,
) -> Tuple[List[List[TrackRecord]], MidiHeader, MidiInfo]:
    """Split a parsed ``mido.MidiFile`` into (streams, header, info).

    ``time_signature`` overrides the file's first time signature.
    """
    info = _scan_meta(mid)
    header = MidiHeader(
        ticks_per_quarter_note=mid.ticks_per_beat,
        time_signature=time_signature or info.time_signature,
        track_count=len(mid.tracks),
    )
    streams = [track_records(track) for track in mid.tracks]
    return streams, header, info


def load_midi_file(path: Path | str) -> mido.MidiFile:
    midi_path = Path(path).expanduser()
    if not midi_path.is_file():
        raise FileNotFoundError(f"no such MIDI file: {midi_path}")
    try:
        return mido.MidiFile(str(midi_path))
    except (OSError, EOFError, ValueError, KeyError) as exc:
        raise ParseError(f"{midi_path}: {exc}") from exc
