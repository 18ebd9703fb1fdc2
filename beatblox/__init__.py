"""Convert standard MIDI files into quantized, beat-aligned note sequences."""

from .chords import ChordGroup, group_chords  # noqa: F401
from .config import ConversionConfig, load_config, parse_config  # noqa: F401
from .durations import Dots, DurationType, NoteValue, duration_type, split_duration  # noqa: F401
from .emitter import BeatEvent, describe_sequence, emit_sequence  # noqa: F401
from .errors import (  # noqa: F401
    MalformedEventError,
    ParseError,
    SequenceError,
    SoftIssue,
)
from .events import EventKind, MidiHeader, RawEvent, TrackRecord, normalize_streams  # noqa: F401
from .grid import Grid, GridClassification, Precision  # noqa: F401
from .pairing import Note, pair_notes  # noqa: F401
from .pipeline import ConversionResult, convert, convert_file  # noqa: F401
from .quantize import QuantizedNote, quantize_notes, snap  # noqa: F401
from .tuplets import classify_onsets, detect_tuplets  # noqa: F401
