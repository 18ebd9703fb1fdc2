"""End-to-end tests for the conversion entry point."""

import logging
from fractions import Fraction

import pytest

from beatblox.errors import MalformedEventError, ParseError
from beatblox.events import MidiHeader, TrackRecord
from beatblox.grid import Grid, Precision
from beatblox.pipeline import convert

TPQ = 480
HEADER = MidiHeader(ticks_per_quarter_note=TPQ, time_signature=(4, 4), track_count=1)


def _track(notes, channel=0):
    """Records from (onset_tick, pitch, duration_ticks, velocity) tuples."""
    events = []
    for onset, pitch, dur, vel in notes:
        events.append((onset, 1, TrackRecord(onset, 0x90 | channel, bytes([pitch, vel]))))
        events.append((onset + dur, 0, TrackRecord(onset + dur, 0x80 | channel, bytes([pitch, 0]))))
    events.sort(key=lambda item: (item[0], item[1]))
    return [rec for _, _, rec in events]


def _grid(precision=Precision.SIXTEENTH, triplets=False, fuzz=5):
    return Grid(precision=precision, triplet_enabled=triplets, fuzz_ticks=fuzz)


def test_aligned_note_duration_is_exact():
    events = convert([_track([(480, 60, 720, 100)])], HEADER, _grid())
    (ev,) = events
    assert ev.position == 1
    assert ev.duration == Fraction(720, TPQ)
    assert ev.duration_type.label == "dotted quarter"


def test_three_zero_gap_segments_merge_into_one_event():
    records = _track([(0, 60, 480, 100), (480, 60, 480, 100), (960, 60, 960, 100)])
    events = convert([records], HEADER, _grid())
    assert len(events) == 1
    assert events[0].duration == 4
    assert events[0].tied is True


def test_triplet_scenario():
    records = _track([(0, 60, 160, 100), (160, 62, 160, 100), (320, 64, 160, 100)])
    events = convert([records], HEADER, _grid(Precision.EIGHTH, triplets=True))
    assert len(events) == 3
    assert all(e.is_triplet for e in events)
    assert [e.position for e in events] == [0, Fraction(1, 3), Fraction(2, 3)]
    assert [e.duration for e in events] == [Fraction(1, 3)] * 3


def test_fuzzy_onset_snaps():
    events = convert([_track([(241, 60, 120, 100)])], HEADER, _grid(Precision.SIXTEENTH, fuzz=5))
    assert events[0].position == Fraction(240, TPQ)


def test_malformed_note_on_fails_whole_conversion():
    records = _track([(0, 60, 480, 100)]) + [TrackRecord(960, 0x90, bytes([62]))]
    with pytest.raises(MalformedEventError):
        convert([records], HEADER, _grid())


def test_unclosed_note_is_absent_without_error(caplog):
    records = _track([(0, 60, 480, 100)]) + [TrackRecord(960, 0x90, bytes([67, 100]))]
    with caplog.at_level(logging.WARNING):
        events = convert([records], HEADER, _grid())
    assert [e.pitches for e in events] == [(60,)]
    assert "unclosed_note_on" in caplog.text


def test_chord_across_tracks_same_channel():
    streams = [_track([(0, 60, 480, 100)]), _track([(0, 64, 480, 80)])]
    header = MidiHeader(ticks_per_quarter_note=TPQ, track_count=2)
    (ev,) = convert(streams, header, _grid())
    assert ev.pitches == (60, 64)
    assert ev.velocities == (100, 80)


def test_different_channels_stay_separate_voices():
    streams = [_track([(0, 60, 480, 100)], channel=0), _track([(0, 64, 480, 80)], channel=1)]
    header = MidiHeader(ticks_per_quarter_note=TPQ, track_count=2)
    events = convert(streams, header, _grid())
    assert [e.channel for e in events] == [0, 1]


def test_track_filter():
    streams = [_track([(0, 60, 480, 100)]), _track([(0, 64, 480, 80)])]
    header = MidiHeader(ticks_per_quarter_note=TPQ, track_count=2)
    events = convert(streams, header, _grid(), tracks={1})
    assert [e.pitches for e in events] == [(64,)]


def test_track_filter_still_rejects_malformed_tracks():
    streams = [[TrackRecord(0, 0x90, b"")], _track([(0, 64, 480, 80)])]
    header = MidiHeader(ticks_per_quarter_note=TPQ, track_count=2)
    with pytest.raises(MalformedEventError):
        convert(streams, header, _grid(), tracks={1})


def test_tie_epsilon_passed_through():
    records = _track([(0, 60, 478, 100), (480, 60, 480, 100)])
    assert len(convert([records], HEADER, _grid())) == 2
    assert len(convert([records], HEADER, _grid(), tie_epsilon=2)) == 1


def test_output_is_ordered_and_on_grid():
    notes = [(i * 117, 60 + (i % 5), 200, 90) for i in range(40)]
    events = convert([_track(notes)], HEADER, _grid(Precision.EIGHTH, fuzz=30))
    positions = [e.position for e in events]
    assert positions == sorted(positions)
    assert all(p % Fraction(1, 2) == 0 for p in positions)


def test_repeated_runs_are_identical():
    streams = [_track([(0, 60, 240, 100), (3, 64, 236, 90)]), _track([(240, 67, 240, 80)])]
    header = MidiHeader(ticks_per_quarter_note=TPQ, track_count=2)
    assert convert(streams, header, _grid()) == convert(streams, header, _grid())


def test_empty_input():
    assert convert([[]], HEADER, _grid()) == []


def test_sixty_fourth_time_signature_converts():
    header = MidiHeader(ticks_per_quarter_note=TPQ, time_signature=(5, 64))
    events = convert([_track([(0, 60, 480, 100)])], header, _grid())
    assert sum(e.duration for e in events) == 1
    assert all(e.duration_type is not None for e in events)


def test_unnotatable_bar_length_is_a_parse_error():
    header = MidiHeader(ticks_per_quarter_note=TPQ, time_signature=(5, 128))
    with pytest.raises(ParseError, match="<= 64"):
        convert([_track([(0, 60, 480, 100)])], header, _grid())
