"""Tests for event stream normalization."""

import pytest

from beatblox.errors import MalformedEventError, ParseError
from beatblox.events import EventKind, MidiHeader, TrackRecord, decode_track, normalize_streams


def _on(tick, pitch, vel=100, ch=0):
    return TrackRecord(tick, 0x90 | ch, bytes([pitch, vel]))


def _off(tick, pitch, ch=0):
    return TrackRecord(tick, 0x80 | ch, bytes([pitch, 0]))


class TestDecodeTrack:
    def test_note_on_and_off(self):
        events = decode_track(0, [_on(0, 60), _off(480, 60)])
        assert [e.kind for e in events] == [EventKind.NOTE_ON, EventKind.NOTE_OFF]
        assert events[0].pitch == 60
        assert events[0].velocity == 100
        assert events[1].abs_tick == 480

    def test_zero_velocity_note_on_is_note_off(self):
        events = decode_track(0, [_on(0, 60), TrackRecord(240, 0x90, bytes([60, 0]))])
        assert events[1].kind is EventKind.NOTE_OFF

    def test_channel_taken_from_status(self):
        events = decode_track(0, [_on(0, 60, ch=9)])
        assert events[0].channel == 9

    def test_running_status(self):
        records = [
            _on(0, 60),
            TrackRecord(0, None, bytes([64, 90])),
            TrackRecord(480, None, bytes([60, 0])),
        ]
        events = decode_track(0, records)
        assert [(e.kind, e.pitch) for e in events] == [
            (EventKind.NOTE_ON, 60),
            (EventKind.NOTE_ON, 64),
            (EventKind.NOTE_OFF, 60),
        ]

    def test_running_status_without_prior_status_is_malformed(self):
        with pytest.raises(MalformedEventError, match="running status"):
            decode_track(0, [TrackRecord(0, None, bytes([60, 100]))])

    def test_system_message_cancels_running_status(self):
        records = [_on(0, 60), TrackRecord(10, 0xFF), TrackRecord(20, None, bytes([60, 0]))]
        with pytest.raises(MalformedEventError):
            decode_track(0, records)

    def test_non_note_events_are_dropped(self):
        records = [
            TrackRecord(0, 0xB0, bytes([7, 100])),  # control change
            TrackRecord(0, 0xC0, bytes([5])),  # program change
            TrackRecord(0, 0xF0),  # sysex
            TrackRecord(0, 0xFF),  # meta
            _on(0, 60),
        ]
        events = decode_track(0, records)
        assert len(events) == 1
        assert events[0].index == 4

    def test_note_on_with_one_data_byte_is_malformed(self):
        with pytest.raises(MalformedEventError, match="expects 2 data byte"):
            decode_track(3, [TrackRecord(0, 0x90, bytes([60]))])

    def test_program_change_with_two_data_bytes_is_malformed(self):
        with pytest.raises(MalformedEventError):
            decode_track(0, [TrackRecord(0, 0xC0, bytes([1, 2]))])

    def test_high_bit_data_byte_is_malformed(self):
        with pytest.raises(MalformedEventError, match="high bit"):
            decode_track(0, [TrackRecord(0, 0x90, bytes([0x80, 10]))])

    def test_invalid_status_byte(self):
        with pytest.raises(MalformedEventError, match="invalid status"):
            decode_track(0, [TrackRecord(0, 0x40, bytes([60, 10]))])

    def test_ticks_going_backwards(self):
        with pytest.raises(MalformedEventError, match="backwards"):
            decode_track(0, [_on(480, 60), _off(0, 60)])

    def test_error_carries_location(self):
        with pytest.raises(MalformedEventError) as info:
            decode_track(2, [_on(0, 60), TrackRecord(5, 0x90, b"")])
        assert info.value.track == 2
        assert info.value.index == 1
        assert isinstance(info.value, ParseError)


class TestNormalizeStreams:
    def test_merges_tracks_by_tick(self):
        streams = [
            [_on(0, 60), _off(480, 60)],
            [_on(240, 64), _off(720, 64)],
        ]
        events = normalize_streams(streams)
        assert [(e.abs_tick, e.track) for e in events] == [(0, 0), (240, 1), (480, 0), (720, 1)]

    def test_same_tick_breaks_ties_by_track_then_index(self):
        streams = [
            [_on(0, 60), _on(0, 62)],
            [_on(0, 50)],
        ]
        events = normalize_streams(streams)
        assert [e.pitch for e in events] == [60, 62, 50]

    def test_order_is_deterministic(self):
        streams = [[_on(0, 60), _off(10, 60)], [_on(0, 61), _off(10, 61)]]
        assert normalize_streams(streams) == normalize_streams(streams)

    def test_malformed_track_fails_whole_merge(self):
        streams = [[_on(0, 60), _off(480, 60)], [TrackRecord(0, 0x90, bytes([1]))]]
        with pytest.raises(MalformedEventError):
            normalize_streams(streams)


class TestMidiHeader:
    def test_bar_beats(self):
        assert MidiHeader(480, (4, 4)).bar_beats == 4
        assert MidiHeader(480, (6, 8)).bar_beats == 3
        assert MidiHeader(480, (2, 2)).bar_beats == 4

    def test_rejects_zero_ticks(self):
        with pytest.raises(ParseError):
            MidiHeader(0).validate()

    def test_rejects_non_power_of_two_denominator(self):
        with pytest.raises(ParseError, match="power of two"):
            MidiHeader(480, (4, 3)).validate()

    def test_rejects_denominator_shorter_than_sixty_fourth(self):
        MidiHeader(480, (5, 64)).validate()
        with pytest.raises(ParseError, match="<= 64"):
            MidiHeader(480, (5, 128)).validate()
