"""Tests for note value lookup and tie decomposition."""

from fractions import Fraction

import pytest

from beatblox.durations import Dots, DurationType, NoteValue, duration_type, split_duration


@pytest.mark.parametrize(
    "beats, value, dots",
    [
        (Fraction(1), NoteValue.QUARTER, Dots.NONE),
        (Fraction(3, 4), NoteValue.EIGHTH, Dots.DOTTED),
        (Fraction(7), NoteValue.WHOLE, Dots.DOUBLE_DOTTED),
        (Fraction(1, 4), NoteValue.SIXTEENTH, Dots.NONE),
        (Fraction(3), NoteValue.HALF, Dots.DOTTED),
    ],
)
def test_duration_type_lookup(beats, value, dots):
    assert duration_type(beats) == DurationType(value, dots)


def test_unnotatable_length():
    assert duration_type(Fraction(5)) is None
    assert duration_type(Fraction(1, 3)) is None


def test_triplet_lookup():
    dt = duration_type(Fraction(1, 3), triplet=True)
    assert dt == DurationType(NoteValue.EIGHTH, triplet=True)
    assert dt.label == "eighth triplet"
    assert duration_type(Fraction(2, 3), triplet=True).value is NoteValue.QUARTER


def test_triplet_lookup_falls_back_to_straight():
    assert duration_type(Fraction(1), triplet=True) == DurationType(NoteValue.QUARTER)


def test_labels():
    assert DurationType(NoteValue.QUARTER, Dots.DOTTED).label == "dotted quarter"
    assert DurationType(NoteValue.THIRTY_SECOND).label == "thirty-second"
    assert DurationType(NoteValue.HALF, Dots.DOUBLE_DOTTED).label == "double dotted half"


def test_split_sums_exactly():
    pieces = split_duration(Fraction(5), Fraction(1, 4))
    assert pieces == [Fraction(4), Fraction(1)]
    assert sum(pieces) == 5


def test_split_respects_step():
    # dotted eighth (3/4) is not a multiple of a half-beat step
    assert split_duration(Fraction(5, 2), Fraction(1, 2)) == [Fraction(2), Fraction(1, 2)]
    assert split_duration(Fraction(9, 4), Fraction(1, 4)) == [Fraction(2), Fraction(1, 4)]


def test_split_uses_dotted_values():
    assert split_duration(Fraction(3, 2), Fraction(1, 2)) == [Fraction(3, 2)]


def test_split_rejects_off_step_length():
    with pytest.raises(ValueError, match="not a multiple"):
        split_duration(Fraction(1, 3), Fraction(1, 4))


def test_split_rejects_non_positive():
    with pytest.raises(ValueError):
        split_duration(Fraction(0), Fraction(1, 4))


def test_sixty_fourth_is_shortest_value():
    assert duration_type(Fraction(1, 16)) == DurationType(NoteValue.SIXTY_FOURTH)
    assert split_duration(Fraction(5, 16), Fraction(1, 16)) == [Fraction(1, 4), Fraction(1, 16)]


def test_split_into_triplet_values():
    third = Fraction(1, 3)
    assert split_duration(5 * third, third, triplet=True) == [Fraction(4, 3), third]
    assert split_duration(third, third, triplet=True) == [third]
