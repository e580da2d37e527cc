"""Tests for the chord-symbol dictionary and interval arithmetic."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

chords = importlib.import_module("progression_voicer.chords")
errors = importlib.import_module("progression_voicer.errors")


@pytest.mark.parametrize(
    "interval, semitones",
    [("1P", 0), ("3m", 3), ("3M", 4), ("4A", 6), ("5d", 6), ("7d", 9), ("7M", 11), ("9M", 14)],
)
def test_interval_semitones(interval, semitones):
    assert chords.interval_semitones(interval) == semitones


@pytest.mark.parametrize("bad", ["3P", "5M", "x", "0P"])
def test_invalid_intervals(bad):
    """Perfect qualities on imperfect numbers (and vice versa) are rejected."""

    with pytest.raises(errors.MusicTheoryError):
        chords.interval_semitones(bad)


def test_transpose_keeps_letter_spelling():
    """Transposition walks letter names and carries the octave."""

    assert chords.transpose("E4", "3m") == "G4"
    assert chords.transpose("B3", "2m") == "C4"
    assert chords.transpose("Eb", "3m") == "Gb"
    assert chords.transpose("B", "7d") == "Ab"


def test_get_chord_dominant_seventh():
    chord = chords.get_chord("G7")
    assert chord.notes == ("G", "B", "D", "F")
    assert chord.pitch_classes == frozenset({7, 11, 2, 5})
    assert chord.type == "dominant seventh"


def test_get_chord_diminished_seventh_spelling():
    assert chords.get_chord("Bdim7").notes == ("B", "D", "F", "Ab")


@pytest.mark.parametrize("symbol, canonical", [("C", "C"), ("CM", "C"), ("Cmin", "Cm"), ("F#°", "F#dim"), ("Bbø", "Bbm7b5")])
def test_aliases_normalise_symbol(symbol, canonical):
    assert chords.get_chord(symbol).symbol == canonical


def test_unknown_symbols_return_none():
    assert chords.get_chord("Xyz") is None
    assert chords.get_chord("Cfoo") is None


def test_interval_for_number():
    chord = chords.get_chord("Am7")
    assert chord.interval_for_number(3) == "3m"
    assert chord.interval_for_number(7) == "7m"
    assert chord.interval_for_number(6) is None
