"""Tests for note name and MIDI conversion helpers."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

note_utils = importlib.import_module("progression_voicer.note_utils")
errors = importlib.import_module("progression_voicer.errors")


@pytest.mark.parametrize(
    "name, expected",
    [
        ("C4", 60),
        ("C-1", 0),
        ("G9", 127),
        ("Bb3", 58),
        ("Cb4", 59),
        ("B#3", 60),
        ("F##4", 67),
        ("c#4", 61),
        ("E♭4", 63),
    ],
)
def test_note_to_midi_spellings(name, expected):
    """Single and double accidentals should resolve by letter plus alteration."""

    assert note_utils.note_to_midi(name) == expected


@pytest.mark.parametrize("bad", ["H4", "C10", "C", "C#b4", ""])
def test_note_to_midi_rejects_invalid(bad):
    """Malformed, octave-less or out-of-range names raise ``InvalidInputError``."""

    with pytest.raises(errors.InvalidInputError):
        note_utils.note_to_midi(bad)


def test_invalid_input_is_value_error():
    """Callers catching ``ValueError`` still see input errors."""

    with pytest.raises(ValueError):
        note_utils.note_to_midi("X4")


def test_midi_to_note_uses_sharps():
    assert note_utils.midi_to_note(61) == "C#4"
    assert note_utils.midi_to_note(0) == "C-1"
    with pytest.raises(errors.InvalidInputError):
        note_utils.midi_to_note(128)


def test_spell_midi_prefers_given_spelling():
    """Flat and edge-of-octave spellings keep the MIDI number they name."""

    assert note_utils.spell_midi(58, ("Bb2", "D3", "F3")) == "Bb3"
    assert note_utils.spell_midi(59, ("Cb",)) == "Cb4"
    assert note_utils.spell_midi(60, ("B#",)) == "B#3"
    assert note_utils.note_to_midi(note_utils.spell_midi(60, ("B#",))) == 60
    assert note_utils.spell_midi(61, ("F", "A")) == "C#4"
    assert note_utils.spell_midi(61) == "C#4"


def test_pitch_class_without_octave():
    """Pitch classes work for bare names and wrap around the octave."""

    assert note_utils.pitch_class("Eb") == 3
    assert note_utils.pitch_class("Cb") == 11
    assert note_utils.pitch_class("B#5") == 0


def test_split_and_spell_round_trip():
    assert note_utils.split_note_name("F#3") == ("F", 1, 3)
    assert note_utils.split_note_name("Abb") == ("A", -2, None)
    assert note_utils.spell("F", 1, 3) == "F#3"
    assert note_utils.spell("A", -2) == "Abb"
