"""Tests for key lookup and diatonic triad tables."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

keys = importlib.import_module("progression_voicer.keys")
errors = importlib.import_module("progression_voicer.errors")


def test_major_key_triads():
    key = keys.get_key("C")
    assert key.mode == "major"
    assert key.triads == ("C", "Dm", "Em", "F", "G", "Am", "Bdim")
    assert key.harmonic_triads is None


def test_minor_key_variants():
    """Minor keys carry natural, harmonic and melodic triad lists."""

    key = keys.get_key("Am")
    assert key.mode == "minor"
    assert key.triads == ("Am", "Bdim", "C", "Dm", "Em", "F", "G")
    assert key.harmonic_triads == ("Am", "Bdim", "Caug", "Dm", "E", "F", "G#dim")
    assert key.melodic_triads[3] == "D"


def test_minor_dominant_borrowed_from_harmonic():
    """V and VII come from harmonic minor; other degrees from natural minor."""

    key = keys.get_key("Am")
    assert key.chord_for_degree(4) == "E"
    assert key.chord_for_degree(6) == "G#dim"
    assert key.chord_for_degree(2) == "C"


def test_flat_key_spelling():
    assert keys.get_key("F").scale == ("F", "G", "A", "Bb", "C", "D", "E")
    assert "Ab" in keys.get_key("Eb major").scale


@pytest.mark.parametrize("name, tonic, mode", [("f# minor", "F#", "minor"), ("Gm", "G", "minor"), ("bb", "Bb", "major"), ("D maj", "D", "major")])
def test_key_name_variants(name, tonic, mode):
    key = keys.get_key(name)
    assert (key.tonic, key.mode) == (tonic, mode)


def test_leading_tone_and_scale_pcs():
    key = keys.get_key("Gm")
    assert key.leading_tone_pc == 6
    assert 6 in key.scale_pcs
    assert 5 in key.scale_pcs


@pytest.mark.parametrize("bad", ["H", "Cdorian", "", "C#m7"])
def test_unknown_keys_raise(bad):
    with pytest.raises(errors.InvalidInputError):
        keys.get_key(bad)


def test_degree_out_of_range():
    with pytest.raises(errors.MusicTheoryError):
        keys.get_key("C").chord_for_degree(7)
