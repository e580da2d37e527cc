"""Tests for the melody and accompaniment voicers."""

import importlib
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

ma = importlib.import_module("progression_voicer.melody_accompaniment")
chord_builder = importlib.import_module("progression_voicer.chord_builder")
keys = importlib.import_module("progression_voicer.keys")


class FixedRandom(random.Random):
    """Random source whose ``random()`` always returns ``value``."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def _tonic():
    chord = chord_builder.get_chord_info_from_roman("I", "C")
    return chord, chord_builder.expand_note_pool(chord.midi)


def test_update_contour():
    state = ma.ContourState()
    state = ma.update_contour(state, 60, 62)
    assert state == ma.ContourState(1, 1)
    state = ma.update_contour(state, 62, 64)
    assert state == ma.ContourState(1, 2)
    assert ma.update_contour(state, 64, 64) == state
    assert ma.update_contour(state, 64, 60) == ma.ContourState(-1, 1)
    assert ma.update_contour(state, None, 60) == state


def test_accompaniment_stacks_under_melody():
    chord, pool = _tonic()
    assert ma.voice_accompaniment(chord, pool, 72, None, 3, 5) == [48, 55, 60]


def test_accompaniment_pads_missing_voices():
    chord, pool = _tonic()
    assert ma.voice_accompaniment(chord, pool, 72, None, 5, 5) == [48, 52, 55, 60, None]


def test_accompaniment_rest_cases():
    """A rest in the melody or no room below it gives all-rest accompaniment."""

    chord, pool = _tonic()
    assert ma.voice_accompaniment(chord, pool, None, None, 3, 5) == [None, None, None]
    assert ma.voice_accompaniment(chord, pool, 30, None, 3, 5) == [None, None, None]


def test_first_melody_note_is_nearest_range_midpoint():
    """The opening pitch is the chord tone closest to the middle of the range."""

    chord, pool = _tonic()
    voicer = ma.MelodyVoicer()
    key = keys.get_key("C")
    rng = random.Random(1)
    # C4 and E4 are equally far from D4; the lower one wins the tie.
    assert voicer.choose(chord, pool, key, None, ma.ContourState(), 5, rng, (60, 64)) == 60
    assert voicer.choose(chord, pool, key, None, ma.ContourState(), 5, rng, (60, 65)) == 64
    # Four chord tones lie in G4-G5 but the midpoint C#5 is nearest C5.
    assert voicer.choose(chord, pool, key, None, ma.ContourState(), 5, rng, (67, 79)) == 72
    assert voicer.choose(chord, pool, key, None, ma.ContourState(), 5, rng) == 72


def test_candidate_weights_guard_and_chromatic():
    """A low draw admits chromatic neighbours and drops the repeated pitch."""

    chord, pool = _tonic()
    voicer = ma.MelodyVoicer()
    key = keys.get_key("C")
    contour = ma.ContourState(1, 2)

    weights = voicer.candidate_weights(chord, pool, key, 64, contour, 5, FixedRandom(0.0), (60, 84))
    assert 64 not in weights
    assert weights[60] == weights[67] == ma.CHORD_TONE_WEIGHT
    assert weights[65] == 14.0
    assert weights[62] == ma.NEIGHBOUR_WEIGHT
    assert weights[63] == ma.CHROMATIC_WEIGHT

    weights = voicer.candidate_weights(chord, pool, key, 64, contour, 5, FixedRandom(0.99), (60, 84))
    assert 64 in weights
    assert 63 not in weights


def test_max_step_bounds():
    assert ma.MelodyVoicer.max_step(0) == 2
    assert ma.MelodyVoicer.max_step(5) == 2
    assert ma.MelodyVoicer.max_step(10) == 4
