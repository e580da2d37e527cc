"""Tests for four-part SATB voicing."""

import importlib
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

satb = importlib.import_module("progression_voicer.satb")
chord_builder = importlib.import_module("progression_voicer.chord_builder")
pv = importlib.import_module("progression_voicer")
config = importlib.import_module("progression_voicer.config")


def _chord(roman, key="C"):
    chord = chord_builder.get_chord_info_from_roman(roman, key)
    return chord, chord_builder.expand_note_pool(chord.midi)


def test_tonic_chord_without_history():
    chord, pool = _chord("I")
    step = satb.SATBVoicer().voice(chord, pool, None, 5, "C")
    assert step == {"soprano": 72, "alto": 64, "tenor": 55, "bass": 48}


def test_first_inversion_places_third_in_bass():
    chord, pool = _chord("I6")
    step = satb.SATBVoicer().voice(chord, pool, None, 5, "C")
    assert step["bass"] % 12 == 4
    assert step == {"soprano": 72, "alto": 60, "tenor": 55, "bass": 40}


def test_voice_does_not_mutate_previous():
    chord, pool = _chord("V")
    previous = {"soprano": 72, "alto": 64, "tenor": 55, "bass": 48}
    snapshot = dict(previous)
    satb.SATBVoicer().voice(chord, pool, previous, 5, "C")
    assert previous == snapshot


def test_steps_respect_ranges_and_chord_tones():
    """Placed pitches are in-range chord tones, ordered and within spacing limits."""

    voicer = satb.SATBVoicer()
    for key, progression in (("C", ["I", "vi", "ii65", "V7", "I"]), ("Am", ["i", "iv", "V", "i"])):
        previous = None
        for roman in progression:
            chord, pool = _chord(roman, key)
            step = voicer.voice(chord, pool, previous, 5, key)
            for voice, note in step.items():
                assert note is not None
                low, high = pv.VOICE_RANGES[voice]
                assert low <= note <= high
                assert note % 12 in chord.pitch_classes
            assert step["bass"] < step["tenor"] < step["alto"] < step["soprano"]
            assert step["soprano"] - step["alto"] <= pv.SATB_SPACING_LIMITS["soprano_alto"]
            assert step["alto"] - step["tenor"] <= pv.SATB_SPACING_LIMITS["alto_tenor"]
            assert step["tenor"] - step["bass"] <= pv.SATB_SPACING_LIMITS["tenor_bass"]
            previous = step


def test_doubling_fills_missing_fifth():
    chord, _ = _chord("V")
    assert satb.doubling_targets(chord, [7, 11], 11) == [2, 7]


def test_doubling_avoids_leading_tone():
    """The leading tone is never chosen as a doubled note."""

    chord = chord_builder.build_chord_notes("Bdim")
    assert satb.doubling_targets(chord, [2, 5], 11) == [11, 5]


def test_seventh_chord_omits_fifth_first():
    chord = chord_builder.build_chord_notes("G7")
    assert satb.doubling_targets(chord, [7], 11) == [11, 5]


def _narrow(**ranges):
    return satb.SATBVoicer(config.VoicingConfig().with_ranges(ranges))


def test_inversion_falls_back_to_root_position(caplog):
    """A first-inversion bass that cannot sound in range gives way to the root."""

    chord, pool = _chord("I6")
    voicer = _narrow(bass=(41, 50))
    with caplog.at_level(logging.WARNING):
        step = voicer.voice(chord, pool, None, 5, "C")
    assert step["bass"] == 48
    assert "Inversion bass pitch class 4 unavailable in bass range" in caplog.text


def test_alto_relaxes_spacing_when_needed(caplog):
    """With no alto within an octave of the soprano the spacing rule is dropped."""

    chord, pool = _chord("I")
    voicer = _narrow(alto=(55, 60))
    with caplog.at_level(logging.WARNING):
        inner = voicer.choose_inner(chord, pool, 84, 48, {}, 5, 11)
    assert inner == {"alto": 60, "tenor": 55}
    assert "Relaxed spacing to place alto" in caplog.text


def test_tenor_left_empty_when_no_room_below_alto(caplog):
    """The alto is kept and the tenor becomes a rest when nothing fits under it."""

    chord, pool = _chord("I")
    voicer = _narrow(alto=(50, 53))
    with caplog.at_level(logging.WARNING):
        inner = voicer.choose_inner(chord, pool, 72, 48, {}, 5, 11)
    assert inner == {"alto": 52, "tenor": None}
    assert "Could not place tenor below alto" in caplog.text


def test_unplaceable_alto_clears_both_inner_voices(caplog):
    chord, pool = _chord("I")
    voicer = _narrow(alto=(73, 79))
    with caplog.at_level(logging.WARNING):
        inner = voicer.choose_inner(chord, pool, 72, 48, {}, 5, 11)
    assert inner == {"alto": None, "tenor": None}
    assert "Could not place alto" in caplog.text
