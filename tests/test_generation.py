"""Tests for the progression orchestrator."""

import asyncio
import importlib
import json
import logging
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

generation = importlib.import_module("progression_voicer.generation")
errors = importlib.import_module("progression_voicer.errors")
events = importlib.import_module("progression_voicer.events")


def whole_notes(beats, beat_type, index):
    return [1.0]


def test_satb_one_event_per_beat():
    result = generation.generate_voicing(["I", "V"], "C", "4/4", style="SATB")
    assert set(result) == {"soprano", "alto", "tenor", "bass"}
    assert all(len(line) == 8 for line in result.values())
    assert all(e.rhythm == 0.25 for e in result["bass"])


def test_satb_cadence_voicing():
    """A plain I-IV-V-I moves every voice by step or small leap."""

    result = generation.generate_voicing(["I", "IV", "V", "I"], "C", style="SATB", rhythm=whole_notes)
    notes = {voice: [e.note for e in line] for voice, line in result.items()}
    assert notes == {
        "soprano": ["C5", "A4", "G4", "E4"],
        "alto": ["E4", "F4", "D4", "C4"],
        "tenor": ["G3", "C4", "B3", "G3"],
        "bass": ["C3", "F2", "G2", "C3"],
    }


def test_flat_keys_keep_flat_spelling():
    """Chord tones in flat keys are named as the chord spells them."""

    result = generation.generate_voicing(["I", "IV", "V", "I"], "Bb", style="SATB")
    assert result["bass"][0].note == "Bb2"
    names = [e.note for line in result.values() for e in line if e.note]
    assert not any("#" in n for n in names)
    assert any(n.startswith("Eb") for n in names)

    melody = generation.generate_voicing(["I", "V", "I"], "Eb", style="MelodyAccompaniment", seed=3)
    assert not any("#" in e.note for line in melody.accompaniment for e in line if e.note)


def test_satb_is_deterministic():
    first = generation.generate_voicing(["i", "iv", "V7", "i"], "Gm", "3/4", style="SATB")
    second = generation.generate_voicing(["i", "iv", "V7", "i"], "Gm", "3/4", style="SATB")
    assert first == second


def test_melody_accompaniment_default_ranges():
    result = generation.generate_voicing(["I", "V"], "C", "4/4", style="MelodyAccompaniment")
    assert isinstance(result, events.MelodyAccompanimentResult)
    assert len(result.melody) == 8
    assert len(result.accompaniment) == 3
    assert result.melody[0].note == "C5"
    assert [line[0].note for line in result.accompaniment] == ["C3", "G3", "C4"]


def test_narrow_melody_range_is_respected():
    """With a C4-E4 range every melody note stays inside and E4 is reached.

    The line opens on C4 (it ties with E4 around the D4 midpoint) and reaches E4
    within the first measure whichever way the contour draws fall.
    """

    result = generation.generate_voicing(
        ["I", "V"],
        "C",
        "4/4",
        style="MelodyAccompaniment",
        ranges={"melody": {"min": "C4", "max": "E4"}},
        seed=7,
    )
    pitches = [e.note for e in result.melody]
    assert pitches[0] == "C4"
    assert "E4" in pitches[:4]
    midi = importlib.import_module("progression_voicer.note_utils")
    assert all(60 <= midi.note_to_midi(n) <= 64 for n in pitches if n is not None)


def test_seeded_melody_is_reproducible():
    kwargs = dict(style="MelodyAccompaniment", seed=11)
    first = generation.generate_voicing(["I", "vi", "IV", "V7", "I"], "D", **kwargs)
    second = generation.generate_voicing(["I", "vi", "IV", "V7", "I"], "D", **kwargs)
    assert first == second


def test_bad_chord_becomes_rests(caplog):
    """An unparseable numeral fills its measure with rests and generation continues."""

    with caplog.at_level(logging.WARNING):
        result = generation.generate_voicing(["I", "Q", "V"], "C", style="SATB")
    assert all(e.is_rest for e in result["soprano"][4:8])
    assert not any(e.is_rest for e in result["soprano"][8:])
    assert "Skipping chord" in caplog.text


def test_rule_checker_uses_configured_spacing(caplog):
    """Spacing warnings are measured against the limits in the voicing config."""

    config_module = importlib.import_module("progression_voicer.config")
    tight = config_module.VoicingConfig(spacing={"soprano_alto": 1, "alto_tenor": 1, "tenor_bass": 1})
    with caplog.at_level(logging.WARNING):
        generation.generate_voicing(["I", "IV"], "C", style="SATB", config=tight, strictness=4)
    assert "SATB spacing S/A exceeds 1 at M1:B2" in caplog.text

    caplog.clear()
    with caplog.at_level(logging.WARNING):
        generation.generate_voicing(["I", "IV"], "C", style="SATB", strictness=4)
    assert "exceeds 1 at" not in caplog.text


def test_empty_progression():
    result = generation.generate_voicing([], "C", style="SATB")
    assert result == {"soprano": [], "alto": [], "tenor": [], "bass": []}


@pytest.mark.parametrize(
    "kwargs, exc",
    [
        (dict(key="H"), "InvalidInputError"),
        (dict(meter="4/3"), "InvalidMeterError"),
        (dict(style="Jazz"), "InvalidInputError"),
        (dict(smoothness=11), "InvalidInputError"),
        (dict(ranges={"melody": {"min": "C5", "max": "C4"}}), "InvalidRangeError"),
    ],
)
def test_invalid_input_raises(kwargs, exc):
    options = dict(key="C", meter="4/4", style="MelodyAccompaniment")
    options.update(kwargs)
    with pytest.raises(getattr(errors, exc)):
        generation.generate_voicing(["I"], options.pop("key"), options.pop("meter"), **options)


def test_custom_rhythm_source():
    result = generation.generate_voicing(["I", "V"], "C", "3/4", style="SATB", rhythm=lambda b, t, i: [0.5, 0.25])
    assert [e.rhythm for e in result["alto"]] == [0.5, 0.25, 0.5, 0.25]


def test_bad_rhythm_source_raises():
    with pytest.raises(errors.GenerationError):
        generation.generate_voicing(["I"], "C", style="SATB", rhythm=lambda b, t, i: [])


def test_async_provider_replaces_accompaniment():
    seen = []

    async def provider(request):
        seen.append(request)
        return json.dumps([{"note": "C3", "rhythm": 0.5}, {"note": "G2", "rhythm": 0.5}])

    result = asyncio.run(
        generation.generate_voicing_async(
            ["I", "V"], "C", style="MelodyAccompaniment", seed=3, accompaniment_provider=provider
        )
    )
    expected = generation.generate_voicing(["I", "V"], "C", style="MelodyAccompaniment", seed=3)
    assert result.melody == expected.melody
    assert result.accompaniment == [[events.NoteEvent("C3", 0.5), events.NoteEvent("G2", 0.5)]]
    assert seen[0].progression == ("I", "V")
    assert seen[0].accompaniment_range == (36, 72)


def test_async_provider_failure_propagates():
    async def provider(request):
        return "not json"

    with pytest.raises(errors.AccompanimentProviderError):
        asyncio.run(
            generation.generate_voicing_async(
                ["I"], "C", style="MelodyAccompaniment", accompaniment_provider=provider
            )
        )


def test_async_provider_needs_melody_style():
    async def provider(request):
        return "[]"

    with pytest.raises(errors.InvalidInputError):
        asyncio.run(generation.generate_voicing_async(["I"], "C", accompaniment_provider=provider))


def test_async_without_provider_matches_sync():
    result = asyncio.run(generation.generate_voicing_async(["I", "IV"], "F", style="SATB"))
    assert result == generation.generate_voicing(["I", "IV"], "F", style="SATB")


def test_rng_argument_is_used():
    first = generation.generate_voicing(["I", "V"], "C", style="MelodyAccompaniment", rng=random.Random(5))
    second = generation.generate_voicing(["I", "V"], "C", style="MelodyAccompaniment", seed=5)
    assert first == second
