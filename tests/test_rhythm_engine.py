"""Tests for rhythm sources."""

import importlib
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

rhythm_engine = importlib.import_module("progression_voicer.rhythm_engine")


def test_beat_pattern():
    assert rhythm_engine.beat_pattern(3, 4) == [0.25, 0.25, 0.25]
    assert rhythm_engine.beat_pattern(6, 8) == [0.125] * 6


@pytest.mark.parametrize("meter, total", [((4, 4), 1.0), ((3, 4), 0.75), ((6, 8), 0.75), ((2, 2), 1.0)])
def test_fill_measure_sums_exactly(meter, total):
    gen = rhythm_engine.RhythmGenerator(rng=random.Random(0))
    for index in range(10):
        assert sum(gen(*meter, index)) == pytest.approx(total)


def test_generate_is_reproducible():
    first = rhythm_engine.RhythmGenerator(rng=random.Random(9)).generate(12)
    second = rhythm_engine.RhythmGenerator(rng=random.Random(9)).generate(12)
    assert first == second
    assert len(first) == 12


def test_custom_transitions():
    gen = rhythm_engine.RhythmGenerator({0.5: {0.5: 1.0}}, start=0.5, rng=random.Random(1))
    assert gen.generate(3) == [0.5, 0.5, 0.5]
    assert gen.fill_measure(3, 4) == [0.5, 0.25]


def test_invalid_length():
    with pytest.raises(ValueError):
        rhythm_engine.RhythmGenerator().generate(0)


def test_rhythm_for_complexity():
    """Simple levels stay on the beat, busy levels draw from the Markov grammar."""

    assert rhythm_engine.rhythm_for_complexity(0) is rhythm_engine.beat_pattern
    assert rhythm_engine.rhythm_for_complexity(4.9) is rhythm_engine.beat_pattern
    busy = rhythm_engine.rhythm_for_complexity(10, random.Random(3))
    assert isinstance(busy, rhythm_engine.RhythmGenerator)
    for index in range(5):
        assert sum(busy(4, 4, index)) == pytest.approx(1.0)
