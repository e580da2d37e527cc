"""Tests for voice ranges and octave folding."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

ranges = importlib.import_module("progression_voicer.ranges")
errors = importlib.import_module("progression_voicer.errors")


def test_resolve_range_defaults_and_overrides():
    assert ranges.resolve_range("melody") == (60, 84)
    assert ranges.resolve_range("melody", {"min": "C4", "max": None}) == (60, 84)
    assert ranges.resolve_range("bass", ("E2", "C4")) == (40, 60)
    assert ranges.resolve_range("custom", {"min": 50, "max": "D4"}) == (50, 62)


def test_resolve_range_errors():
    with pytest.raises(errors.InvalidRangeError):
        ranges.resolve_range("melody", {"min": "C5", "max": "C4"})
    with pytest.raises(errors.InvalidInputError):
        ranges.resolve_range("custom")
    with pytest.raises(errors.InvalidInputError):
        ranges.resolve_range("melody", {"min": "H4"})


@pytest.mark.parametrize(
    "note, low, high, expected",
    [(64, 60, 72, 64), (43, 60, 72, 67), (84, 60, 72, 72), (67, 60, 64, 60), (48, 62, 64, 64)],
)
def test_put_in_range(note, low, high, expected):
    """Notes fold by octaves and clamp when the range is narrower than an octave."""

    assert ranges.put_in_range(note, low, high) == expected


def test_put_in_range_reports_note():
    with pytest.raises(errors.InvalidRangeError) as exc:
        ranges.put_in_range(60, 70, 65)
    assert exc.value.note == 60


def test_is_in_range():
    assert ranges.is_in_range(60, 60, 60)
    assert not ranges.is_in_range(59, 60, 72)
