"""Map a single difficulty slider onto individual generation settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import STYLES
from .errors import InvalidInputError

__all__ = ["GenerationSettings", "map_difficulty_to_settings"]


@dataclass(frozen=True)
class GenerationSettings:
    style: str
    rhythmic_complexity: int
    melodic_smoothness: int
    dissonance_strictness: float
    harmonic_complexity: int
    num_accompaniment_voices: Optional[int] = None


def _round_half_up(value: float) -> int:
    # ``round`` would send 2.5 to 2.
    return int(value + 0.5)


def map_difficulty_to_settings(difficulty: float, style: str) -> GenerationSettings:
    """Derive settings from ``difficulty`` (0 easy - 10 hard).

    Harder pieces get busier rhythms, more chord variety, leapier melodies
    and a more permissive rule checker.
    """

    if style not in STYLES:
        raise InvalidInputError(f"Unknown style {style!r}; expected one of {', '.join(STYLES)}")
    level = min(10, max(0, _round_half_up(difficulty)))
    return GenerationSettings(
        style=style,
        rhythmic_complexity=min(10, _round_half_up(level * 1.1)),
        melodic_smoothness=10 - level,
        dissonance_strictness=min(10.0, max(0.0, 10 - level * 0.8)),
        harmonic_complexity=min(10, _round_half_up(3 + level * 0.5)),
        num_accompaniment_voices=3 if style == "MelodyAccompaniment" else None,
    )
