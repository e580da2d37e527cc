"""Rhythm sources for the voicing orchestrator.

Durations are fractions of a whole note (``0.25`` is a quarter note). The
orchestrator asks for one measure of durations per chord and voices every
event in that measure. Two sources and a selector are provided:

* :func:`beat_pattern` returns one event per beat and is fully
  deterministic. It is the default.
* :class:`RhythmGenerator` walks a small first-order Markov grammar over
  common note lengths and trims the last event so the measure is filled
  exactly.
* :func:`rhythm_for_complexity` picks one of the two from a 0-10
  rhythmic complexity such as the one derived from a difficulty level.

Any callable with the :data:`RhythmSource` signature can replace them.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, List, Optional

from .utils import measure_length

__all__ = ["RhythmSource", "beat_pattern", "RhythmGenerator", "rhythm_for_complexity"]

# (beats, beat_type, measure_index) -> durations for that measure
RhythmSource = Callable[[int, int, int], List[float]]


def beat_pattern(beats: int, beat_type: int, measure_index: int = 0) -> List[float]:
    """Return one duration per beat, e.g. ``[0.25] * 4`` for 4/4."""

    if beats <= 0 or beat_type <= 0:
        raise ValueError("beats and beat_type must be positive")
    return [1 / beat_type] * beats


class RhythmGenerator:
    """Generate rhythmic patterns using a simple Markov grammar."""

    def __init__(
        self,
        transitions: Dict[float, Dict[float, float]] | None = None,
        *,
        start: float | None = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create a new generator with optional custom transitions.

        Parameters
        ----------
        transitions:
            Mapping ``current_duration -> {next_duration: probability}``.
            Probabilities need not sum to one. When ``None`` a small built-in
            grammar over eighths, quarters and halves is used.
        start:
            Optional first duration. When ``None`` one is drawn from the keys
            of ``transitions``.
        rng:
            Random source. A private ``random.Random`` is created when omitted
            so generators never touch the global random state.
        """

        self.transitions = transitions or {
            0.25: {0.25: 0.4, 0.5: 0.3, 0.125: 0.3},
            0.5: {0.25: 0.6, 0.5: 0.4},
            0.125: {0.125: 0.5, 0.25: 0.5},
        }
        self.start = start
        self.rng = rng or random.Random()

    def _next(self, current: float) -> float:
        choices = self.transitions.get(current)
        if not choices:
            choices = {d: 1.0 for d in self.transitions}
        durations = list(choices)
        weights = list(choices.values())
        return self.rng.choices(durations, weights=weights, k=1)[0]

    def generate(self, length: int) -> List[float]:
        """Return a rhythm pattern ``length`` events long."""

        if length <= 0:
            raise ValueError("length must be positive")
        current = self.start
        if current is None:
            current = self.rng.choice(list(self.transitions))
        pattern = [current]
        while len(pattern) < length:
            current = self._next(current)
            pattern.append(current)
        return pattern[:length]

    def fill_measure(self, beats: int, beat_type: int, measure_index: int = 0) -> List[float]:
        """Return durations summing exactly to one ``beats/beat_type`` measure.

        When the drawn duration would overflow the bar the largest known
        duration that still fits is used, and failing that the remainder
        itself.
        """

        remaining = measure_length((beats, beat_type))
        if remaining <= 0:
            raise ValueError("measure length must be positive")
        current = self.start if self.start is not None else self.rng.choice(list(self.transitions))
        pattern: List[float] = []
        while remaining > 1e-9:
            if current > remaining + 1e-9:
                fitting = [d for d in self.transitions if d <= remaining + 1e-9]
                current = max(fitting) if fitting else remaining
            pattern.append(current)
            remaining -= current
            current = self._next(current)
        return pattern

    __call__ = fill_measure


# Complexities below this keep one event per beat.
BUSY_RHYTHM_THRESHOLD = 5


def rhythm_for_complexity(complexity: float, rng: Optional[random.Random] = None) -> RhythmSource:
    """Return a rhythm source suited to a 0-10 ``complexity``.

    Low values give :func:`beat_pattern`. From ``BUSY_RHYTHM_THRESHOLD`` up a
    :class:`RhythmGenerator` is returned whose grammar favours eighth notes
    more strongly as ``complexity`` rises.
    """

    if complexity < BUSY_RHYTHM_THRESHOLD:
        return beat_pattern
    busy = min(1.0, max(0.0, complexity / 10))
    transitions = {
        0.25: {0.25: 0.4, 0.5: 0.3 * (1 - busy) + 0.05, 0.125: 0.3 * busy},
        0.5: {0.25: 0.6, 0.5: 0.4 * (1 - busy) + 0.05},
        0.125: {0.125: 0.5 * busy + 0.1, 0.25: 0.5},
    }
    return RhythmGenerator(transitions, rng=rng)
