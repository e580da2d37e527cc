"""Melody and block-accompaniment voicing.

The melody voicer keeps a small amount of contour memory
(:class:`ContourState`) so a line that has been rising keeps favouring
upward steps until something interrupts it. Candidate pitches are weighted
before scoring:

============================================  =======================
candidate                                     weight
============================================  =======================
chord tone near the previous note             12
diatonic non-chord tone in the streak         8 + 3 * streak (max 23)
direction
other nearby diatonic tone                    1
chromatic neighbour (5% of steps)             0.5
============================================  =======================

All random decisions draw from an injected :class:`random.Random` so a seeded
generator reproduces the same line.

The accompaniment sits under the melody: a bass note (preferring the chord
root low in the range) and further voices stacked within an octave above it.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .chord_builder import ChordNotes
from .config import VoicingConfig
from .keys import Key
from .ranges import put_in_range
from .voice_leading import find_closest_note

__all__ = [
    "ContourState",
    "update_contour",
    "MelodyVoicer",
    "voice_accompaniment",
]

logger = logging.getLogger(__name__)

CHORD_TONE_WEIGHT = 12.0
STREAK_BASE_WEIGHT = 8.0
STREAK_WEIGHT_PER_NOTE = 3.0
STREAK_WEIGHT_CAP = 15.0
NEIGHBOUR_WEIGHT = 1.0
CHROMATIC_WEIGHT = 0.5


@dataclass(frozen=True)
class ContourState:
    """Direction memory of the melody line."""

    last_direction: int = 0
    direction_streak: int = 0


def update_contour(state: ContourState, previous: Optional[int], chosen: Optional[int]) -> ContourState:
    """Return the contour after moving from ``previous`` to ``chosen``.

    Same-direction motion extends the streak, a reversal restarts it at one
    and a repeated note leaves the state untouched.
    """

    if previous is None or chosen is None or chosen == previous:
        return state
    direction = 1 if chosen > previous else -1
    if direction == state.last_direction:
        return ContourState(direction, state.direction_streak + 1)
    return ContourState(direction, 1)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class MelodyVoicer:
    """Choose one melody pitch per rhythm event."""

    def __init__(self, config: Optional[VoicingConfig] = None) -> None:
        self.config = config or VoicingConfig()

    @staticmethod
    def max_step(smoothness: float) -> int:
        return min(4, max(2, int(smoothness) // 2))

    def _direction(self, previous: int, contour: ContourState, bounds: Tuple[int, int], rng: random.Random) -> int:
        if contour.last_direction != 0:
            return contour.last_direction
        middle = (bounds[0] + bounds[1]) / 2
        if previous > middle + 6:
            return -1
        if previous < middle - 6:
            return 1
        return rng.choice((-1, 1))

    def candidate_weights(
        self,
        chord: ChordNotes,
        pool: Sequence[int],
        key: Key,
        previous: int,
        contour: ContourState,
        smoothness: float,
        rng: random.Random,
        bounds: Tuple[int, int],
    ) -> Dict[int, float]:
        """Return ``{pitch: weight}`` for the pitches reachable from ``previous``."""

        low, high = bounds
        step = self.max_step(smoothness)
        direction = self._direction(previous, contour, bounds, rng)
        chord_pcs = chord.pitch_classes
        scale_pcs = key.scale_pcs

        weights: Dict[int, float] = {}
        for n in pool:
            if low <= n <= high and abs(n - previous) <= 2 * step:
                weights[n] = CHORD_TONE_WEIGHT

        streak_weight = STREAK_BASE_WEIGHT + min(
            STREAK_WEIGHT_CAP, contour.direction_streak * STREAK_WEIGHT_PER_NOTE
        )
        for n in range(max(low, previous - step), min(high, previous + step) + 1):
            pc = n % 12
            if pc not in scale_pcs or pc in chord_pcs:
                continue
            if _sign(n - previous) == direction:
                weights.setdefault(n, streak_weight)
            else:
                weights.setdefault(n, NEIGHBOUR_WEIGHT)

        if rng.random() < self.config.chromatic_probability:
            for n in range(max(low, previous - 2), min(high, previous + 2) + 1):
                if n % 12 not in scale_pcs:
                    weights.setdefault(n, CHROMATIC_WEIGHT)

        streak = contour.direction_streak
        if streak >= 1 and previous in weights and rng.random() < max(0.2, streak * 0.3):
            del weights[previous]
        return weights

    def choose(
        self,
        chord: ChordNotes,
        pool: Sequence[int],
        key: Key,
        previous: Optional[int],
        contour: ContourState,
        smoothness: float,
        rng: random.Random,
        bounds: Optional[Tuple[int, int]] = None,
    ) -> Optional[int]:
        """Return the next melody pitch.

        Without a previous pitch the in-range chord tones are scored against
        the middle of the range, so the line starts in the middle register
        (ties go to the lower tone). When the chord has no tone in range the
        chord root is shifted (and if necessary clamped) into the range.
        """

        low, high = bounds or self.config.ranges["melody"]
        in_range = [n for n in pool if low <= n <= high]

        if previous is None:
            if in_range:
                return find_closest_note(
                    (low + high) / 2,
                    in_range,
                    None,
                    smoothness,
                    self.config.upper_leap_threshold,
                    weights=self.config.weights,
                )
            logger.warning("No tone of %s inside melody range; clamping root", chord.symbol)
            return put_in_range(chord.root_midi, low, high)

        weights = self.candidate_weights(
            chord, pool, key, previous, contour, smoothness, rng, (low, high)
        )
        if not weights:
            if in_range:
                weights = {n: CHORD_TONE_WEIGHT for n in in_range}
            else:
                logger.warning("No melody candidates for %s; holding previous pitch", chord.symbol)
                return put_in_range(previous, low, high)

        candidates = sorted(weights)
        return find_closest_note(
            previous,
            candidates,
            previous,
            smoothness,
            self.config.upper_leap_threshold,
            weights=self.config.weights,
            preference=weights,
        )


def voice_accompaniment(
    chord: ChordNotes,
    pool: Sequence[int],
    melody: Optional[int],
    previous: Optional[Sequence[Optional[int]]],
    num_voices: int,
    smoothness: float,
    bounds: Optional[Tuple[int, int]] = None,
    config: Optional[VoicingConfig] = None,
) -> List[Optional[int]]:
    """Stack ``num_voices`` chord tones under ``melody``.

    Parameters
    ----------
    chord:
        Materialised chord.
    pool:
        Multi-octave chord pool.
    melody:
        Melody pitch of the same event; ``None`` yields an all-``None``
        result.
    previous:
        Accompaniment pitches of the previous event, lowest first.
    num_voices:
        Requested number of accompaniment voices.
    smoothness:
        Voice-leading smoothness preference.
    bounds:
        Accompaniment range; defaults to the configured one.

    Returns
    -------
    List[Optional[int]]
        Ascending pitches padded with ``None`` up to ``num_voices``.
    """

    config = config or VoicingConfig()
    empty: List[Optional[int]] = [None] * num_voices
    if melody is None or num_voices <= 0:
        return empty
    low, high = bounds or config.ranges["accompaniment"]
    previous = list(previous or [])

    candidates = [
        n
        for n in pool
        if n < melody and low <= n <= high and melody - n <= config.accompaniment_spacing
    ]
    if not candidates:
        logger.warning("No accompaniment notes fit under melody %d for %s", melody, chord.symbol)
        return empty

    roots = [n for n in candidates if n % 12 == chord.root_pc]
    low_roots = [n for n in roots if n <= low + 12]
    bass_pool = low_roots or roots or candidates
    prev_bass = previous[0] if previous else None
    bass_target = prev_bass if prev_bass is not None else chord.root_midi - 12
    bass = find_closest_note(
        bass_target,
        bass_pool,
        prev_bass,
        smoothness,
        config.accompaniment_bass_leap_threshold,
        weights=config.weights,
    )
    chosen = [bass]

    for k in range(1, num_voices):
        options = [n for n in candidates if bass < n <= bass + 12 and n not in chosen]
        if not options:
            logger.warning(
                "Only %d of %d accompaniment voices placed for %s",
                len(chosen),
                num_voices,
                chord.symbol,
            )
            break
        prev_voice = previous[k] if k < len(previous) else None
        if prev_voice is not None:
            target = prev_voice
        else:
            target = bass + round(12 / (num_voices - 1) * k)
        note = find_closest_note(
            target,
            options,
            prev_voice,
            smoothness,
            config.accompaniment_leap_threshold,
            weights=config.weights,
        )
        chosen.append(note)

    result: List[Optional[int]] = sorted(chosen)
    return result + [None] * (num_voices - len(result))
