"""Voice-leading scoring and parallel-motion detection.

:func:`find_closest_note` is the single note-selection primitive used by
every voicer. Each candidate receives a score made of two parts:

* its distance from the target pitch, doubled when the motion from the
  previous pitch heads away from the target, and
* a motion cost depending on the interval from the previous pitch:
  repetitions pay a fixed penalty, steps are cheap, leaps up to
  ``leap_threshold`` cost more and larger leaps cost the most. Higher
  ``smoothness`` makes repetitions cheaper, steps cheaper and leaps dearer.

The lowest score wins; ties keep the earliest candidate. All constants live in
:class:`VoiceLeadingWeights` so they can be tuned or tested one at a time.

Example
-------
>>> find_closest_note(63, [60, 62, 64, 67], 62, 10)
64
>>> find_closest_note(70, [60, 62, 67, 70, 72], 60, 5, leap_threshold=12)
70

Design Notes
------------
- ``parallel_motion`` builds full pairwise interval matrices with numpy so all
  six SATB voice pairs are checked in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

__all__ = [
    "VoiceLeadingWeights",
    "DEFAULT_WEIGHTS",
    "score_candidate",
    "find_closest_note",
    "parallel_fifth_or_octave",
    "parallel_motion",
    "voice_pairs",
]


@dataclass(frozen=True)
class VoiceLeadingWeights:
    """Named constants used by :func:`score_candidate`."""

    # Distance multiplier when a candidate moves away from the target direction.
    direction_reversal: float = 2.0
    # Repeating the previous pitch: penalty * (1 - smoothness * relief).
    repetition_penalty: float = 8.0
    repetition_smoothness_relief: float = 0.3
    # Steps of one or two semitones.
    step_factor: float = 0.3
    step_smoothness_relief: float = 0.6
    step_direction_bonus: float = 0.7
    # Scale applied to the leap cost curves below.
    leap_unit: float = 3.0
    small_leap_base: float = 1.2
    small_leap_smoothness: float = 0.8
    small_leap_reversal: float = 1.3
    large_leap_base: float = 2.0
    large_leap_smoothness: float = 2.0
    large_leap_reversal: float = 1.5
    # Centering bias used when there is no previous pitch.
    centering_bias: float = 0.2
    centering_span: float = 24.0
    # Stepwise override applied at high smoothness.
    override_smoothness: int = 7
    override_span: int = 2


DEFAULT_WEIGHTS = VoiceLeadingWeights()


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def score_candidate(
    candidate: int,
    target: float,
    previous: Optional[int],
    smoothness: float,
    leap_threshold: int = 7,
    weights: VoiceLeadingWeights = DEFAULT_WEIGHTS,
) -> float:
    """Return the score of ``candidate``; lower is better."""

    distance = abs(candidate - target)
    if previous is None:
        return distance * (1 + distance / weights.centering_span * weights.centering_bias)

    w = smoothness / 10.0
    interval = abs(candidate - previous)
    direction = _sign(candidate - previous)
    target_direction = _sign(target - previous)
    mismatch = direction != 0 and target_direction != 0 and direction != target_direction
    if mismatch:
        distance *= weights.direction_reversal

    if interval == 0:
        motion = weights.repetition_penalty * (1 - w * weights.repetition_smoothness_relief)
    elif interval <= 2:
        motion = interval * weights.step_factor * (1 - w * weights.step_smoothness_relief)
        if direction == target_direction:
            motion *= weights.step_direction_bonus
    elif interval <= leap_threshold:
        ratio = interval / leap_threshold
        motion = weights.leap_unit * ratio * (
            weights.small_leap_base + ratio * w * weights.small_leap_smoothness
        )
        if mismatch:
            motion *= weights.small_leap_reversal
    else:
        ratio = interval / leap_threshold
        motion = weights.leap_unit * ratio * (
            weights.large_leap_base + (interval / 12) * w * weights.large_leap_smoothness
        )
        if mismatch:
            motion *= weights.large_leap_reversal
    return distance + motion


def find_closest_note(
    target: float,
    candidates: Sequence[int],
    previous: Optional[int],
    smoothness: float,
    leap_threshold: int = 7,
    *,
    weights: VoiceLeadingWeights = DEFAULT_WEIGHTS,
    preference: Optional[Mapping[int, float]] = None,
) -> Optional[int]:
    """Pick the candidate that best balances closeness to ``target`` and smooth motion.

    Parameters
    ----------
    target:
        Pitch the voice is aiming for.
    candidates:
        Sorted candidate MIDI pitches.
    previous:
        Previous pitch of the voice or ``None`` at the start or after a gap.
    smoothness:
        Preference for small, direction-consistent motion (0-10).
    leap_threshold:
        Largest interval in semitones still treated as a moderate leap.
    weights:
        Scoring constants.
    preference:
        Optional per-pitch weight; a candidate's score is divided by its
        weight so heavier candidates are favoured.

    Returns
    -------
    Optional[int]
        The chosen pitch, or ``None`` when ``candidates`` is empty.
    """

    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    best: Optional[int] = None
    best_score = float("inf")
    for candidate in candidates:
        score = score_candidate(candidate, target, previous, smoothness, leap_threshold, weights)
        if preference is not None:
            score /= max(preference.get(candidate, 1.0), 1e-9)
        if score < best_score:
            best, best_score = candidate, score

    if previous is not None and smoothness >= weights.override_smoothness:
        target_direction = _sign(target - previous)
        if target_direction != 0:
            steps = [
                c
                for c in candidates
                if 0 < abs(c - previous) <= weights.override_span
                and _sign(c - previous) == target_direction
            ]
            if steps:
                best = min(steps, key=lambda c: abs(c - target))
    return best


def parallel_fifth_or_octave(
    prev_a: int, prev_b: int, next_a: int, next_b: int
) -> Optional[str]:
    """Return ``"fifth"`` or ``"octave"`` if two voices move in parallel, else ``None``.

    The interval must stay the same size and at least one voice must move.
    Unisons are ignored.
    """

    if prev_a == next_a and prev_b == next_b:
        return None
    before = abs(prev_a - prev_b)
    after = abs(next_a - next_b)
    if before != after:
        return None
    if before % 12 == 7:
        return "fifth"
    if before % 12 == 0 and before > 0:
        return "octave"
    return None


def parallel_motion(
    previous: Sequence[int], current: Sequence[int]
) -> Tuple[np.ndarray, np.ndarray]:
    """Return boolean ``(fifths, octaves)`` matrices for every voice pair.

    Entry ``[i, j]`` with ``i < j`` is ``True`` when voices ``i`` and ``j``
    form parallel fifths (or octaves) between ``previous`` and ``current``.
    The lower triangle is always ``False``.
    """

    prev = np.asarray(previous, dtype=np.int16)
    cur = np.asarray(current, dtype=np.int16)
    before = np.abs(prev[:, None] - prev[None, :])
    after = np.abs(cur[:, None] - cur[None, :])
    moved = prev != cur
    any_moved = moved[:, None] | moved[None, :]
    upper = np.triu(np.ones_like(before, dtype=bool), k=1)
    same = (before == after) & any_moved & upper
    fifths = same & (before % 12 == 7)
    octaves = same & (before % 12 == 0) & (before > 0)
    return fifths, octaves


def voice_pairs(names: Sequence[str], mask: np.ndarray) -> List[Tuple[str, str]]:
    """Translate a :func:`parallel_motion` mask into voice-name pairs."""

    return [(names[i], names[j]) for i, j in zip(*np.nonzero(mask))]
