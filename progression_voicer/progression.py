"""Random functional chord progressions.

:func:`generate_chord_progression` writes a Roman-numeral progression that
starts on the tonic, wanders according to simple functional tendencies and
closes with an authentic (or, failing that, plagal) cadence.
``harmonic_complexity`` (0-10) widens the chord vocabulary:

* 0-2: I, IV, V
* 3+: adds vi and ii
* 4+: V becomes V7
* 6+: adds iii and vii°
* 8+: vii° becomes vii°7

Example
-------
>>> import random
>>> prog = generate_chord_progression("C", 4, 2, rng=random.Random(1))
>>> prog[0], prog[-2:], len(prog)
('I', ['V', 'I'], 4)
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

from .keys import get_key

__all__ = ["generate_chord_progression"]

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_PER_CHORD = 10


def generate_chord_progression(
    key: str,
    num_measures: int,
    harmonic_complexity: float,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Return ``num_measures`` Roman numerals in ``key``.

    Raises
    ------
    InvalidInputError
        If ``key`` is not recognised.
    """

    if num_measures <= 0:
        return []
    rng = rng or random.Random()
    complexity = max(0.0, min(10.0, float(harmonic_complexity)))
    is_major = get_key(key).mode == "major"

    tonic = "I" if is_major else "i"
    dominant, dominant7 = "V", "V7"
    subdominant = "IV" if is_major else "iv"
    supertonic = "ii" if is_major else "ii°"
    mediant = "iii" if is_major else "III"
    submediant = "vi" if is_major else "VI"
    leading = "vii°"

    allowed = [tonic, subdominant, dominant]
    if complexity >= 3:
        allowed += [submediant, supertonic]
    if complexity >= 6:
        allowed += [mediant, leading]
    if complexity >= 4:
        allowed = [dominant7 if c == dominant else c for c in allowed]
    if complexity >= 8:
        allowed = [leading + "7" if c == leading else c for c in allowed]
    allowed = list(dict.fromkeys(allowed))

    dominants = {dominant, dominant7, leading, leading + "7"}
    subdominants = {subdominant, supertonic}

    progression = [tonic]
    prev = tonic
    for _ in range(1, num_measures - 1):
        candidates = [c for c in allowed if c != prev] or [prev]
        if prev in dominants:
            preferred = {tonic, submediant}
        elif prev in subdominants:
            preferred = {dominant, dominant7, tonic, submediant}
        elif prev == submediant:
            preferred = {subdominant, supertonic, dominant, dominant7}
        else:
            preferred = {c for c in allowed if c != tonic}

        targeted = [c for c in candidates if c in preferred]
        final = candidates
        if targeted:
            if rng.random() < 0.6 + complexity * 0.03:
                final = targeted
            else:
                untargeted = [c for c in candidates if c not in preferred]
                if untargeted and rng.random() < 0.3:
                    final = untargeted
        chord = rng.choice(final)
        progression.append(chord)
        prev = chord

    if num_measures > 1:
        penultimate = next((c for c in (dominant7, dominant) if c in allowed), None)
        if penultimate is None and subdominant in allowed:
            penultimate = subdominant
        penultimate = penultimate or tonic
        if num_measures == 2:
            if penultimate != tonic:
                progression[0] = penultimate
            progression.append(tonic)
        else:
            progression[-1] = penultimate
            progression.append(tonic)

    logger.info("Generated progression (%s, complexity %s): %s", key, complexity, " | ".join(progression))
    return progression
