"""Four-part (SATB) voice assignment for a single chord.

Voices are chosen in dependency order:

1. **Bass** honours an inversion when one is requested and otherwise prefers
   the root, then the fifth, then the lowest available note.
2. **Soprano** is chosen freely inside its range.
3. **Alto and tenor** fill in the chord tones the outer voices missed.
   Doubling follows the usual priority of root, then fifth, then third, and
   never doubles the leading tone.

Spacing limits (soprano-alto and alto-tenor an octave, tenor-bass a twelfth)
are enforced first and relaxed only when no candidate satisfies them.
Relaxations and unplaceable voices are logged at WARNING and reported as
``None`` rather than raised.

Example
-------
>>> from progression_voicer.chord_builder import expand_note_pool, get_chord_info_from_roman
>>> chord = get_chord_info_from_roman("I", "C")
>>> voicer = SATBVoicer()
>>> voicer.voice(chord, expand_note_pool(chord.midi), key="C")
{'soprano': 72, 'alto': 64, 'tenor': 55, 'bass': 48}
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Set, Union

from . import SATB_VOICES
from .chord_builder import ChordNotes
from .config import VoicingConfig
from .keys import Key, get_key
from .voice_leading import find_closest_note

__all__ = ["SATBVoicer", "doubling_targets"]

logger = logging.getLogger(__name__)

VoicingStep = Dict[str, Optional[int]]


def doubling_targets(
    chord: ChordNotes,
    covered: Sequence[int],
    leading_tone_pc: Optional[int],
) -> List[int]:
    """Return the two pitch classes the inner voices should aim for.

    Uncovered chord tones come first, ordered third, seventh, root, fifth.
    With more than two uncovered the fifth is omitted first. With fewer than
    two, doubles are taken from root, fifth, third in that order, skipping the
    leading tone.
    """

    priority = [chord.third_pc, chord.seventh_pc, chord.root_pc, chord.fifth_pc]
    ordered = [pc for pc in priority if pc is not None]
    ordered += sorted(pc for pc in chord.pitch_classes if pc not in ordered)
    uncovered = [pc for pc in ordered if pc not in covered]

    if len(uncovered) > 2 and chord.fifth_pc in uncovered:
        uncovered.remove(chord.fifth_pc)
    if len(uncovered) > 2:
        logger.warning(
            "Chord %s leaves %d tones for two inner voices; omitting %s",
            chord.symbol,
            len(uncovered),
            uncovered[2:],
        )
        uncovered = uncovered[:2]

    targets = list(uncovered)
    if len(targets) < 2:
        doubles = [
            pc
            for pc in (chord.root_pc, chord.fifth_pc, chord.third_pc)
            if pc is not None and pc != leading_tone_pc
        ]
        if not doubles:
            doubles = [pc for pc in ordered if pc != leading_tone_pc]
        if not doubles:
            logger.warning(
                "No doubling candidate avoids the leading tone in %s; doubling the root",
                chord.symbol,
            )
            doubles = [chord.root_pc]
        idx = 0
        while len(targets) < 2:
            targets.append(doubles[idx % len(doubles)])
            idx += 1
    return targets


class SATBVoicer:
    """Assign soprano, alto, tenor and bass pitches for one chord at a time."""

    voices = SATB_VOICES

    def __init__(self, config: Optional[VoicingConfig] = None) -> None:
        self.config = config or VoicingConfig()

    def _range(self, voice: str) -> range:
        low, high = self.config.ranges[voice]
        return range(low, high + 1)

    def _pick(
        self,
        target: float,
        candidates: Sequence[int],
        previous: Optional[int],
        smoothness: float,
        leap_threshold: int,
    ) -> Optional[int]:
        return find_closest_note(
            target,
            candidates,
            previous,
            smoothness,
            leap_threshold,
            weights=self.config.weights,
        )

    def choose_bass(
        self, chord: ChordNotes, pool: Sequence[int], previous: Optional[int], smoothness: float
    ) -> Optional[int]:
        """Return the bass pitch or ``None`` if nothing lies in the bass range."""

        bass_range = self._range("bass")
        available = [n for n in pool if n in bass_range]
        if not available:
            logger.warning("No pool notes in bass range for chord %s", chord.symbol)
            return None
        target = previous - 1 if previous is not None else chord.root_midi - 12
        threshold = self.config.bass_leap_threshold

        if chord.required_bass_pc is not None:
            inverted = [n for n in available if n % 12 == chord.required_bass_pc]
            if inverted:
                return self._pick(target, inverted, previous, smoothness, threshold)
            logger.warning(
                "Inversion bass pitch class %d unavailable in bass range for %s; using root position",
                chord.required_bass_pc,
                chord.symbol,
            )

        for pc in (chord.root_pc, chord.fifth_pc):
            if pc is None:
                continue
            matches = [n for n in available if n % 12 == pc]
            if matches:
                return self._pick(target, matches, previous, smoothness, threshold)
        return available[0]

    def choose_soprano(
        self, pool: Sequence[int], previous: Optional[int], smoothness: float
    ) -> Optional[int]:
        soprano_range = self._range("soprano")
        available = [n for n in pool if n in soprano_range]
        if not available:
            return None
        target = previous if previous is not None else available[len(available) // 2]
        return self._pick(target, available, previous, smoothness, self.config.upper_leap_threshold)

    def _inner(
        self,
        voice: str,
        tiers: Sequence[Sequence[int]],
        target: float,
        previous: Optional[int],
        smoothness: float,
        chord: ChordNotes,
    ) -> Optional[int]:
        for level, candidates in enumerate(tiers):
            if candidates:
                if level == len(tiers) - 1 and len(tiers) > 2:
                    logger.warning("Relaxed spacing to place %s in %s", voice, chord.symbol)
                return self._pick(
                    target, candidates, previous, smoothness, self.config.upper_leap_threshold
                )
        return None

    def choose_inner(
        self,
        chord: ChordNotes,
        pool: Sequence[int],
        soprano: int,
        bass: int,
        previous: Mapping[str, Optional[int]],
        smoothness: float,
        leading_tone_pc: Optional[int],
    ) -> Dict[str, Optional[int]]:
        """Return ``{"alto": ..., "tenor": ...}`` for fixed outer voices."""

        spacing = self.config.spacing
        targets = doubling_targets(chord, [bass % 12, soprano % 12], leading_tone_pc)

        alto_range = self._range("alto")
        alto_base = [n for n in pool if n in alto_range and bass < n < soprano]
        alto_spaced = [n for n in alto_base if soprano - n <= spacing["soprano_alto"]]
        alto_preferred = [n for n in alto_spaced if n % 12 in targets]
        prev_alto = previous.get("alto")
        alto_target = prev_alto if prev_alto is not None else (soprano + bass) / 2
        alto = self._inner(
            "alto",
            [alto_preferred, alto_spaced, alto_base],
            alto_target,
            prev_alto,
            smoothness,
            chord,
        )
        if alto is None:
            logger.warning("Could not place alto for %s", chord.symbol)
            return {"alto": None, "tenor": None}

        remaining: List[int] = list(targets)
        if alto % 12 in remaining:
            remaining.remove(alto % 12)
        tenor_pcs: Set[int] = set(remaining) or set(targets)

        tenor_range = self._range("tenor")
        tenor_base = [n for n in pool if n in tenor_range and bass < n < alto]
        tenor_spaced = [
            n
            for n in tenor_base
            if alto - n <= spacing["alto_tenor"] and n - bass <= spacing["tenor_bass"]
        ]
        tenor_preferred = [n for n in tenor_spaced if n % 12 in tenor_pcs]
        prev_tenor = previous.get("tenor")
        tenor_target = prev_tenor if prev_tenor is not None else (alto + bass) / 2
        tenor = self._inner(
            "tenor",
            [tenor_preferred, tenor_spaced, tenor_base],
            tenor_target,
            prev_tenor,
            smoothness,
            chord,
        )
        if tenor is not None and tenor >= alto:
            lower = [n for n in tenor_base if n < alto]
            tenor = self._pick(
                tenor_target, lower, prev_tenor, smoothness, self.config.upper_leap_threshold
            )
        if tenor is None:
            logger.warning("Could not place tenor below alto for %s", chord.symbol)
        return {"alto": alto, "tenor": tenor}

    def voice(
        self,
        chord: ChordNotes,
        pool: Sequence[int],
        previous: Optional[Mapping[str, Optional[int]]] = None,
        smoothness: float = 5,
        key: Union[str, Key, None] = None,
    ) -> VoicingStep:
        """Return a :data:`VoicingStep` for ``chord``.

        Parameters
        ----------
        chord:
            Materialised chord.
        pool:
            Sorted multi-octave candidate pitches sharing the chord's pitch
            classes.
        previous:
            Pitches chosen for the previous step. Never mutated.
        smoothness:
            Voice-leading smoothness preference (0-10).
        key:
            Key used to identify the leading tone for doubling decisions.
        """

        previous = previous or {}
        leading_tone_pc: Optional[int] = None
        if key is not None:
            leading_tone_pc = (key if isinstance(key, Key) else get_key(key)).leading_tone_pc

        bass = self.choose_bass(chord, pool, previous.get("bass"), smoothness)
        soprano = self.choose_soprano(pool, previous.get("soprano"), smoothness)
        step: VoicingStep = {"soprano": soprano, "alto": None, "tenor": None, "bass": bass}
        if soprano is None or bass is None:
            return step
        step.update(
            self.choose_inner(chord, pool, soprano, bass, previous, smoothness, leading_tone_pc)
        )
        return step
