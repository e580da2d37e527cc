"""Key and scale lookup.

``get_key`` turns user supplied names such as ``"C"``, ``"Gm"`` or
``"f# minor"`` into an immutable :class:`Key`. A key carries its spelled
scale and the diatonic triads built on each degree. Minor keys expose three
triad lists (natural, harmonic and melodic minor) because the dominant and
leading-tone chords are normally borrowed from harmonic minor.

Example
-------
>>> from progression_voicer.keys import get_key
>>> key = get_key("Am")
>>> key.triads[4], key.harmonic_triads[4]
('Em', 'E')
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, Optional, Sequence, Tuple

from . import LETTER_SEMITONES, LETTERS
from .errors import InvalidInputError, MusicTheoryError
from .note_utils import normalise_accidentals, pitch_class, spell

__all__ = ["SCALE_PATTERNS", "Key", "get_key", "build_scale", "triads_for_scale"]

SCALE_PATTERNS = {
    "major": (0, 2, 4, 5, 7, 9, 11),
    "natural minor": (0, 2, 3, 5, 7, 8, 10),
    "harmonic minor": (0, 2, 3, 5, 7, 8, 11),
    "melodic minor": (0, 2, 3, 5, 7, 9, 11),
}

_KEY_RE = re.compile(r"^\s*([A-Ga-g](?:#|b)?)\s*(m|min|minor|maj|major|M)?\s*$")
_MINOR_SUFFIXES = {"m", "min", "minor"}

# (third, fifth) semitone sizes -> triad suffix
_TRIAD_QUALITIES = {
    (4, 7): "",
    (3, 7): "m",
    (3, 6): "dim",
    (4, 8): "aug",
}


def build_scale(tonic: str, pattern: Sequence[int]) -> Tuple[str, ...]:
    """Spell a seven-note scale starting on ``tonic``.

    Each degree uses the next letter name so accidentals follow the key
    signature (``F major`` contains ``Bb`` rather than ``A#``).
    """

    tonic_pc = pitch_class(tonic)
    start = LETTERS.index(tonic[0].upper())
    notes = []
    for degree, offset in enumerate(pattern):
        letter = LETTERS[(start + degree) % 7]
        desired = (tonic_pc + offset) % 12
        alter = ((desired - LETTER_SEMITONES[letter] + 6) % 12) - 6
        notes.append(spell(letter, alter))
    return tuple(notes)


def triads_for_scale(scale: Sequence[str]) -> Tuple[str, ...]:
    """Return the triad symbol built in thirds on every degree of ``scale``."""

    triads = []
    for degree, root in enumerate(scale):
        third = scale[(degree + 2) % 7]
        fifth = scale[(degree + 4) % 7]
        root_pc = pitch_class(root)
        sizes = ((pitch_class(third) - root_pc) % 12, (pitch_class(fifth) - root_pc) % 12)
        suffix = _TRIAD_QUALITIES.get(sizes)
        if suffix is None:
            raise MusicTheoryError(f"Unsupported triad on {root} in scale {' '.join(scale)}")
        triads.append(root + suffix)
    return tuple(triads)


@dataclass(frozen=True)
class Key:
    """Immutable description of a major or minor key.

    ``triads`` holds the diatonic triads of a major key or of natural minor.
    ``harmonic_triads`` and ``melodic_triads`` are only populated for minor
    keys.
    """

    tonic: str
    mode: str
    scale: Tuple[str, ...]
    triads: Tuple[str, ...]
    harmonic_triads: Optional[Tuple[str, ...]] = None
    melodic_triads: Optional[Tuple[str, ...]] = None

    @property
    def name(self) -> str:
        return self.tonic if self.mode == "major" else f"{self.tonic}m"

    @property
    def tonic_pc(self) -> int:
        return pitch_class(self.tonic)

    @property
    def leading_tone_pc(self) -> int:
        return (self.tonic_pc + 11) % 12

    @property
    def scale_pcs(self) -> FrozenSet[int]:
        """Pitch classes of the scale; minor keys include the raised seventh."""

        pcs = {pitch_class(n) for n in self.scale}
        if self.mode == "minor":
            pcs.add(self.leading_tone_pc)
        return frozenset(pcs)

    def chord_for_degree(self, degree: int) -> str:
        """Return the diatonic triad on ``degree`` (0-6).

        Minor keys take V and VII from harmonic minor so both keep their
        dominant function; every other degree comes from natural minor.
        """

        if not 0 <= degree < len(self.triads):
            raise MusicTheoryError(
                f"Scale degree index {degree} out of range for key {self.name}"
            )
        if self.mode == "minor" and degree in (4, 6) and self.harmonic_triads:
            return self.harmonic_triads[degree]
        return self.triads[degree]


@lru_cache(maxsize=None)
def get_key(name: str) -> Key:
    """Return the :class:`Key` described by ``name``.

    A missing suffix or ``maj``/``major``/``M`` selects major; ``m``, ``min``
    or ``minor`` selects minor.

    Raises
    ------
    InvalidInputError
        If ``name`` is not a recognisable key.
    """

    if not isinstance(name, str):
        raise InvalidInputError(f"Key name must be a string, got {name!r}")
    match = _KEY_RE.match(normalise_accidentals(name))
    if not match:
        raise InvalidInputError(f"Could not get valid key details for key {name!r}")
    tonic_raw, suffix = match.groups()
    tonic = tonic_raw[0].upper() + tonic_raw[1:]

    if suffix in _MINOR_SUFFIXES:
        natural = build_scale(tonic, SCALE_PATTERNS["natural minor"])
        return Key(
            tonic=tonic,
            mode="minor",
            scale=natural,
            triads=triads_for_scale(natural),
            harmonic_triads=triads_for_scale(build_scale(tonic, SCALE_PATTERNS["harmonic minor"])),
            melodic_triads=triads_for_scale(build_scale(tonic, SCALE_PATTERNS["melodic minor"])),
        )
    scale = build_scale(tonic, SCALE_PATTERNS["major"])
    return Key(tonic=tonic, mode="major", scale=scale, triads=triads_for_scale(scale))
