"""Chord-symbol dictionary and interval arithmetic.

Chord symbols are parsed into a tonic and a quality suffix. The suffix is
looked up in :data:`CHORD_ALIASES` and expanded to a tuple of interval names
in ``<number><quality>`` form (``"3M"`` is a major third, ``"5d"`` a
diminished fifth). Spelled note names are derived by walking letter names so
``Bdim7`` yields ``B D F Ab`` rather than an enharmonic sharp spelling.

Example
-------
>>> from progression_voicer.chords import get_chord
>>> chord = get_chord("G7")
>>> chord.notes
('G', 'B', 'D', 'F')
>>> sorted(chord.pitch_classes)
[2, 5, 7, 11]

Design Notes
------------
- Lookups are memoised with :func:`functools.lru_cache` since the same handful
  of symbols is resolved once per chord of every progression.
- ``get_chord`` returns ``None`` for unknown symbols so callers can decide
  whether a failure is fatal (the materializer) or merely logged (quality
  overrides in the harmonic resolver).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, FrozenSet, Optional, Tuple

from . import LETTER_SEMITONES, LETTERS
from .errors import MusicTheoryError
from .note_utils import normalise_accidentals, pitch_class, spell, split_note_name

__all__ = [
    "CHORD_TYPES",
    "CHORD_ALIASES",
    "Chord",
    "interval_semitones",
    "interval_number",
    "transpose",
    "get_chord",
]

# Semitone size of each simple interval number when major or perfect.
_BASE_SEMITONES = (0, 2, 4, 5, 7, 9, 11)
_PERFECT_NUMBERS = {1, 4, 5}

_INTERVAL_RE = re.compile(r"^(\d+)(P|M|m|d{1,2}|A{1,2})$")

CHORD_TYPES: Dict[str, Tuple[str, ...]] = {
    "major": ("1P", "3M", "5P"),
    "minor": ("1P", "3m", "5P"),
    "diminished": ("1P", "3m", "5d"),
    "augmented": ("1P", "3M", "5A"),
    "suspended second": ("1P", "2M", "5P"),
    "suspended fourth": ("1P", "4P", "5P"),
    "sixth": ("1P", "3M", "5P", "6M"),
    "minor sixth": ("1P", "3m", "5P", "6M"),
    "major seventh": ("1P", "3M", "5P", "7M"),
    "minor seventh": ("1P", "3m", "5P", "7m"),
    "dominant seventh": ("1P", "3M", "5P", "7m"),
    "half-diminished": ("1P", "3m", "5d", "7m"),
    "diminished seventh": ("1P", "3m", "5d", "7d"),
    "augmented seventh": ("1P", "3M", "5A", "7m"),
    "minor/major seventh": ("1P", "3m", "5P", "7M"),
    "augmented major seventh": ("1P", "3M", "5A", "7M"),
}

# Suffix spellings accepted after the tonic. ``M`` and ``m`` are case
# sensitive; everything else is matched literally.
CHORD_ALIASES: Dict[str, str] = {
    "": "major",
    "M": "major",
    "maj": "major",
    "m": "minor",
    "min": "minor",
    "-": "minor",
    "dim": "diminished",
    "°": "diminished",
    "o": "diminished",
    "aug": "augmented",
    "+": "augmented",
    "sus2": "suspended second",
    "sus4": "suspended fourth",
    "sus": "suspended fourth",
    "6": "sixth",
    "m6": "minor sixth",
    "maj7": "major seventh",
    "M7": "major seventh",
    "Δ": "major seventh",
    "m7": "minor seventh",
    "min7": "minor seventh",
    "-7": "minor seventh",
    "7": "dominant seventh",
    "dom7": "dominant seventh",
    "m7b5": "half-diminished",
    "ø": "half-diminished",
    "ø7": "half-diminished",
    "dim7": "diminished seventh",
    "°7": "diminished seventh",
    "o7": "diminished seventh",
    "aug7": "augmented seventh",
    "7#5": "augmented seventh",
    "+7": "augmented seventh",
    "mM7": "minor/major seventh",
    "mmaj7": "minor/major seventh",
    "maj7#5": "augmented major seventh",
    "M7#5": "augmented major seventh",
}

# Preferred suffix used when printing a canonical symbol for each type.
_CANONICAL_SUFFIX = {
    "major": "",
    "minor": "m",
    "diminished": "dim",
    "augmented": "aug",
    "suspended second": "sus2",
    "suspended fourth": "sus4",
    "sixth": "6",
    "minor sixth": "m6",
    "major seventh": "maj7",
    "minor seventh": "m7",
    "dominant seventh": "7",
    "half-diminished": "m7b5",
    "diminished seventh": "dim7",
    "augmented seventh": "aug7",
    "minor/major seventh": "mM7",
    "augmented major seventh": "maj7#5",
}

_SYMBOL_RE = re.compile(r"^([A-G](?:##|#|bb|b)?)(.*)$")


@lru_cache(maxsize=None)
def interval_number(interval: str) -> int:
    """Return the generic interval number of ``interval`` (``"7m"`` -> ``7``)."""

    match = _INTERVAL_RE.match(interval)
    if not match:
        raise MusicTheoryError(f"Invalid interval: {interval}")
    return int(match.group(1))


@lru_cache(maxsize=None)
def interval_semitones(interval: str) -> int:
    """Return the size of ``interval`` in semitones.

    Perfect-class numbers (unison, fourth, fifth and their compounds) accept
    ``P``, ``d`` and ``A``; the others accept ``M``, ``m``, ``d`` and ``A``.
    """

    match = _INTERVAL_RE.match(interval)
    if not match:
        raise MusicTheoryError(f"Invalid interval: {interval}")
    number = int(match.group(1))
    quality = match.group(2)
    if number < 1:
        raise MusicTheoryError(f"Invalid interval: {interval}")
    simple = (number - 1) % 7
    size = _BASE_SEMITONES[simple] + 12 * ((number - 1) // 7)
    if simple + 1 in _PERFECT_NUMBERS:
        offsets = {"P": 0, "d": -1, "dd": -2, "A": 1, "AA": 2}
    else:
        offsets = {"M": 0, "m": -1, "d": -2, "dd": -3, "A": 1, "AA": 2}
    if quality not in offsets:
        raise MusicTheoryError(f"Invalid interval quality for {interval}")
    return size + offsets[quality]


@lru_cache(maxsize=None)
def transpose(note: str, interval: str) -> str:
    """Transpose a spelled ``note`` upward by ``interval``.

    Works for pitch-class names (``"F#"``) and names with an octave
    (``"F#3"``); the octave is carried across the ``B``/``C`` boundary.
    """

    letter, alter, octave = split_note_name(note)
    number = interval_number(interval)
    steps = interval_semitones(interval)
    letter_idx = LETTERS.index(letter) + number - 1
    new_letter = LETTERS[letter_idx % 7]
    octave_shift = letter_idx // 7
    # Work at octave 4 when none was given so the arithmetic is uniform.
    base_octave = 4 if octave is None else octave
    source = (base_octave + 1) * 12 + LETTER_SEMITONES[letter] + alter
    natural = (base_octave + octave_shift + 1) * 12 + LETTER_SEMITONES[new_letter]
    new_alter = source + steps - natural
    new_octave = None if octave is None else octave + octave_shift
    return spell(new_letter, new_alter, new_octave)


@dataclass(frozen=True)
class Chord:
    """A parsed chord symbol."""

    symbol: str
    tonic: str
    type: str
    intervals: Tuple[str, ...]
    notes: Tuple[str, ...]

    @property
    def pitch_classes(self) -> FrozenSet[int]:
        return frozenset(pitch_class(n) for n in self.notes)

    def interval_for_number(self, number: int) -> Optional[str]:
        """Return the chord's own interval with generic ``number`` if present."""

        for interval in self.intervals:
            if (interval_number(interval) - 1) % 7 == (number - 1) % 7:
                return interval
        return None


@lru_cache(maxsize=None)
def get_chord(symbol: str) -> Optional[Chord]:
    """Parse ``symbol`` into a :class:`Chord` or return ``None`` if unknown."""

    match = _SYMBOL_RE.match(normalise_accidentals(symbol))
    if not match:
        return None
    tonic, suffix = match.groups()
    chord_type = CHORD_ALIASES.get(suffix)
    if chord_type is None:
        return None
    intervals = CHORD_TYPES[chord_type]
    notes = tuple(transpose(tonic, iv) for iv in intervals)
    return Chord(
        symbol=tonic + _CANONICAL_SUFFIX[chord_type],
        tonic=tonic,
        type=chord_type,
        intervals=intervals,
        notes=notes,
    )
