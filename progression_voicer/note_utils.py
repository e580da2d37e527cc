"""Helpers for translating between note names, MIDI numbers and pitch classes.

Note names follow scientific pitch notation (``C4`` is middle C, MIDI 60).
Single and double accidentals are accepted in both directions so spellings
produced by the key and chord tables (``E#``, ``Cb``, ``F##``) can be turned
back into MIDI numbers without an enharmonic lookup table.

Example
-------
>>> from progression_voicer.note_utils import note_to_midi, midi_to_note
>>> note_to_midi("Bb3")
58
>>> midi_to_note(61)
'C#4'
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Iterable, Optional, Tuple

from . import LETTER_SEMITONES, NOTES
from .errors import InvalidInputError

__all__ = [
    "normalise_accidentals",
    "split_note_name",
    "note_to_midi",
    "midi_to_note",
    "pitch_class",
    "spell",
    "spell_midi",
]

logger = logging.getLogger(__name__)

_NOTE_RE = re.compile(r"([A-Ga-g])(#{1,2}|b{1,2}|x)?(-?\d+)?")


def normalise_accidentals(name: str) -> str:
    """Replace unicode accidentals with their ASCII equivalents and trim."""

    return name.replace("♭", "b").replace("♯", "#").replace("𝄪", "##").strip()


@lru_cache(maxsize=None)
def split_note_name(name: str) -> Tuple[str, int, Optional[int]]:
    """Return ``(letter, alteration, octave)`` for ``name``.

    ``octave`` is ``None`` for pitch-class names such as ``"F#"``. ``x`` is
    accepted as a double sharp.

    Raises
    ------
    InvalidInputError
        If ``name`` is not a recognisable note name.
    """

    match = _NOTE_RE.fullmatch(normalise_accidentals(name))
    if not match:
        raise InvalidInputError(f"Invalid note format: {name}")
    letter, accidental, octave = match.groups()
    accidental = accidental or ""
    if accidental == "x":
        alter = 2
    else:
        alter = accidental.count("#") - accidental.count("b")
    return letter.upper(), alter, int(octave) if octave is not None else None


@lru_cache(maxsize=None)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` into a MIDI number.

    Parameters
    ----------
    note:
        Note name including octave. Octaves may be negative.

    Returns
    -------
    int
        MIDI note number in the range ``0-127``.

    Raises
    ------
    InvalidInputError
        If ``note`` has no octave, is malformed or falls outside ``0-127``.
    """

    letter, alter, octave = split_note_name(note)
    if octave is None:
        logger.error("Note name lacks an octave: %s", note)
        raise InvalidInputError(f"Note name must include an octave: {note}")

    # MIDI octave numbers are offset by one from scientific pitch notation.
    midi_val = (octave + 1) * 12 + LETTER_SEMITONES[letter] + alter
    if not 0 <= midi_val <= 127:
        logger.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise InvalidInputError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {note}"
        )
    return midi_val


def midi_to_note(midi_note: int) -> str:
    """Convert a MIDI number into a note name using sharps.

    >>> midi_to_note(60)
    'C4'
    >>> midi_to_note(128)
    Traceback (most recent call last):
        ...
    progression_voicer.errors.InvalidInputError: MIDI note 128 out of range 0-127
    """

    if not 0 <= midi_note <= 127:
        raise InvalidInputError(f"MIDI note {midi_note} out of range 0-127")
    octave = midi_note // 12 - 1
    return f"{NOTES[midi_note % 12]}{octave}"


@lru_cache(maxsize=None)
def pitch_class(name: str) -> int:
    """Return the chroma (0-11) of a note name with or without octave."""

    letter, alter, _ = split_note_name(name)
    return (LETTER_SEMITONES[letter] + alter) % 12


def spell(letter: str, alter: int, octave: Optional[int] = None) -> str:
    """Build a note name from its parts, e.g. ``spell("F", 1, 4) == "F#4"``."""

    accidental = "#" * alter if alter > 0 else "b" * -alter
    return f"{letter}{accidental}{'' if octave is None else octave}"


def spell_midi(midi_note: int, spellings: Iterable[str] = ()) -> str:
    """Name ``midi_note`` with the first of ``spellings`` sharing its pitch class.

    ``spellings`` may carry octaves (``"Bb2"``) or not (``"Bb"``); only the
    letter and accidental are used. The octave is chosen so the result maps
    back to ``midi_note``, which matters for ``Cb`` and ``B#``. Without a
    matching spelling the sharp name from :func:`midi_to_note` is returned.

    >>> spell_midi(58, ("Bb2", "D3", "F3"))
    'Bb3'
    >>> spell_midi(59, ("Cb",))
    'Cb4'
    """

    if not 0 <= midi_note <= 127:
        raise InvalidInputError(f"MIDI note {midi_note} out of range 0-127")
    for name in spellings:
        letter, alter, _ = split_note_name(name)
        natural = LETTER_SEMITONES[letter] + alter
        if natural % 12 == midi_note % 12:
            return spell(letter, alter, (midi_note - natural) // 12 - 1)
    return midi_to_note(midi_note)
