"""Roman-numeral resolution.

This module converts a Roman numeral such as ``"V65"``, ``"ii°7"`` or
``"IV/3"`` in a given key into a :class:`ChordSpec`: the final chord symbol
plus the bass interval requested by the inversion marker. The work happens
in a fixed order:

1. Strip the inversion marker (figured bass digits or slash notation).
2. Resolve the key.
3. Map the roman letters to a scale-degree index.
4. Pick the diatonic triad, borrowing V and VII from harmonic minor in minor
   keys.
5. Apply an explicit quality suffix (``dim``, ``°``, ``aug``, ``+``, ``M``,
   ``m``, ``maj``, ``min``).
6. Apply a seventh when the numeral or figure asks for one.

Steps 5 and 6 never fail hard: an invalid reconstruction is logged and the
previous symbol is kept.

Example
-------
>>> from progression_voicer.harmony import resolve_roman
>>> spec = resolve_roman("V65", "C")
>>> spec.symbol, spec.bass_interval
('G7', '3')
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .chords import get_chord, interval_semitones
from .errors import MusicTheoryError
from .keys import Key, get_key
from .note_utils import midi_to_note, normalise_accidentals, pitch_class

__all__ = [
    "ROOT_POSITION",
    "ChordSpec",
    "parse_inversion",
    "resolve_roman",
]

logger = logging.getLogger(__name__)

ROOT_POSITION = "1P"

_ROMAN_DEGREES = {"I": 0, "II": 1, "III": 2, "IV": 3, "V": 4, "VI": 5, "VII": 6}

_FIGURED_RE = re.compile(r"^(.*?)(64|65|43|42|6|7|2)(?![a-zA-Z#b])$")
_SLASH_RE = re.compile(r"^(.*?)/([#b]?\d+[PMmdA]?)$")
_TRAILING_DIGITS_RE = re.compile(r"(\d+)$")
_ROMAN_STEM_RE = re.compile(r"^[#b]?[ivxIVX]+$")
_ROMAN_LETTERS_RE = re.compile(r"[ivxIVX]+")
_ACCIDENTAL_RE = re.compile(r"^([#b]+)")
_QUALITY_RE = re.compile(r"(dim|°|o|aug|\+|maj|min|M|m)$")

# Figure -> chord-relative bass interval number.
_FIGURE_BASS = {"6": "3", "64": "5", "7": ROOT_POSITION, "65": "3", "43": "5", "42": "7", "2": "7"}
_SEVENTH_FIGURES = {"7", "65", "43", "42", "2"}

_QUALITY_SUFFIX = {
    "maj": "M",
    "M": "M",
    "min": "m",
    "m": "m",
    "dim": "dim",
    "°": "dim",
    "o": "dim",
    "aug": "aug",
    "+": "aug",
}

MAJOR_KEY_SEVENTHS = ("maj7", "m7", "m7", "maj7", "7", "m7", "m7b5")
MINOR_KEY_SEVENTHS = ("m7", "m7b5", "maj7", "m7", "7", "maj7", "dim7")


@dataclass(frozen=True)
class ChordSpec:
    """Resolved description of one progression step."""

    roman: str
    numeral: str
    degree: int
    symbol: str
    bass_interval: str = ROOT_POSITION
    quality: Optional[str] = None
    seventh: bool = False
    half_diminished: bool = False
    fully_diminished: bool = False

    @property
    def is_inversion(self) -> bool:
        return self.bass_interval not in ("1", "1P", "P1")


def parse_inversion(roman: str) -> Tuple[str, str, Optional[str]]:
    """Split ``roman`` into ``(base, bass_interval, figure)``.

    Figured bass digits map to a chord-relative interval number; slash
    notation passes its token through unchanged.

    Raises
    ------
    MusicTheoryError
        If no base numeral remains once the marker is removed.
        Also raised when the numeral ends in digits that are neither a known
        figure nor a common extension (``7``, ``9``, ``11``, ``13``).
    """

    token = normalise_accidentals(roman)
    figure: Optional[str] = None
    bass = ROOT_POSITION
    match = _FIGURED_RE.match(token)
    slash = _SLASH_RE.match(token)
    if match:
        base, figure = match.groups()
        bass = _FIGURE_BASS[figure]
    elif slash:
        base, bass = slash.groups()
    else:
        trailing = _TRAILING_DIGITS_RE.search(token)
        if trailing:
            stem = token[: -len(trailing.group(1))]
            if trailing.group(1) not in {"7", "9", "11", "13"} and _ROMAN_STEM_RE.match(stem):
                raise MusicTheoryError(
                    f"Unrecognised figured bass {trailing.group(1)!r} in {roman!r}"
                )
        base = token
    if not base:
        raise MusicTheoryError(f"Could not parse base Roman numeral from {roman!r}")
    return base, bass, figure


def _degree_for(base: str) -> Tuple[str, int]:
    match = _ROMAN_LETTERS_RE.search(base)
    if not match:
        raise MusicTheoryError(f"Could not extract Roman letters from {base!r}")
    numeral = match.group(0)
    degree = _ROMAN_DEGREES.get(numeral.upper())
    if degree is None:
        raise MusicTheoryError(f"Unknown Roman numeral {numeral!r}")
    return numeral, degree


def _chromatic_root(key: Key, degree: int, accidentals: str, numeral: str) -> str:
    """Return a major or minor triad on an altered scale degree (``bVII``)."""

    shift = accidentals.count("#") - accidentals.count("b")
    root_pc = (pitch_class(key.scale[degree]) + shift) % 12
    # Prefer a spelling matching the requested accidental.
    root = midi_to_note(60 + root_pc)[:-1]
    if shift < 0 and "#" in root:
        root = midi_to_note(60 + (root_pc + 1) % 12)[0] + "b"
    return root + ("" if numeral.isupper() else "m")


def _apply_quality(symbol: str, base: str) -> Tuple[str, Optional[str]]:
    match = _QUALITY_RE.search(base)
    if not match:
        return symbol, None
    quality = _QUALITY_SUFFIX[match.group(1)]
    chord = get_chord(symbol)
    candidate = get_chord(chord.tonic + quality) if chord else None
    if candidate is None:
        logger.warning(
            "Quality %r could not be applied to %s; keeping diatonic quality",
            match.group(1),
            symbol,
        )
        return symbol, quality
    return candidate.symbol, quality


def _apply_seventh(symbol: str, key: Key, degree: int, half_dim: bool, full_dim: bool) -> str:
    chord = get_chord(symbol)
    if chord is None:
        raise MusicTheoryError(f"Cannot add a seventh to invalid chord {symbol!r}")
    if half_dim:
        seventh_type = "m7b5"
    elif full_dim:
        seventh_type = "dim7"
    elif key.mode == "major":
        seventh_type = MAJOR_KEY_SEVENTHS[degree]
    else:
        seventh_type = MINOR_KEY_SEVENTHS[degree]

    for candidate in (chord.tonic + seventh_type, chord.tonic + "7"):
        resolved = get_chord(candidate)
        if resolved is not None:
            if candidate != chord.tonic + seventh_type:
                logger.warning(
                    "Seventh %s unavailable; using dominant seventh %s",
                    chord.tonic + seventh_type,
                    resolved.symbol,
                )
            return resolved.symbol
        logger.warning("Seventh chord %s is not a valid symbol", candidate)
    logger.warning("Falling back to triad %s", symbol)
    return symbol


def resolve_roman(roman: str, key: Union[str, Key]) -> ChordSpec:
    """Resolve ``roman`` in ``key`` into a :class:`ChordSpec`.

    Parameters
    ----------
    roman:
        Roman numeral with optional accidental prefix, quality suffix,
        figured bass digits or slash inversion.
    key:
        Key name (``"C"``, ``"Gm"``) or an already resolved :class:`Key`.

    Raises
    ------
    InvalidInputError
        If ``key`` is unrecognisable.
    MusicTheoryError
        If the numeral cannot be parsed or yields no valid chord.
    """

    base, bass, figure = parse_inversion(roman)
    key_obj = key if isinstance(key, Key) else get_key(key)
    numeral, degree = _degree_for(base)

    accidental = _ACCIDENTAL_RE.match(base)
    if accidental:
        symbol = _chromatic_root(key_obj, degree, accidental.group(1), numeral)
    else:
        symbol = key_obj.chord_for_degree(degree)

    symbol, quality = _apply_quality(symbol, base)

    lowered = base.lower()
    seventh = "7" in base or figure in _SEVENTH_FIGURES
    half_dim = "ø" in base or "hd" in lowered
    full_dim = not half_dim and seventh and ("°" in base or "dim" in lowered or quality == "dim")
    if seventh:
        symbol = _apply_seventh(symbol, key_obj, degree, half_dim, full_dim)

    if get_chord(symbol) is None:
        raise MusicTheoryError(f"Resolved chord symbol {symbol!r} for {roman!r} is invalid")

    if bass not in ("1", "1P", "P1") and not bass.lstrip("#b").isdigit():
        # Full interval names such as ``3M`` are validated eagerly.
        interval_semitones(bass.lstrip("#b"))

    logger.debug("Resolved %s in %s -> %s (bass %s)", roman, key_obj.name, symbol, bass)
    return ChordSpec(
        roman=roman,
        numeral=numeral,
        degree=degree,
        symbol=symbol,
        bass_interval=bass,
        quality=quality,
        seventh=seventh,
        half_diminished=half_dim,
        fully_diminished=full_dim,
    )
