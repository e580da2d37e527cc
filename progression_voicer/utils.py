"""Validation helpers shared by the CLI and the generation entry points.

Usage Example
-------------
>>> from progression_voicer.utils import parse_meter, parse_progression
>>> parse_meter("6/8")
(6, 8)
>>> parse_progression("I, vi, ii65, V7, I")
['I', 'vi', 'ii65', 'V7', 'I']
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple, Union

from .errors import InvalidInputError, InvalidMeterError

__all__ = ["parse_meter", "parse_progression", "measure_length"]

_INTEGER_RE = re.compile(r"^\d+$")


def parse_meter(meter: Optional[str]) -> Tuple[int, int]:
    """Parse and validate a meter string.

    Parameters
    ----------
    meter:
        Meter in ``"BEATS/BEAT_TYPE"`` form. Whitespace around either number
        is ignored.

    Returns
    -------
    tuple[int, int]
        ``(beats, beat_type)``.

    Raises
    ------
    InvalidMeterError
        If ``meter`` is missing, malformed, uses non-integers, non-positive
        values or a beat type that is not a power of two.
    """

    if meter is None:
        raise InvalidMeterError("Meter string cannot be None.")
    text = meter.strip()
    if not text:
        raise InvalidMeterError("Meter string cannot be empty.")
    parts = text.split("/")
    if len(parts) != 2:
        raise InvalidMeterError('Invalid meter string format. Expected "beats/beatType".')

    beats_str, beat_type_str = (p.strip() for p in parts)
    # "3.0" and "-4" are rejected here rather than coerced.
    if not _INTEGER_RE.match(beats_str) or not _INTEGER_RE.match(beat_type_str):
        raise InvalidMeterError("Beats and beat type must be integers.")
    beats, beat_type = int(beats_str), int(beat_type_str)
    if beats <= 0 or beat_type <= 0:
        raise InvalidMeterError("Beats and beat type must be positive integers.")
    if beat_type & (beat_type - 1):
        raise InvalidMeterError("Invalid beat type. Must be a power of 2 (e.g., 2, 4, 8).")
    return beats, beat_type


def measure_length(time_signature: Tuple[int, int]) -> float:
    """Length of one measure as a fraction of a whole note."""

    beats, beat_type = time_signature
    return beats / beat_type


def parse_progression(progression: Union[str, Sequence[str], None]) -> List[str]:
    """Return a clean list of Roman numerals.

    Strings are split on commas, ``|`` bar lines or whitespace. Empty tokens
    are discarded.

    Raises
    ------
    InvalidInputError
        If no chords remain.
    """

    if progression is None:
        tokens: List[str] = []
    elif isinstance(progression, str):
        tokens = [t for t in re.split(r"[,|\s]+", progression) if t]
    else:
        tokens = [str(t).strip() for t in progression if str(t).strip()]
    if not tokens:
        raise InvalidInputError("Chord progression must contain at least one chord.")
    return tokens
