"""Pitch range helpers.

Ranges are inclusive ``(low, high)`` MIDI pairs. Callers describe them with
note names where either bound may be ``None`` to mean "use the default for
this voice" (see :data:`progression_voicer.VOICE_RANGES`).

Example
-------
>>> resolve_range("melody", {"min": "C4", "max": None})
(60, 84)
>>> put_in_range(43, 60, 72)
67
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Tuple, Union

from . import VOICE_RANGES
from .errors import InvalidInputError, InvalidRangeError
from .note_utils import note_to_midi

__all__ = ["RangeSpec", "resolve_range", "is_in_range", "put_in_range"]

logger = logging.getLogger(__name__)

RangeSpec = Union[Mapping[str, Optional[Union[str, int]]], Tuple[Optional[Union[str, int]], Optional[Union[str, int]]]]


def _bound(value: Optional[Union[str, int]], default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    return note_to_midi(value)


def resolve_range(
    voice: str,
    spec: Optional[RangeSpec] = None,
    defaults: Optional[Mapping[str, Tuple[int, int]]] = None,
) -> Tuple[int, int]:
    """Return the MIDI bounds for ``voice``.

    ``spec`` is either a ``{"min": ..., "max": ...}`` mapping or a
    ``(min, max)`` pair. Bounds may be note names, MIDI numbers or ``None``.

    Raises
    ------
    InvalidInputError
        If ``voice`` has no default range and a bound is missing.
    InvalidRangeError
        If the resolved minimum lies above the maximum.
    """

    table = defaults if defaults is not None else VOICE_RANGES
    default = table.get(voice)
    if spec is None:
        low_raw = high_raw = None
    elif isinstance(spec, Mapping):
        low_raw, high_raw = spec.get("min"), spec.get("max")
    else:
        low_raw, high_raw = spec
    if default is None and (low_raw is None or high_raw is None):
        raise InvalidInputError(f"No default range for voice {voice!r}")
    low = _bound(low_raw, default[0] if default else 0)
    high = _bound(high_raw, default[1] if default else 127)
    if low > high:
        raise InvalidRangeError(
            f"Invalid range for {voice}: minimum {low} is above maximum {high}"
        )
    return low, high


def is_in_range(midi_note: int, low: int, high: int) -> bool:
    """Return ``True`` if ``low <= midi_note <= high``.

    Raises ``InvalidRangeError`` when ``low > high``.
    """

    if low > high:
        raise InvalidRangeError(
            "Invalid range: minimum cannot be greater than maximum", note=midi_note
        )
    return low <= midi_note <= high


def put_in_range(midi_note: int, low: int, high: int) -> int:
    """Shift ``midi_note`` by whole octaves until it lies in ``[low, high]``.

    Notes already inside the range are returned unchanged. When no octave of
    the pitch class fits (a range narrower than an octave), the note is
    clamped to the bound it overshot.

    Raises
    ------
    InvalidRangeError
        If ``low > high``. The untouched note is available as ``exc.note``.
    """

    if low > high:
        raise InvalidRangeError(
            "Invalid range: minimum cannot be greater than maximum", note=midi_note
        )
    if low <= midi_note <= high:
        return midi_note

    current = midi_note
    if current < low:
        while current < low:
            current += 12
        if current > high:
            logger.debug("Clamping %d to %d after overshooting range", midi_note, high)
            return high
    else:
        while current > high:
            current -= 12
        if current < low:
            logger.debug("Clamping %d to %d after undershooting range", midi_note, low)
            return low
    return current
