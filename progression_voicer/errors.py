"""Exception hierarchy shared by every stage of the voicing pipeline.

Callers usually only need to distinguish two situations:

* :class:`InvalidInputError` - something the caller supplied (key name,
  range, meter) is structurally unusable. These are never repaired silently.
* :class:`MusicTheoryError` - a Roman numeral could not be turned into a
  playable chord. The orchestrator catches these per chord and fills the
  measure with rests so a single bad symbol does not abort the progression.

Both inherit from ``ValueError`` so older code catching ``ValueError`` keeps
working.

Example
-------
>>> from progression_voicer.errors import InvalidRangeError
>>> try:
...     raise InvalidRangeError("min above max", note=67)
... except ValueError as exc:
...     exc.note
67
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ProgressionVoicerError",
    "InvalidInputError",
    "InvalidRangeError",
    "InvalidMeterError",
    "MusicTheoryError",
    "GenerationError",
    "AccompanimentProviderError",
]


class ProgressionVoicerError(Exception):
    """Base class for all package specific errors."""


class InvalidInputError(ProgressionVoicerError, ValueError):
    """Raised when a key, range, meter or option supplied by the caller is invalid."""


class InvalidRangeError(InvalidInputError):
    """Raised when a pitch range has ``min > max``.

    ``note`` holds the MIDI value the caller tried to fit so it can be used
    unmodified instead of guessing a replacement.
    """

    def __init__(self, message: str, *, note: Optional[int] = None) -> None:
        super().__init__(message)
        self.note = note


class InvalidMeterError(InvalidInputError):
    """Raised when a meter string such as ``"4/4"`` cannot be parsed."""


class MusicTheoryError(ProgressionVoicerError, ValueError):
    """Raised when harmonic resolution produces an invalid or empty chord."""


class GenerationError(ProgressionVoicerError, RuntimeError):
    """Raised when orchestration fails for reasons other than bad theory input."""


class AccompanimentProviderError(GenerationError):
    """Raised when the external accompaniment provider fails or returns bad data."""
