"""Boundary to an external, asynchronous accompaniment generator.

Some front ends ask a language model for an accompaniment line instead of
the built-in voicer. The package treats such a service as an opaque async
callable that receives an :class:`AccompanimentRequest` and returns raw text.
That text must be a JSON array of ``{"note": "C3", "rhythm": 0.25}``
objects. Anything else (non-JSON, an empty array, missing fields, unknown note
names) raises :class:`~progression_voicer.errors.AccompanimentProviderError`;
there is no silent fallback.

Example
-------
>>> import asyncio
>>> async def provider(request):
...     return '[{"note": "C3", "rhythm": 0.5}, {"note": "G2", "rhythm": 0.5}]'
>>> events = asyncio.run(request_accompaniment(provider, AccompanimentRequest(["I"], "C", "4/4")))
>>> [e.note for e in events]
['C3', 'G2']
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Awaitable, List, Optional, Protocol, Sequence, Tuple

from .errors import AccompanimentProviderError, InvalidInputError
from .events import NoteEvent
from .note_utils import note_to_midi

__all__ = [
    "AccompanimentRequest",
    "AccompanimentProvider",
    "parse_provider_response",
    "request_accompaniment",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccompanimentRequest:
    """Context handed to the provider for one generation request."""

    progression: Sequence[str]
    key: str
    meter: str
    melody: Sequence[NoteEvent] = field(default_factory=tuple)
    num_voices: int = 3
    accompaniment_range: Optional[Tuple[int, int]] = None


class AccompanimentProvider(Protocol):
    """Async callable returning the raw provider response."""

    def __call__(self, request: AccompanimentRequest) -> Awaitable[str]:
        ...


def parse_provider_response(text: Optional[str]) -> List[NoteEvent]:
    """Parse and validate a provider response.

    Raises
    ------
    AccompanimentProviderError
        If ``text`` is empty, not JSON, not a non-empty list, or any entry
        lacks a valid ``note`` string or a positive numeric ``rhythm``.
    """

    if text is None or not text.strip():
        raise AccompanimentProviderError("Accompaniment provider returned an empty response")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AccompanimentProviderError(
            f"Accompaniment provider returned invalid JSON: {exc}"
        ) from exc
    if not isinstance(payload, list) or not payload:
        raise AccompanimentProviderError("Accompaniment response must be a non-empty JSON array")

    events: List[NoteEvent] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise AccompanimentProviderError(f"Entry {index} is not an object")
        note = item.get("note")
        rhythm = item.get("rhythm")
        if not isinstance(note, str):
            raise AccompanimentProviderError(f"Entry {index} has no note name")
        # ``bool`` is an ``int`` subclass and must not count as a duration.
        if isinstance(rhythm, bool) or not isinstance(rhythm, (int, float)) or rhythm <= 0:
            raise AccompanimentProviderError(f"Entry {index} has an invalid rhythm {rhythm!r}")
        try:
            note_to_midi(note)
        except InvalidInputError as exc:
            raise AccompanimentProviderError(f"Entry {index} has an invalid note {note!r}") from exc
        events.append(NoteEvent(note, float(rhythm)))
    return events


async def request_accompaniment(
    provider: AccompanimentProvider,
    request: AccompanimentRequest,
    timeout: Optional[float] = 30.0,
) -> List[NoteEvent]:
    """Invoke ``provider`` once and return its parsed events.

    A timeout or any exception raised by the provider is re-raised as
    :class:`AccompanimentProviderError` with the original as its cause.
    """

    try:
        text = await asyncio.wait_for(provider(request), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error("Accompaniment provider timed out after %s seconds", timeout)
        raise AccompanimentProviderError("Accompaniment provider timed out") from exc
    except AccompanimentProviderError:
        raise
    except Exception as exc:
        logger.error("Accompaniment provider failed: %s", exc)
        raise AccompanimentProviderError(f"Accompaniment provider failed: {exc}") from exc
    return parse_provider_response(text)
