"""Voice-leading rule checks reported as warnings.

The voicers are greedy, so a finished step can still contain textbook faults
such as parallel fifths. :func:`check_voice_leading` inspects one step against
the previous one and reports what it finds. ``strictness`` (0-10) controls how
much is checked:

=====================  ========================================
strictness             SATB checks
=====================  ========================================
> 1                    voice crossing
>= 4                   soprano/alto and alto/tenor spacing
>= 6                   tenor/bass spacing
>= 7                   parallel fifths and octaves (all pairs)
=====================  ========================================

Melody and accompaniment: crossing above 1, melody/accompaniment spacing from
5, and melody/bass parallels from 8.

Nothing is raised; each message is logged at WARNING and returned.
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence, Union

from . import MELODY_ACCOMPANIMENT_SPACING_LIMIT, SATB_SPACING_LIMITS, SATB_VOICES
from .note_utils import midi_to_note
from .voice_leading import parallel_fifth_or_octave, parallel_motion, voice_pairs

__all__ = ["check_voice_leading", "check_satb", "check_melody_accompaniment"]

logger = logging.getLogger(__name__)

_ABBREVIATIONS = {"soprano": "S", "alto": "A", "tenor": "T", "bass": "B"}


def _location(measure: int, beat: int) -> str:
    return f"M{measure + 1}:B{beat + 1}"


def check_satb(
    current: Mapping[str, Optional[int]],
    previous: Mapping[str, Optional[int]],
    location: str,
    strictness: int,
    spacing: Mapping[str, int] = SATB_SPACING_LIMITS,
) -> List[str]:
    """Return rule violations between two complete SATB steps."""

    notes = [current.get(v) for v in SATB_VOICES]
    if any(n is None for n in notes):
        return []
    soprano, alto, tenor, bass = notes
    messages: List[str] = []
    if alto > soprano:
        messages.append(f"SATB crossing A>S at {location}")
    if tenor > alto:
        messages.append(f"SATB crossing T>A at {location}")
    if bass > tenor:
        messages.append(f"SATB crossing B>T at {location}")

    if strictness >= 4:
        if soprano - alto > spacing["soprano_alto"]:
            messages.append(f"SATB spacing S/A exceeds {spacing['soprano_alto']} at {location}")
        if alto - tenor > spacing["alto_tenor"]:
            messages.append(f"SATB spacing A/T exceeds {spacing['alto_tenor']} at {location}")
    if strictness >= 6 and tenor - bass > spacing["tenor_bass"]:
        messages.append(f"SATB spacing T/B exceeds {spacing['tenor_bass']} at {location}")

    prev_notes = [previous.get(v) for v in SATB_VOICES]
    if strictness >= 7 and all(n is not None for n in prev_notes):
        names = [_ABBREVIATIONS[v] for v in SATB_VOICES]
        fifths, octaves = parallel_motion(prev_notes, notes)
        for upper, lower in voice_pairs(names, fifths):
            messages.append(f"Parallel fifth ({upper}/{lower}) at {location}")
        for upper, lower in voice_pairs(names, octaves):
            messages.append(f"Parallel octave ({upper}/{lower}) at {location}")
    return messages


def check_melody_accompaniment(
    current_melody: Optional[int],
    current_accompaniment: Sequence[Optional[int]],
    previous_melody: Optional[int],
    previous_accompaniment: Sequence[Optional[int]],
    location: str,
    strictness: int,
    spacing_limit: int = MELODY_ACCOMPANIMENT_SPACING_LIMIT,
) -> List[str]:
    """Return rule violations between two melody+accompaniment events."""

    if current_melody is None or not current_accompaniment:
        return []
    if any(n is None for n in current_accompaniment):
        return []
    lowest, highest = current_accompaniment[0], current_accompaniment[-1]
    messages: List[str] = []
    if highest >= current_melody:
        messages.append(f"Melody/accompaniment crossing at {location}")
    if strictness >= 5 and current_melody - highest > spacing_limit:
        messages.append(f"Melody/accompaniment spacing exceeds {spacing_limit} at {location}")
    if (
        strictness >= 8
        and previous_melody is not None
        and previous_accompaniment
        and previous_accompaniment[0] is not None
    ):
        kind = parallel_fifth_or_octave(
            previous_melody, previous_accompaniment[0], current_melody, lowest
        )
        if kind:
            messages.append(
                f"Parallel {kind} (melody/bass) at {location}: "
                f"{midi_to_note(previous_melody)}-{midi_to_note(previous_accompaniment[0])} to "
                f"{midi_to_note(current_melody)}-{midi_to_note(lowest)}"
            )
    return messages


def check_voice_leading(
    current: Union[Mapping[str, object], None],
    previous: Union[Mapping[str, object], None],
    style: str,
    measure: int,
    beat: int,
    strictness: int,
    spacing: Mapping[str, int] = SATB_SPACING_LIMITS,
    accompaniment_spacing: int = MELODY_ACCOMPANIMENT_SPACING_LIMIT,
) -> List[str]:
    """Check one step and log every violation.

    ``current`` and ``previous`` are SATB steps (voice -> pitch) or, for the
    melody style, ``{"melody": pitch, "accompaniment": [pitches]}``.
    ``spacing`` and ``accompaniment_spacing`` are the limits the voicer was
    configured with, normally ``VoicingConfig.spacing`` and
    ``VoicingConfig.accompaniment_spacing``.
    """

    if strictness <= 1 or previous is None or current is None:
        return []
    location = _location(measure, beat)
    if style == "SATB":
        messages = check_satb(current, previous, location, strictness, spacing)  # type: ignore[arg-type]
    else:
        messages = check_melody_accompaniment(
            current.get("melody"),  # type: ignore[arg-type]
            current.get("accompaniment") or [],  # type: ignore[arg-type]
            previous.get("melody"),  # type: ignore[arg-type]
            previous.get("accompaniment") or [],  # type: ignore[arg-type]
            location,
            strictness,
            accompaniment_spacing,
        )
    for message in messages:
        logger.warning(message)
    return messages
