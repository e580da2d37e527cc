"""Write generated voicings to Standard MIDI Files.

Every voice becomes its own track. Rests (events whose ``note`` is ``None``)
advance the track's clock without sounding. The first track also carries
the tempo and time-signature meta messages. Notes on a downbeat get a small
velocity accent so the metre is audible on playback.

Example
-------
>>> from progression_voicer import generate_voicing
>>> from progression_voicer.midi_io import write_voicing_midi
>>> voices = generate_voicing(["I", "IV", "V", "I"], "C")
>>> write_voicing_midi(voices, 90, (4, 4), "chorale.mid")  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence, Tuple, Union

import mido
from mido import Message, MetaMessage, MidiFile, MidiTrack

from .errors import InvalidInputError
from .events import MelodyAccompanimentResult, NoteEvent
from .note_utils import note_to_midi

__all__ = ["TICKS_PER_BEAT", "write_voicing_midi"]

logger = logging.getLogger(__name__)

TICKS_PER_BEAT = 480
BASE_VELOCITY = 64
DOWNBEAT_ACCENT = 10


def write_voicing_midi(
    voices: Union[Mapping[str, Sequence[NoteEvent]], MelodyAccompanimentResult],
    bpm: int,
    time_signature: Tuple[int, int],
    output_file: Union[str, Path],
    *,
    program: int = 0,
) -> MidiFile:
    """Write ``voices`` to ``output_file`` and return the :class:`MidiFile`.

    Parameters
    ----------
    voices:
        Mapping of voice name to events, or a melody/accompaniment result.
    bpm:
        Tempo in beats per minute; must be positive.
    time_signature:
        ``(numerator, denominator)`` written as a meta message and used to
        place downbeat accents.
    output_file:
        Destination path. Missing parent directories are created.
    program:
        General MIDI program applied to every track.

    Raises
    ------
    InvalidInputError
        For a non-positive tempo, an invalid time signature or an
        out-of-range program number.
    """

    if bpm <= 0:
        raise InvalidInputError("bpm must be a positive integer")
    numerator, denominator = time_signature
    if numerator <= 0 or denominator <= 0 or denominator & (denominator - 1):
        raise InvalidInputError("time_signature must be positive with a power-of-two denominator")
    if not 0 <= program <= 127:
        raise InvalidInputError("program must be between 0 and 127")
    if isinstance(voices, MelodyAccompanimentResult):
        voices = voices.as_voices()

    whole_note_ticks = TICKS_PER_BEAT * 4
    measure_ticks = int(numerator * whole_note_ticks / denominator)
    mid = MidiFile(ticks_per_beat=TICKS_PER_BEAT)

    for channel, (name, events) in enumerate(voices.items()):
        # Channel 10 (index 9) is reserved for percussion.
        channel = channel if channel < 9 else channel + 1
        channel = min(channel, 15)
        track = MidiTrack()
        mid.tracks.append(track)
        track.append(MetaMessage("track_name", name=name, time=0))
        if len(mid.tracks) == 1:
            track.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))
            track.append(
                MetaMessage(
                    "time_signature", numerator=numerator, denominator=denominator, time=0
                )
            )
        track.append(Message("program_change", program=program, channel=channel, time=0))

        elapsed = 0
        pending_rest = 0
        for event in events:
            duration = int(round(event.rhythm * whole_note_ticks))
            if event.note is None:
                pending_rest += duration
                elapsed += duration
                continue
            midi_note = note_to_midi(event.note)
            velocity = BASE_VELOCITY
            if measure_ticks and elapsed % measure_ticks == 0:
                velocity = min(BASE_VELOCITY + DOWNBEAT_ACCENT, 127)
            track.append(
                Message("note_on", note=midi_note, velocity=velocity, channel=channel, time=pending_rest)
            )
            track.append(
                Message("note_off", note=midi_note, velocity=velocity, channel=channel, time=duration)
            )
            pending_rest = 0
            elapsed += duration
        logger.debug("Wrote %d events for voice %s", len(events), name)

    path = Path(output_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    mid.save(str(path))
    return mid
