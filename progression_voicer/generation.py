"""Progression orchestrator.

:func:`generate_voicing` walks a Roman-numeral progression measure by
measure. Each chord is resolved and materialised once and then voiced for
every rhythm event of its measure. The previous event's pitches are passed
forward as voice-leading context. State is replaced only after an event is
fully voiced, so each voicer sees a consistent snapshot.

Pitches are named with the chord's own spelling (``Bb`` in B-flat major rather
than ``A#``). Melody notes outside the chord take the key's scale spelling and
anything else falls back to sharps.

Failure handling
----------------
* Unknown keys, malformed meters or ranges, unknown styles and out-of-range
  options raise :class:`~progression_voicer.errors.InvalidInputError` before
  any voicing starts.
* A chord that cannot be resolved (:class:`MusicTheoryError`) is logged, its
  measure is filled with rests and voice-leading history is reset. The rest
  of the progression is still generated.
* Voices that cannot be placed come back as rests (``note=None``).

Example
-------
>>> from progression_voicer.generation import generate_voicing
>>> result = generate_voicing(["I", "V"], "C", "4/4", style="SATB")
>>> len(result["soprano"])
8
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from . import SATB_VOICES, STYLES
from .accompaniment_provider import (
    AccompanimentProvider,
    AccompanimentRequest,
    request_accompaniment,
)
from .chord_builder import ChordNotes, expand_note_pool, get_chord_info_from_roman
from .config import VoicingConfig
from .errors import GenerationError, InvalidInputError, MusicTheoryError
from .events import MelodyAccompanimentResult, NoteEvent, SATBResult
from .keys import Key, get_key
from .melody_accompaniment import ContourState, MelodyVoicer, update_contour, voice_accompaniment
from .note_utils import spell_midi
from .rhythm_engine import RhythmSource, beat_pattern
from .rules import check_voice_leading
from .satb import SATBVoicer
from .utils import parse_meter

__all__ = [
    "NoteEvent",
    "MelodyAccompanimentResult",
    "generate_voicing",
    "generate_voicing_async",
]

logger = logging.getLogger(__name__)


def _spellings(chord: ChordNotes, key: Key) -> Tuple[str, ...]:
    # Chord spelling first, then the key's scale for melodic non-chord tones.
    return tuple(chord.names) + tuple(key.scale)


def _name(midi: Optional[int], spellings: Sequence[str] = ()) -> Optional[str]:
    return None if midi is None else spell_midi(midi, spellings)


def _measure_durations(rhythm: Optional[RhythmSource], beats: int, beat_type: int, index: int) -> List[float]:
    source = rhythm or beat_pattern
    durations = list(source(beats, beat_type, index))
    if not durations or any(d <= 0 for d in durations):
        raise GenerationError(f"Rhythm source returned invalid durations for measure {index + 1}: {durations}")
    return durations


def _resolve_chord(roman: str, key: Key, index: int) -> Optional[ChordNotes]:
    try:
        return get_chord_info_from_roman(roman, key)
    except MusicTheoryError as exc:
        logger.warning("Skipping chord %r in measure %d: %s", roman, index + 1, exc)
        return None


def _generate_satb(
    progression: Sequence[str],
    key: Key,
    time_signature: tuple,
    smoothness: float,
    rhythm: Optional[RhythmSource],
    config: VoicingConfig,
    strictness: int,
) -> SATBResult:
    voicer = SATBVoicer(config)
    voices: SATBResult = {v: [] for v in SATB_VOICES}
    previous: Dict[str, Optional[int]] = {v: None for v in SATB_VOICES}
    last_step: Optional[Dict[str, Optional[int]]] = None

    for index, roman in enumerate(progression):
        durations = _measure_durations(rhythm, *time_signature, index)
        chord = _resolve_chord(roman, key, index)
        if chord is None:
            for duration in durations:
                for voice in SATB_VOICES:
                    voices[voice].append(NoteEvent(None, duration))
            previous = {v: None for v in SATB_VOICES}
            last_step = None
            continue

        pool = expand_note_pool(chord.midi)
        spellings = _spellings(chord, key)
        for beat, duration in enumerate(durations):
            step = voicer.voice(chord, pool, previous, smoothness, key)
            for voice in SATB_VOICES:
                voices[voice].append(NoteEvent(_name(step[voice], spellings), duration))
            check_voice_leading(
                step, last_step, "SATB", index, beat, strictness, spacing=config.spacing
            )
            previous = dict(step)
            last_step = step
    return voices


def _generate_melody_accompaniment(
    progression: Sequence[str],
    key: Key,
    time_signature: tuple,
    smoothness: float,
    num_voices: int,
    rng: random.Random,
    rhythm: Optional[RhythmSource],
    config: VoicingConfig,
    strictness: int,
) -> MelodyAccompanimentResult:
    melody_voicer = MelodyVoicer(config)
    result = MelodyAccompanimentResult(accompaniment=[[] for _ in range(num_voices)])
    contour = ContourState()
    prev_melody: Optional[int] = None
    prev_accompaniment: Optional[List[Optional[int]]] = None
    last_event: Optional[Dict[str, object]] = None

    for index, roman in enumerate(progression):
        durations = _measure_durations(rhythm, *time_signature, index)
        chord = _resolve_chord(roman, key, index)
        if chord is None:
            for duration in durations:
                result.melody.append(NoteEvent(None, duration))
                for line in result.accompaniment:
                    line.append(NoteEvent(None, duration))
            contour = ContourState()
            prev_melody = None
            prev_accompaniment = None
            last_event = None
            continue

        pool = expand_note_pool(chord.midi)
        spellings = _spellings(chord, key)
        for beat, duration in enumerate(durations):
            melody = melody_voicer.choose(
                chord, pool, key, prev_melody, contour, smoothness, rng
            )
            accompaniment = voice_accompaniment(
                chord, pool, melody, prev_accompaniment, num_voices, smoothness, config=config
            )
            result.melody.append(NoteEvent(_name(melody, spellings), duration))
            for line, note in zip(result.accompaniment, accompaniment):
                line.append(NoteEvent(_name(note, spellings), duration))

            event = {"melody": melody, "accompaniment": accompaniment}
            check_voice_leading(
                event,
                last_event,
                "MelodyAccompaniment",
                index,
                beat,
                strictness,
                accompaniment_spacing=config.accompaniment_spacing,
            )
            contour = update_contour(contour, prev_melody, melody)
            prev_melody = melody
            prev_accompaniment = accompaniment
            last_event = event
    return result


def generate_voicing(
    progression: Sequence[str],
    key: Union[str, Key],
    meter: str = "4/4",
    *,
    style: str = "SATB",
    num_voices: int = 3,
    smoothness: float = 5,
    ranges: Optional[Mapping[str, object]] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    rhythm: Optional[RhythmSource] = None,
    config: Optional[VoicingConfig] = None,
    strictness: Optional[int] = None,
) -> Union[SATBResult, MelodyAccompanimentResult]:
    """Voice ``progression`` in ``key``.

    Parameters
    ----------
    progression:
        Roman numerals, optionally with inversion markers.
    key:
        Key name such as ``"C"`` or ``"Gm"``.
    meter:
        Meter string; one measure is generated per chord.
    style:
        ``"SATB"`` or ``"MelodyAccompaniment"``.
    num_voices:
        Accompaniment voice count for the melody style.
    smoothness:
        Voice-leading smoothness preference (0-10).
    ranges:
        Optional per-voice ``{"min": name|None, "max": name|None}`` overrides.
    rng, seed:
        Random source for melody generation. ``seed`` is used to create one
        when ``rng`` is not supplied.
    rhythm:
        Optional rhythm source returning one measure of durations.
    config:
        Voicing configuration; defaults to :class:`VoicingConfig`.
    strictness:
        Rule checker strictness overriding ``config.strictness``.

    Returns
    -------
    Union[SATBResult, MelodyAccompanimentResult]
        Per-voice event lists.
    """

    key_obj = key if isinstance(key, Key) else get_key(key)
    time_signature = parse_meter(meter)
    if style not in STYLES:
        raise InvalidInputError(f"Unknown style {style!r}; expected one of {', '.join(STYLES)}")
    if not 0 <= smoothness <= 10:
        raise InvalidInputError("smoothness must be between 0 and 10")
    if style == "MelodyAccompaniment" and num_voices < 1:
        raise InvalidInputError("num_voices must be at least 1")

    config = config or VoicingConfig()
    if ranges:
        config = config.with_ranges(ranges)
    if strictness is None:
        strictness = config.strictness
    rng = rng or random.Random(seed)

    logger.debug(
        "Generating %s voicing for %d chords in %s (%s)",
        style,
        len(progression),
        key_obj.name,
        meter,
    )
    if style == "SATB":
        return _generate_satb(
            progression, key_obj, time_signature, smoothness, rhythm, config, strictness
        )
    return _generate_melody_accompaniment(
        progression,
        key_obj,
        time_signature,
        smoothness,
        num_voices,
        rng,
        rhythm,
        config,
        strictness,
    )


async def generate_voicing_async(
    progression: Sequence[str],
    key: Union[str, Key],
    meter: str = "4/4",
    *,
    accompaniment_provider: Optional[AccompanimentProvider] = None,
    timeout: Optional[float] = 30.0,
    **options,
) -> Union[SATBResult, MelodyAccompanimentResult]:
    """Like :func:`generate_voicing` but may await an accompaniment provider.

    The melody is generated deterministically first. When a provider is
    supplied it is awaited once, and its parsed line replaces the built-in
    accompaniment in a new result object. Provider failures propagate as
    :class:`~progression_voicer.errors.AccompanimentProviderError`.
    """

    style = options.get("style", "SATB")
    if accompaniment_provider is not None and style != "MelodyAccompaniment":
        raise InvalidInputError("An accompaniment provider requires the MelodyAccompaniment style")
    result = generate_voicing(progression, key, meter, **options)
    if accompaniment_provider is None:
        return result

    config = options.get("config") or VoicingConfig()
    ranges = options.get("ranges")
    if ranges:
        config = config.with_ranges(ranges)
    request = AccompanimentRequest(
        progression=tuple(progression),
        key=key if isinstance(key, str) else key.name,
        meter=meter,
        melody=tuple(result.melody),
        num_voices=options.get("num_voices", 3),
        accompaniment_range=tuple(config.ranges["accompaniment"]),
    )
    events = await request_accompaniment(accompaniment_provider, request, timeout)
    return MelodyAccompanimentResult(melody=list(result.melody), accompaniment=[events])
