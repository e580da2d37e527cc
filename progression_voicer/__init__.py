#!/usr/bin/env python3
"""Progression Voicer library.

This package turns an abstract chord progression (a key plus Roman numerals
such as ``["I", "vi", "ii65", "V7", "I"]``) into concrete pitches for
several voices. Two textures are supported:

* ``"SATB"`` - four-part chorale writing with inversions, doubling rules and
  spacing limits.
* ``"MelodyAccompaniment"`` - a contour-aware melody over stacked
  accompaniment chords.

Underlying Algorithm
--------------------
Each chord passes through a short pipeline::

    spec  = resolve_roman(roman, key)          # harmony.py
    notes = build_chord_notes(spec.symbol,     # chord_builder.py
                              spec.bass_interval, key)
    pool  = expand_note_pool(notes.midi)       # every octave of the chord
    step  = voicer.voice(notes, pool, previous)

The voicers are greedy: every voice picks the candidate with the best
:func:`~progression_voicer.voice_leading.find_closest_note` score given the
previous pitch, a target and the smoothness preference. No global search is
performed, which keeps generation fast and predictable.

Features include:
- Figured bass (``6``, ``64``, ``65``, ``43``, ``42``) and slash inversions.
- Quality overrides and seventh chords with per-degree defaults.
- Configurable ranges, spacing limits and scorer weights via
  :class:`~progression_voicer.config.VoicingConfig`.
- Seeded, injectable randomness for reproducible melodies.
- Rule checking for crossings, spacing and parallel fifths/octaves.
- MIDI export through ``mido`` and a command line interface.
"""

__version__ = "0.1.0"

# Sharp spellings used when printing MIDI numbers as note names.
NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Letter names in scale order and their natural semitone offsets from C.
LETTERS = "CDEFGAB"
LETTER_SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

STYLES = ("SATB", "MelodyAccompaniment")
SATB_VOICES = ("soprano", "alto", "tenor", "bass")

# Inclusive MIDI ranges used when a caller leaves a bound unspecified.
VOICE_RANGES = {
    "soprano": (60, 81),  # C4-A5
    "alto": (55, 74),  # G3-D5
    "tenor": (48, 69),  # C3-A4
    "bass": (40, 62),  # E2-D4
    "melody": (60, 84),  # C4-C6
    "accompaniment": (36, 72),  # C2-C5
}

# Largest allowed distance in semitones between adjacent SATB voices.
SATB_SPACING_LIMITS = {"soprano_alto": 12, "alto_tenor": 12, "tenor_bass": 19}
MELODY_ACCOMPANIMENT_SPACING_LIMIT = 24

# Standard piano compass; candidate pools never leave it.
POOL_MIN_MIDI = 21
POOL_MAX_MIDI = 108

from .errors import (  # noqa: E402
    AccompanimentProviderError,
    GenerationError,
    InvalidInputError,
    InvalidMeterError,
    InvalidRangeError,
    MusicTheoryError,
    ProgressionVoicerError,
)
from .note_utils import midi_to_note, note_to_midi, pitch_class  # noqa: E402
from .chords import get_chord  # noqa: E402
from .keys import Key, get_key  # noqa: E402
from .harmony import ChordSpec, resolve_roman  # noqa: E402
from .chord_builder import (  # noqa: E402
    ChordNotes,
    build_chord_notes,
    expand_note_pool,
    get_chord_info_from_roman,
)
from .voice_leading import VoiceLeadingWeights, find_closest_note  # noqa: E402
from .ranges import is_in_range, put_in_range, resolve_range  # noqa: E402
from .config import VoicingConfig, load_settings, save_settings  # noqa: E402
from .satb import SATBVoicer  # noqa: E402
from .melody_accompaniment import (  # noqa: E402
    ContourState,
    MelodyVoicer,
    update_contour,
    voice_accompaniment,
)
from .events import MelodyAccompanimentResult, NoteEvent  # noqa: E402
from .generation import generate_voicing, generate_voicing_async  # noqa: E402
from .progression import generate_chord_progression  # noqa: E402
from .difficulty import GenerationSettings, map_difficulty_to_settings  # noqa: E402


def main() -> None:
    """Console entry point; see :mod:`progression_voicer.cli`."""

    from .cli import main as cli_main  # Local import keeps argparse out of library use

    cli_main()

__all__ = [
    "AccompanimentProviderError",
    "GenerationError",
    "InvalidInputError",
    "InvalidMeterError",
    "InvalidRangeError",
    "MusicTheoryError",
    "ProgressionVoicerError",
    "midi_to_note",
    "note_to_midi",
    "pitch_class",
    "get_chord",
    "Key",
    "get_key",
    "ChordSpec",
    "resolve_roman",
    "ChordNotes",
    "build_chord_notes",
    "expand_note_pool",
    "get_chord_info_from_roman",
    "VoiceLeadingWeights",
    "find_closest_note",
    "is_in_range",
    "put_in_range",
    "resolve_range",
    "VoicingConfig",
    "load_settings",
    "save_settings",
    "SATBVoicer",
    "ContourState",
    "MelodyVoicer",
    "update_contour",
    "voice_accompaniment",
    "MelodyAccompanimentResult",
    "NoteEvent",
    "generate_voicing",
    "generate_voicing_async",
    "generate_chord_progression",
    "GenerationSettings",
    "map_difficulty_to_settings",
    "main",
]
