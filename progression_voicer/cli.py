"""Command line interface for Progression Voicer.

This module implements the console entry point. :func:`run_cli` parses the
arguments, builds a :class:`~progression_voicer.config.VoicingConfig` from the
saved settings file plus any command line overrides, generates the voicing
and either writes a MIDI file (``--output``) or prints the voices as text.

Invalid input is reported through ``logging.error`` followed by exit status
``1`` so shell scripts can detect failures.

Example
-------
Running ``python -m progression_voicer --key Gm --progression i,iv,V7,i \
    --style SATB --meter 3/4 --output chorale.mid`` writes a four-part chorale
in G minor with one 3/4 measure per chord. ``--random-progression 8
--difficulty 6`` lets the tool choose the chords instead.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from . import STYLES, VOICE_RANGES
from .config import DEFAULT_SETTINGS_FILE, VoicingConfig, load_settings
from .difficulty import map_difficulty_to_settings
from .errors import GenerationError, InvalidInputError
from .events import MelodyAccompanimentResult, NoteEvent
from .generation import generate_voicing
from .midi_io import write_voicing_midi
from .note_utils import midi_to_note
from .progression import generate_chord_progression
from .rhythm_engine import RhythmSource, rhythm_for_complexity
from .utils import parse_meter, parse_progression

__all__ = ["build_parser", "parse_range_options", "format_voices", "run_cli", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Voice a Roman-numeral chord progression and save it as MIDI or print it."
    )
    parser.add_argument("--list-voices", action="store_true", help="List default voice ranges and exit")
    parser.add_argument("--key", type=str, help="Key such as C, F#, Gm or 'Eb minor'.")
    parser.add_argument("--progression", type=str, help="Comma-separated Roman numerals (e.g., I,vi,ii65,V7,I).")
    parser.add_argument("--random-progression", type=int, metavar="N", help="Generate a progression of N chords, ignoring --progression.")
    parser.add_argument("--style", choices=STYLES, default="SATB", help="Texture to generate (default: SATB).")
    parser.add_argument("--meter", type=str, default="4/4", help="Meter in beats/beatType form (default: 4/4).")
    parser.add_argument("--num-voices", type=int, help="Accompaniment voices for MelodyAccompaniment (default: 3).")
    parser.add_argument("--smoothness", type=float, help="Voice-leading smoothness 0-10 (default: 5).")
    parser.add_argument("--strictness", type=int, help="Rule checker strictness 0-10.")
    parser.add_argument("--difficulty", type=float, help="Derive rhythm, smoothness, strictness and chord variety from a 0-10 difficulty.")
    parser.add_argument(
        "--range",
        action="append",
        default=[],
        metavar="VOICE=MIN:MAX",
        help="Override a voice range, e.g. melody=C4:E5. Either bound may be left empty.",
    )
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--bpm", type=int, default=90, help="Tempo of the MIDI file (default: 90).")
    parser.add_argument("--output", type=str, help="Output MIDI file path. Prints the voicing when omitted.")
    parser.add_argument(
        "--settings-file",
        type=str,
        help=f"Path to the JSON settings file (default: {DEFAULT_SETTINGS_FILE})",
    )
    return parser


def parse_range_options(options: Sequence[str]) -> Dict[str, Dict[str, Optional[str]]]:
    """Turn ``["melody=C4:E5", "bass=:C4"]`` into range override mappings."""

    ranges: Dict[str, Dict[str, Optional[str]]] = {}
    for option in options:
        voice, sep, bounds = option.partition("=")
        low, colon, high = bounds.partition(":")
        if not sep or not colon or not voice.strip():
            raise InvalidInputError(f"Range must look like VOICE=MIN:MAX, got {option!r}")
        ranges[voice.strip()] = {"min": low.strip() or None, "max": high.strip() or None}
    return ranges


def _format_event(event: NoteEvent) -> str:
    return f"{event.note or 'rest'}/{event.rhythm:g}"


def format_voices(voices: Mapping[str, List[NoteEvent]]) -> str:
    """Return one line per voice listing ``note/rhythm`` events."""

    width = max((len(name) for name in voices), default=0)
    return "\n".join(
        f"{name.ljust(width)}: {' '.join(_format_event(e) for e in events)}"
        for name, events in voices.items()
    )


def run_cli(argv: Optional[Sequence[str]] = None) -> None:
    """Parse CLI arguments and generate a voicing."""

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_voices:
        for voice, (low, high) in VOICE_RANGES.items():
            print(f"{voice}: {midi_to_note(low)}-{midi_to_note(high)}")
        return

    if not args.key:
        logging.error("--key is required.")
        sys.exit(1)
    if args.bpm <= 0:
        logging.error("BPM must be a positive integer.")
        sys.exit(1)
    if args.random_progression is not None and args.random_progression <= 0:
        logging.error("Random progression length must be a positive integer.")
        sys.exit(1)
    if args.num_voices is not None and args.num_voices <= 0:
        logging.error("Number of accompaniment voices must be a positive integer.")
        sys.exit(1)

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    try:
        config = VoicingConfig.from_settings(load_settings(settings_path))
        ranges = parse_range_options(args.range)
        time_signature = parse_meter(args.meter)
    except (InvalidInputError, TypeError) as exc:
        logging.error(str(exc))
        sys.exit(1)

    smoothness = 5.0
    strictness = config.strictness
    complexity = 5.0
    num_voices = 3
    rhythmic_complexity: Optional[float] = None
    if args.difficulty is not None:
        derived = map_difficulty_to_settings(args.difficulty, args.style)
        rhythmic_complexity = derived.rhythmic_complexity
        smoothness = derived.melodic_smoothness
        strictness = int(derived.dissonance_strictness)
        complexity = derived.harmonic_complexity
        num_voices = derived.num_accompaniment_voices or num_voices
    if args.smoothness is not None:
        smoothness = args.smoothness
    if args.strictness is not None:
        strictness = args.strictness
    if args.num_voices is not None:
        num_voices = args.num_voices

    rng = random.Random(args.seed)
    rhythm: Optional[RhythmSource] = None
    if rhythmic_complexity is not None:
        rhythm = rhythm_for_complexity(rhythmic_complexity, rng)
    try:
        if args.random_progression:
            progression = generate_chord_progression(args.key, args.random_progression, complexity, rng=rng)
        else:
            progression = parse_progression(args.progression)
        result = generate_voicing(
            progression,
            args.key,
            args.meter,
            style=args.style,
            num_voices=num_voices,
            smoothness=smoothness,
            ranges=ranges,
            rng=rng,
            rhythm=rhythm,
            config=config,
            strictness=strictness,
        )
    except (InvalidInputError, GenerationError) as exc:
        logging.error(str(exc))
        sys.exit(1)

    voices = result.as_voices() if isinstance(result, MelodyAccompanimentResult) else result
    logging.info("Progression: %s", " ".join(progression))
    if not args.output:
        print(format_voices(voices))
        return

    try:
        write_voicing_midi(voices, args.bpm, time_signature, args.output)
    except OSError as exc:
        logging.error("Could not write MIDI file: %s", exc)
        sys.exit(1)
    logging.info("MIDI file saved to %s", args.output)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Configure logging and run the CLI."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli(argv)


if __name__ == "__main__":
    main()
