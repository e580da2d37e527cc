"""Turn resolved chord symbols into concrete MIDI pitches.

:func:`build_chord_notes` places a chord in a comfortable low register and
works out which pitch class the bass must take for an inversion.
:func:`expand_note_pool` replicates the chord's pitch classes across the
piano compass so each voice can pick from every octave.

Example
-------
>>> from progression_voicer.chord_builder import get_chord_info_from_roman
>>> info = get_chord_info_from_roman("I6", "C")
>>> info.midi, info.required_bass_pc
((48, 52, 55), 4)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

import numpy as np

from . import POOL_MAX_MIDI, POOL_MIN_MIDI
from .chords import get_chord, interval_number, interval_semitones, transpose
from .errors import InvalidInputError, MusicTheoryError
from .harmony import ROOT_POSITION, ChordSpec, resolve_roman
from .keys import Key, get_key
from .note_utils import note_to_midi

__all__ = [
    "ChordNotes",
    "build_chord_notes",
    "get_chord_info_from_roman",
    "expand_note_pool",
]

logger = logging.getLogger(__name__)

_LOW_ROOT_LETTERS = {"F", "G", "A", "B"}
_ROOT_FLOOR = 36
_ROOT_CEILING = 72
_BASS_TOKEN_RE = re.compile(r"^([#b]*)(\d+)([PMmdA]*)$")


@dataclass(frozen=True)
class ChordNotes:
    """Concrete root-position pitches for one chord.

    ``names`` runs parallel to ``midi``. ``required_bass_pc`` is ``None`` for
    root position.
    """

    symbol: str
    midi: Tuple[int, ...]
    names: Tuple[str, ...]
    intervals: Tuple[str, ...]
    required_bass_pc: Optional[int] = None

    @property
    def root_midi(self) -> int:
        return self.midi[self.intervals.index("1P")] if "1P" in self.intervals else self.midi[0]

    @property
    def root_pc(self) -> int:
        return self.root_midi % 12

    @property
    def pitch_classes(self) -> FrozenSet[int]:
        return frozenset(n % 12 for n in self.midi)

    def pc_for_number(self, number: int) -> Optional[int]:
        """Pitch class of the chord member with generic interval ``number``."""

        for interval, midi in zip(self.intervals, self.midi):
            if (interval_number(interval) - 1) % 7 == (number - 1) % 7:
                return midi % 12
        return None

    @property
    def third_pc(self) -> Optional[int]:
        return self.pc_for_number(3)

    @property
    def fifth_pc(self) -> Optional[int]:
        return self.pc_for_number(5)

    @property
    def seventh_pc(self) -> Optional[int]:
        return self.pc_for_number(7)


def _root_octave(letter: str, key: Key) -> int:
    octave = 2 if letter in _LOW_ROOT_LETTERS else 3
    # A and B roots of minor-key chords stay low too.
    if key.mode == "minor" and letter in ("A", "B"):
        octave = 2
    return octave


def _bass_semitones(token: str, chord_intervals: Iterable[str]) -> int:
    """Semitones above the root for an inversion token such as ``b3`` or ``5``."""

    match = _BASS_TOKEN_RE.match(token)
    if not match:
        raise MusicTheoryError(f"Invalid bass interval {token!r}")
    accidentals, number_str, quality = match.groups()
    number = int(number_str)
    if quality:
        interval = f"{number}{quality}"
    else:
        interval = next(
            (iv for iv in chord_intervals if (interval_number(iv) - 1) % 7 == (number - 1) % 7),
            f"{number}{'P' if (number - 1) % 7 + 1 in (1, 4, 5) else 'M'}",
        )
    shift = accidentals.count("#") - accidentals.count("b")
    return interval_semitones(interval) + shift


def build_chord_notes(symbol: str, bass_interval: str = ROOT_POSITION, key: Union[str, Key] = "C") -> ChordNotes:
    """Materialise ``symbol`` as MIDI pitches.

    The root is placed in octave 3, or octave 2 for ``F``-``B`` roots
    (``A``/``B`` roots in minor keys included), then nudged by an octave to
    stay inside MIDI 36-72 where possible.

    Raises
    ------
    MusicTheoryError
        If ``symbol`` is not a usable chord or a chord tone cannot be placed.
    """

    chord = get_chord(symbol)
    if chord is None or not chord.intervals:
        raise MusicTheoryError(f"Invalid chord symbol {symbol!r}")
    key_obj = key if isinstance(key, Key) else get_key(key)

    octave = _root_octave(chord.tonic[0], key_obj)
    try:
        root_midi = note_to_midi(f"{chord.tonic}{octave}")
        if root_midi < _ROOT_FLOOR:
            octave += 1
        elif root_midi > _ROOT_CEILING and note_to_midi(f"{chord.tonic}{octave - 1}") >= _ROOT_FLOOR:
            octave -= 1
        root_name = f"{chord.tonic}{octave}"
        note_to_midi(root_name)
    except InvalidInputError as exc:
        raise MusicTheoryError(f"Could not place root of {symbol!r}: {exc}") from exc

    placed = []
    for interval in chord.intervals:
        try:
            name = transpose(root_name, interval)
            placed.append((note_to_midi(name), name, interval))
        except (InvalidInputError, MusicTheoryError) as exc:
            raise MusicTheoryError(
                f"Could not transpose {root_name} by {interval} for {symbol!r}: {exc}"
            ) from exc

    placed.sort(key=lambda item: item[0])
    midi: List[int] = []
    names: List[str] = []
    intervals: List[str] = []
    for value, name, interval in placed:
        if value in midi:
            continue
        midi.append(value)
        names.append(name)
        intervals.append(interval)

    required_bass_pc: Optional[int] = None
    if bass_interval not in ("1", "1P", "P1"):
        bass_pc = (note_to_midi(root_name) + _bass_semitones(bass_interval, chord.intervals)) % 12
        if bass_pc in {m % 12 for m in midi}:
            required_bass_pc = bass_pc
        else:
            logger.warning(
                "Inversion bass %s is not a member of %s; using root position",
                bass_interval,
                chord.symbol,
            )

    return ChordNotes(
        symbol=chord.symbol,
        midi=tuple(midi),
        names=tuple(names),
        intervals=tuple(intervals),
        required_bass_pc=required_bass_pc,
    )


def get_chord_info_from_roman(roman: str, key: Union[str, Key]) -> ChordNotes:
    """Resolve ``roman`` in ``key`` and materialise it in one call."""

    key_obj = key if isinstance(key, Key) else get_key(key)
    spec: ChordSpec = resolve_roman(roman, key_obj)
    return build_chord_notes(spec.symbol, spec.bass_interval, key_obj)


def expand_note_pool(base_notes: Iterable[int]) -> List[int]:
    """Return every octave transposition of ``base_notes`` within the piano range.

    Octave offsets -2..+4 are applied with numpy broadcasting; results outside
    MIDI 21-108 are dropped. Empty input gives an empty list.
    """

    base = np.fromiter(base_notes, dtype=np.int16)
    if base.size == 0:
        return []
    offsets = np.arange(-2, 5, dtype=np.int16) * 12
    pool = (base[:, None] + offsets[None, :]).ravel()
    pool = pool[(pool >= POOL_MIN_MIDI) & (pool <= POOL_MAX_MIDI)]
    return [int(n) for n in np.unique(pool)]
