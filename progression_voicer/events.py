"""Output containers produced by the generation functions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

__all__ = ["NoteEvent", "MelodyAccompanimentResult", "SATBResult"]


class NoteEvent(NamedTuple):
    """One note or rest. ``rhythm`` is a fraction of a whole note."""

    note: Optional[str]
    rhythm: float

    @property
    def is_rest(self) -> bool:
        return self.note is None


# voice name -> ordered events
SATBResult = Dict[str, List[NoteEvent]]


@dataclass
class MelodyAccompanimentResult:
    """Melody line plus one event list per accompaniment voice (lowest first)."""

    melody: List[NoteEvent] = field(default_factory=list)
    accompaniment: List[List[NoteEvent]] = field(default_factory=list)

    def as_voices(self) -> Dict[str, List[NoteEvent]]:
        """Return a ``voice -> events`` mapping suitable for MIDI export."""

        voices = {"melody": self.melody}
        for index, line in enumerate(self.accompaniment):
            voices[f"accompaniment{index + 1}"] = line
        return voices
