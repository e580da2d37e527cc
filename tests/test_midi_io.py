"""Tests for MIDI export."""

import importlib
import sys
from pathlib import Path

import mido
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

midi_io = importlib.import_module("progression_voicer.midi_io")
generation = importlib.import_module("progression_voicer.generation")
events = importlib.import_module("progression_voicer.events")
errors = importlib.import_module("progression_voicer.errors")


def test_one_track_per_voice(tmp_path):
    voices = generation.generate_voicing(["I", "V"], "C", style="SATB")
    out = tmp_path / "nested" / "chorale.mid"
    midi_io.write_voicing_midi(voices, 100, (4, 4), out)
    loaded = mido.MidiFile(str(out))
    assert len(loaded.tracks) == 4
    assert loaded.ticks_per_beat == midi_io.TICKS_PER_BEAT
    first = loaded.tracks[0]
    assert any(m.type == "set_tempo" and m.tempo == mido.bpm2tempo(100) for m in first)
    assert any(m.type == "time_signature" for m in first)
    for track in loaded.tracks:
        assert sum(1 for m in track if m.type == "note_on") == 8


def test_rests_delay_next_note(tmp_path):
    voices = {"melody": [events.NoteEvent(None, 0.25), events.NoteEvent("C4", 0.25)]}
    mid = midi_io.write_voicing_midi(voices, 90, (4, 4), tmp_path / "rest.mid")
    notes = [m for m in mid.tracks[0] if m.type in ("note_on", "note_off")]
    assert notes[0].time == 480
    assert notes[0].note == 60
    assert notes[0].velocity == midi_io.BASE_VELOCITY
    assert notes[1].time == 480


def test_downbeats_are_accented(tmp_path):
    voices = {"melody": [events.NoteEvent("C4", 0.75), events.NoteEvent("D4", 0.25)]}
    mid = midi_io.write_voicing_midi(voices, 90, (3, 4), tmp_path / "accent.mid")
    velocities = [m.velocity for m in mid.tracks[0] if m.type == "note_on"]
    accented = midi_io.BASE_VELOCITY + midi_io.DOWNBEAT_ACCENT
    assert velocities == [accented, accented]


def test_melody_result_is_accepted(tmp_path):
    result = generation.generate_voicing(["I"], "C", style="MelodyAccompaniment", num_voices=2, seed=1)
    mid = midi_io.write_voicing_midi(result, 90, (4, 4), tmp_path / "ma.mid")
    names = [track.name for track in mid.tracks]
    assert names == ["melody", "accompaniment1", "accompaniment2"]


@pytest.mark.parametrize("bpm, meter, program", [(0, (4, 4), 0), (90, (4, 3), 0), (90, (4, 4), 128)])
def test_invalid_arguments(tmp_path, bpm, meter, program):
    with pytest.raises(errors.InvalidInputError):
        midi_io.write_voicing_midi({}, bpm, meter, tmp_path / "x.mid", program=program)
