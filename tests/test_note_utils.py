"""Unit tests for note and scale name conversion helpers.

These exercise :func:`note_to_midi`, :func:`midi_to_note` and
:func:`scale_offsets`, checking that valid spellings convert and that bad
input produces descriptive ``ValueError`` messages rather than silent
clamping.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from midi_seed_gen.note_utils import midi_to_note, note_to_midi, scale_offsets  # noqa: E402  # isort:skip
from midi_seed_gen.models import SCALES  # noqa: E402  # isort:skip


@pytest.mark.parametrize(
    "name,expected",
    [
        ("C4", 60),
        ("A4", 69),
        ("c4", 60),
        ("C#4", 61),
        ("Db4", 61),
        ("F♯5", 78),
        ("A♭3", 56),
        ("Bb2", 46),
        ("C-1", 0),
        ("G9", 127),
        (" E3 ", 52),
    ],
)
def test_note_to_midi(name, expected):
    assert note_to_midi(name) == expected


def test_flats_and_sharps_agree():
    """Enharmonic spellings map to the same number."""
    assert note_to_midi("F#5") == note_to_midi("Gb5")


@pytest.mark.parametrize("name", ["", "H4", "C", "C##4", "4C", "Cx4"])
def test_bad_format_raises(name):
    with pytest.raises(ValueError, match="Invalid note format"):
        note_to_midi(name)


@pytest.mark.parametrize("name", ["C-2", "Cb-1", "G#9", "C10"])
def test_out_of_range_raises(name):
    with pytest.raises(ValueError, match="out of range"):
        note_to_midi(name)


def test_midi_to_note_boundaries():
    assert midi_to_note(0) == "C-1"
    assert midi_to_note(61) == "C#4"
    assert midi_to_note(127) == "G9"
    with pytest.raises(ValueError, match="out of range"):
        midi_to_note(-1)
    with pytest.raises(ValueError, match="out of range"):
        midi_to_note(128)


def test_midi_to_note_round_trip():
    for n in range(128):
        assert note_to_midi(midi_to_note(n)) == n


@pytest.mark.parametrize("name", ["major-pentatonic", "Major_Pentatonic", "major pentatonic"])
def test_scale_offsets_normalises_name(name):
    assert scale_offsets(name) == (0, 2, 4, 7, 9)


def test_scale_offsets_covers_table():
    for name, offsets in SCALES.items():
        assert scale_offsets(name) == offsets


def test_unknown_scale_lists_choices():
    with pytest.raises(ValueError, match="minor-pentatonic"):
        scale_offsets("lydian")
