"""Translate user-facing note and scale names into MIDI values.

The generator and encoder only accept numbers; these helpers sit in front of
them so the CLI can accept ``--root F#3 --scale natural-minor``.

Example
-------
>>> from midi_seed_gen.note_utils import note_to_midi, scale_offsets
>>> note_to_midi("C4")
60
>>> scale_offsets("Major_Pentatonic")
(0, 2, 4, 7, 9)
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Dict, List, Tuple

from .models import SCALES

__all__ = ["note_to_midi", "midi_to_note", "scale_offsets", "NOTES", "NOTE_TO_SEMITONE"]

logger = logging.getLogger(__name__)

NOTE_TO_SEMITONE: Dict[str, int] = {
    "C": 0,
    "D": 2,
    "E": 4,
    "F": 5,
    "G": 7,
    "A": 9,
    "B": 11,
}

# Sharp spellings used when rendering numbers back into names.
NOTES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

_ACCIDENTALS: Dict[str, int] = {"": 0, "#": 1, "♯": 1, "b": -1, "♭": -1}

_NOTE_RE = re.compile(r"([A-Ga-g])([#♯b♭]?)(-?\d+)")


@lru_cache(maxsize=None)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` into a MIDI number.

    Parameters
    ----------
    note:
        Letter ``A``-``G`` (any case), an optional accidental (``#``, ``b``,
        ``♯`` or ``♭``) and a signed octave. Surrounding whitespace is ignored.

    Returns
    -------
    int
        MIDI note number in the range ``0-127``. ``C4`` is ``60``.

    Raises
    ------
    ValueError
        If ``note`` is malformed or the computed value falls outside
        ``0-127``.
    """

    match = _NOTE_RE.fullmatch(note.strip())
    if not match:
        logger.error("Invalid note format: %s", note)
        raise ValueError(f"Invalid note format: {note!r}, expected something like C#4")

    letter, accidental, octave_str = match.groups()
    pitch_class = NOTE_TO_SEMITONE[letter.upper()] + _ACCIDENTALS[accidental]
    # Scientific pitch notation puts middle C in octave 4, MIDI numbers start
    # one octave lower.
    midi_val = (int(octave_str) + 1) * 12 + pitch_class

    # ``Cb-1`` and ``B#9`` and the like land just outside the valid range.
    if not 0 <= midi_val <= 127:
        logger.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise ValueError(f"Computed MIDI value {midi_val} out of range 0-127 for note {note}")

    return midi_val


def midi_to_note(midi_note: int) -> str:
    """Convert a MIDI number into a note name using sharps.

    >>> midi_to_note(61)
    'C#4'
    """

    if not 0 <= midi_note <= 127:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")

    octave = midi_note // 12 - 1
    return f"{NOTES[midi_note % 12]}{octave}"


def scale_offsets(name: str) -> Tuple[int, ...]:
    """Return the semitone offsets for the scale called ``name``.

    Lookup ignores case and treats ``_`` and spaces like ``-`` so
    ``"Minor Pentatonic"`` and ``"minor_pentatonic"`` both resolve.
    """

    key = re.sub(r"[\s_]+", "-", name.strip().lower())
    try:
        return SCALES[key]
    except KeyError:
        raise ValueError(
            f"Unknown scale: {name}. Choose one of {', '.join(sorted(SCALES))}"
        ) from None
