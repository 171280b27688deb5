#!/usr/bin/env python3
"""Seeded MIDI phrase generator.

This package turns a 64-bit seed into a short melody and writes it as a
format-0 Standard MIDI File.  A typical workflow is to build a
:class:`GenerationConfig`, call :func:`generate` to obtain the notes, then
pass them with a :class:`TransportConfig` to :func:`encode` and hand the
bytes to :func:`write_midi_file`.  The ``midi-seed-gen`` command wraps these
calls for use from a shell.

Underlying Algorithm
--------------------
The phrase is laid out on a grid of sixteenth-note slots.  Walking the grid
left to right, each free slot draws whether a note starts there.  A note
takes a uniformly chosen scale degree, an occasional octave shift, a short
weighted duration and a velocity from the configured range.  The slots the
note covers are skipped, so notes never overlap.  Every draw comes from one
:class:`random.Random` seeded with the user's seed, so a seed always
reproduces the same file byte for byte.

Algorithm Pseudocode
--------------------
The following outlines :func:`generate` followed by :func:`encode`::

    rng = Random(seed)
    slot = 0
    while slot < bars * 16:
        if rng says rest: slot += 1; continue
        pitch = clamp(root + scale[degree] + 12 * octave, 0, 127)
        notes.append(NoteEvent(slot * slot_ticks, dur * slot_ticks, pitch, vel))
        slot += dur
    events = [tempo, program] + note_ons + note_offs
    sort events by (tick, tempo < program < off < on)
    bytes = MThd + MTrk(vlq(delta) + event for each event + end_of_track)
"""

__version__ = "0.2.0"

import json
import logging
import os
from pathlib import Path

from .models import (  # noqa: F401
    SCALES,
    EncodingOverflow,
    GenerationConfig,
    InvalidConfig,
    NoteEvent,
    TransportConfig,
)
from .generator import MelodyGenerator, generate  # noqa: F401
from .smf import decode_vlq, encode, encode_sequence, encode_vlq  # noqa: F401
from .note_utils import midi_to_note, note_to_midi, scale_offsets  # noqa: F401
from .midi_io import default_output_path, load_midi_file, write_midi_file  # noqa: F401

# Default path for storing user preferences. The file lives in the user's
# home directory so CLI defaults persist between runs.
env_path = os.environ.get("MIDI_SEED_GEN_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".midi_seed_gen_settings.json"


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error(f"Could not load settings: {exc}")
            return {}
        if isinstance(data, dict):
            return data
        logging.error("Settings file %s does not contain a JSON object", path)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to save preferences never prevents the MIDI file being written.
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as exc:
        logging.error(f"Could not save settings: {exc}")


def run_cli(argv=None):
    from .cli import run_cli as _run_cli
    _run_cli(argv)


def main(argv=None):
    from .cli import main as _main
    _main(argv)


if __name__ == "__main__":
    main()
