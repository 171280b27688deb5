"""Command line front end for the seeded MIDI generator.

``run_cli`` parses arguments, translates note and scale names into the typed
configs, and writes the encoded file.  Defaults come from the JSON settings
file (see :func:`midi_seed_gen.load_settings`) and any flag given on the
command line overrides them.  ``--save-settings`` stores the effective
options back so the next run starts from them.

Example
-------
Running ``python -m midi_seed_gen --seed 123 --bars 1 --root C4 \
    --scale major-pentatonic --out phrase.mid`` writes a one-bar phrase to
``phrase.mid``.  Without ``--out`` the file goes to
``out/seeded_<timestamp>_<seed>.mid``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from . import load_settings, save_settings
from .midi_io import default_output_path, write_midi_file
from .models import (
    SCALES,
    EncodingOverflow,
    GenerationConfig,
    InvalidConfig,
    TransportConfig,
    validate_seed,
)
from .note_utils import note_to_midi, scale_offsets
from .smf import encode_sequence

__all__ = ["run_cli", "main", "DEFAULTS"]

# Built-in option defaults, overridden by the settings file and then by flags.
DEFAULTS = {
    "seed": "0xC0FFEE",
    "bpm": 120.0,
    "bars": 16,
    "ppqn": 480,
    "root": "C4",
    "scale": "minor-pentatonic",
    "channel": 0,
    "program": 0,
    "velocity": "55-94",
    "accent": 18,
    "soundfont": None,
}


def _parse_seed(value) -> int:
    """Accept decimal or ``0x``-prefixed seeds."""

    if isinstance(value, int) and not isinstance(value, bool):
        return validate_seed(value)
    try:
        seed = int(str(value).strip(), 0)
    except ValueError:
        raise InvalidConfig(f"seed must be an integer, got {value!r}") from None
    return validate_seed(seed)


def _parse_velocity(value) -> Tuple[int, int]:
    """Parse ``"LOW-HIGH"`` (or a single value) into a velocity range."""

    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        parts = str(value).split("-")
    try:
        if len(parts) == 1:
            v = int(parts[0])
            return v, v
        if len(parts) == 2:
            return int(parts[0]), int(parts[1])
    except ValueError:
        pass
    raise InvalidConfig(f"velocity must look like LOW-HIGH, got {value!r}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="midi-seed-gen",
        description="Seeded random MIDI (format 0) generator. The same seed always produces the same file.",
    )
    parser.add_argument("-o", "--out", type=str, help="Output .mid path (default: out/seeded_<timestamp>_<seed>.mid)")
    parser.add_argument("--seed", type=str, help="RNG seed, decimal or 0x-prefixed (default: 0xC0FFEE)")
    parser.add_argument("--bpm", type=float, help="Tempo in beats per minute (default: 120)")
    parser.add_argument("--bars", type=int, help="Number of 4/4 bars (default: 16)")
    parser.add_argument("--ppqn", type=int, help="Ticks per quarter note (default: 480)")
    parser.add_argument("--root", type=str, help="Root note in scientific pitch notation, e.g. C4, F#5, Db2 (default: C4)")
    parser.add_argument("--scale", type=str, help=f"Scale name: {', '.join(SCALES)} (default: minor-pentatonic)")
    parser.add_argument("--channel", type=int, help="MIDI channel 0-15 (default: 0)")
    parser.add_argument("--program", type=int, help="General MIDI program 0-127; 0 is Acoustic Grand Piano (default: 0)")
    parser.add_argument("--velocity", type=str, metavar="LOW-HIGH", help="Velocity range (default: 55-94)")
    parser.add_argument("--accent", type=int, help="Velocity boost for notes on the beat (default: 18)")
    parser.add_argument("--pad-to-end", action="store_true", help="Keep trailing rests by ending the track at the last bar line")
    parser.add_argument("--list-scales", action="store_true", help="List all supported scales and exit")
    parser.add_argument("--play", action="store_true", help="Play the MIDI file after it is created")
    parser.add_argument("--soundfont", type=str, help="Path to a SoundFont (.sf2) file used with --play")
    parser.add_argument("--settings-file", type=str, help="Path to the JSON settings file holding default options")
    parser.add_argument("--save-settings", action="store_true", help="Store the effective options in the settings file")
    return parser


def _effective_options(args: argparse.Namespace, settings: dict) -> dict:
    """Merge built-in defaults, saved settings and command line flags."""

    options = dict(DEFAULTS)
    options.update({k: v for k, v in settings.items() if k in DEFAULTS})
    options.update({k: v for k, v in vars(args).items() if k in DEFAULTS and v is not None})
    return options


def run_cli(argv: Optional[Sequence[str]] = None) -> None:
    """Parse ``argv`` (default ``sys.argv[1:]``) and write a MIDI file.

    Invalid options are logged with ``logging.error`` and terminate the
    process with exit status ``1``.  When ``--play`` is given a FluidSynth
    failure is logged and the system's default player is tried instead.
    """

    argv: List[str] = list(sys.argv[1:] if argv is None else argv)
    if "--list-scales" in argv:
        print("\n".join(SCALES))
        return

    args = _build_parser().parse_args(argv)
    settings_path = Path(args.settings_file).expanduser() if args.settings_file else None
    settings = load_settings(settings_path) if settings_path else load_settings()
    options = _effective_options(args, settings)

    try:
        root = note_to_midi(str(options["root"]))
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)
    try:
        scale = scale_offsets(str(options["scale"]))
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    try:
        seed = _parse_seed(options["seed"])
        config = GenerationConfig(
            root_pitch=root,
            scale=scale,
            bars=options["bars"],
            ppqn=options["ppqn"],
            velocity_range=_parse_velocity(options["velocity"]),
            accent=options["accent"],
        )
        transport = TransportConfig(
            bpm=options["bpm"],
            channel=options["channel"],
            program=options["program"],
        )
        data = encode_sequence(seed, config, transport, pad_to_end=args.pad_to_end)
    except (InvalidConfig, EncodingOverflow) as exc:
        logging.error(str(exc))
        sys.exit(1)

    out_path = Path(args.out) if args.out else default_output_path(seed)
    try:
        write_midi_file(data, out_path)
    except OSError as exc:
        # Permission problems or a full disk; nothing useful was written.
        logging.error("Could not write MIDI file: %s", exc)
        sys.exit(1)
    # Report the file before --play blocks for the length of the phrase.
    logging.info("Wrote %s", out_path)

    if args.save_settings:
        saved = {k: v for k, v in options.items() if v is not None}
        save_settings(saved, settings_path) if settings_path else save_settings(saved)

    if args.play:
        from . import playback

        # A hand-edited settings file may hold a number here; paths are text.
        soundfont = options["soundfont"]
        if soundfont is not None:
            soundfont = str(soundfont)
        try:
            playback.play_midi(str(out_path), soundfont=soundfont)
        except playback.MidiPlaybackError:
            logging.exception("FluidSynth playback failed; using system default player as fallback.")
            try:
                playback.open_default_player(str(out_path))
            except (OSError, playback.MidiPlaybackError) as exc:
                logging.error("Could not open MIDI file: %s", exc)
