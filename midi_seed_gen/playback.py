"""Preview a written MIDI file through FluidSynth or the system player.

Only whole files are previewed; nothing here schedules events in real time.
The SoundFont comes from the ``soundfont`` argument, the ``SOUND_FONT``
environment variable or a per-platform default, in that order.

>>> from midi_seed_gen.playback import play_midi
>>> play_midi("out/seeded_20250101_120000_42.mid")
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from typing import List, Optional

__all__ = ["MidiPlaybackError", "play_midi", "open_default_player"]

logger = logging.getLogger(__name__)

# Environment variable naming a custom player command, e.g. ``timidity``.
PLAYER_ENV = "MIDI_SEED_GEN_PLAYER"

_PLATFORM_SOUNDFONTS = {
    "win": r"C:\\Windows\\System32\\drivers\\gm.dls",
    "darwin": "/Library/Audio/Sounds/Banks/FluidR3_GM.sf2",
    "linux": "/usr/share/sounds/sf2/TimGM6mb.sf2",
}

_MISSING_FLUIDSYNTH = "fluidsynth not installed. Install the FluidSynth library and pyFluidSynth package."


class MidiPlaybackError(RuntimeError):
    """Raised when a preview cannot be played."""


def _resolve_soundfont(sf: Optional[str]) -> str:
    """Return an existing SoundFont path or raise :class:`MidiPlaybackError`."""

    candidate = sf or os.environ.get("SOUND_FONT")
    if not candidate:
        if sys.platform.startswith("win"):
            candidate = _PLATFORM_SOUNDFONTS["win"]
        elif sys.platform == "darwin":
            candidate = _PLATFORM_SOUNDFONTS["darwin"]
        else:
            candidate = _PLATFORM_SOUNDFONTS["linux"]

    candidate = os.path.expanduser(os.path.expandvars(candidate))
    if not os.path.isfile(candidate):
        raise MidiPlaybackError(
            "SoundFont not found. Provide a valid path via --soundfont or the "
            "SOUND_FONT environment variable, or install a General MIDI soundfont."
        )
    return candidate


def play_midi(path: str, soundfont: Optional[str] = None) -> None:
    """Play the MIDI file at ``path`` with pyFluidSynth, blocking until done.

    Raises
    ------
    MidiPlaybackError
        If pyFluidSynth or the FluidSynth library is missing, the SoundFont
        cannot be found, or playback fails.
    """

    try:
        import fluidsynth  # type: ignore
    except FileNotFoundError as exc:
        # pyFluidSynth raises this when the shared library is absent.
        raise MidiPlaybackError(_MISSING_FLUIDSYNTH) from exc
    except ImportError as exc:
        raise MidiPlaybackError("pyFluidSynth is required for playback") from exc

    sf_path = _resolve_soundfont(soundfont)

    try:
        synth = fluidsynth.Synth()
    except FileNotFoundError as exc:
        raise MidiPlaybackError(_MISSING_FLUIDSYNTH) from exc
    try:
        synth.start()
    except Exception as exc:
        synth.delete()
        raise MidiPlaybackError(f"Could not start audio driver: {exc}") from exc

    try:
        sfid = synth.sfload(sf_path)
        synth.program_select(0, sfid, 0, 0)
        synth.play_midi_file(path)
    except Exception as exc:
        raise MidiPlaybackError(f"Playback failed: {exc}") from exc
    finally:
        synth.delete()


def _player_command(path: str, player_args: Optional[List[str]]) -> List[str]:
    if sys.platform.startswith("win"):
        return player_args + [path] if player_args else ["cmd", "/c", "start", "/wait", "", path]
    if sys.platform == "darwin":
        return ["open", "-W", "-a"] + player_args + [path] if player_args else ["open", "-W", path]
    return player_args + [path] if player_args else ["xdg-open", path]


def open_default_player(path: str) -> None:
    """Open ``path`` with the operating system's MIDI player and wait for it.

    ``MIDI_SEED_GEN_PLAYER`` overrides the player; it is split with
    :func:`shlex.split` so quoted paths containing spaces work.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    MidiPlaybackError
        If the player exits with a non-zero status.
    """

    if not os.path.isfile(path):
        raise FileNotFoundError(f"MIDI file not found: {path}")

    player = os.environ.get(PLAYER_ENV)
    cmd = _player_command(path, shlex.split(player) if player else None)
    proc = subprocess.run(cmd, check=False, capture_output=True, text=True)
    if proc.returncode != 0:
        logger.error("Player command failed: %s", proc.args)
        raise MidiPlaybackError(proc.stderr.strip() or "Player command failed")
