"""Helpers for writing encoded MIDI bytes to disk and reading them back.

Modification summary
--------------------
* ``write_midi_file`` creates the destination directory automatically so
  callers can pass a path in a new folder without preparing it.
* ``write_midi_file`` only ever receives a fully encoded byte string, so a
  failed encode never leaves a truncated file behind.
* ``load_midi_file`` defers importing ``mido`` so the encoder can run without
  the optional dependency; a clear error is raised when it is missing.

The encoder in :mod:`midi_seed_gen.smf` produces bytes directly.  ``mido`` is
used here as an independent parser so callers and tests can inspect the
result as ordinary ``Message`` objects.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from mido import MidiFile

__all__ = ["write_midi_file", "default_output_path", "load_midi_file", "DEFAULT_OUTPUT_DIR"]

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("out")


def default_output_path(seed: int, now: Optional[datetime] = None, directory: Path = DEFAULT_OUTPUT_DIR) -> Path:
    """Return ``out/seeded_<YYYYmmdd_HHMMSS>_<seed>.mid``.

    ``now`` defaults to the current local time and exists so tests can pin the
    timestamp.
    """

    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(directory) / f"seeded_{stamp}_{seed}.mid"


def write_midi_file(data: bytes, output_file: Union[str, Path]) -> Path:
    """Write encoded SMF ``data`` to ``output_file`` and return the path."""

    path = Path(output_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("MIDI file saved to %s", path)
    return path


def load_midi_file(source: Union[bytes, str, Path]) -> "MidiFile":
    """Parse ``source`` (raw bytes or a file path) with ``mido``.

    Raises
    ------
    ImportError
        If ``mido`` is not installed.
    """

    try:
        from mido import MidiFile
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to inspect MIDI files; install it with 'pip install mido'"
        ) from exc

    if isinstance(source, (bytes, bytearray)):
        return MidiFile(file=io.BytesIO(bytes(source)))
    return MidiFile(str(Path(source).expanduser()))
