"""Value types shared by the generator and the SMF encoder.

Every object in this module is an immutable dataclass constructed once per
run.  ``validate`` methods perform the structural checks the generator and
encoder rely on so both halves reject bad input before producing any output.

Example
-------
>>> from midi_seed_gen.models import GenerationConfig, SCALES
>>> cfg = GenerationConfig(root_pitch=60, scale=SCALES["major-pentatonic"], bars=1)
>>> cfg.total_ticks
1920

Modification summary
--------------------
* ``InvalidConfig`` subclasses ``ValueError`` and ``EncodingOverflow``
  subclasses ``OverflowError`` so callers can catch either with the builtin.
* ``bars`` has no upper bound here.  Whether a phrase fits the 32-bit tick
  range depends on ``ppqn`` as well, so
  :func:`midi_seed_gen.smf.encode_sequence` checks ``total_ticks`` before
  generating anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

__all__ = [
    "InvalidConfig",
    "EncodingOverflow",
    "SCALES",
    "BEATS_PER_BAR",
    "MAX_SEED",
    "GenerationConfig",
    "NoteEvent",
    "TransportConfig",
    "validate_seed",
]


class InvalidConfig(ValueError):
    """Raised when a configuration or event falls outside its legal range."""


class EncodingOverflow(OverflowError):
    """Raised when the phrase is too long to be represented in an SMF track."""


# Semitone offsets from the root pitch class. The table is deliberately small;
# callers wanting another mode can pass any tuple of offsets directly.
SCALES: Dict[str, Tuple[int, ...]] = {
    "major": (0, 2, 4, 5, 7, 9, 11),
    "natural-minor": (0, 2, 3, 5, 7, 8, 10),
    "minor-pentatonic": (0, 3, 5, 7, 10),
    "major-pentatonic": (0, 2, 4, 7, 9),
}

# Only 4/4 is supported, so a bar always holds sixteen 1/16-note slots.
BEATS_PER_BAR = 4

# ``random.Random`` accepts any int, but the CLI and settings file round-trip
# seeds as unsigned 64-bit values.
MAX_SEED = 2**64 - 1

# The SMF division field is 16 bits and the top bit selects SMPTE timing.
MAX_PPQN = 0x7FFF


def validate_seed(seed: int) -> int:
    """Return ``seed`` if it is an unsigned 64-bit integer."""

    if isinstance(seed, bool) or not isinstance(seed, int):
        raise InvalidConfig(f"seed must be an integer, got {seed!r}")
    if not 0 <= seed <= MAX_SEED:
        raise InvalidConfig(f"seed {seed} out of range 0-{MAX_SEED}")
    return seed


def _check_int(name: str, value: int, low: int, high: int) -> None:
    # ``bool`` is an ``int`` subclass; ``True`` as a channel is a caller bug.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise InvalidConfig(f"{name} {value} out of range {low}-{high}")


@dataclass(frozen=True)
class GenerationConfig:
    """Parameters controlling :func:`midi_seed_gen.generator.generate`.

    Parameters
    ----------
    root_pitch:
        MIDI note number the scale is built on (``0-127``).
    scale:
        Semitone offsets from ``root_pitch``. Must contain at least one value
        and every offset must lie in ``0-11``.
    bars:
        Number of 4/4 bars to fill. ``0`` is legal and produces no notes.
    ppqn:
        Ticks per quarter note. At least ``4`` so a sixteenth note spans a
        whole number of ticks greater than zero.
    velocity_range:
        Inclusive ``(low, high)`` bounds for note velocities.
    accent:
        Extra velocity applied to notes starting on a quarter-note boundary.
        The result is capped at ``127``.
    """

    root_pitch: int = 60
    scale: Tuple[int, ...] = SCALES["minor-pentatonic"]
    bars: int = 16
    ppqn: int = 480
    velocity_range: Tuple[int, int] = (55, 94)
    accent: int = 0

    @property
    def beats_per_bar(self) -> int:
        return BEATS_PER_BAR

    @property
    def slot_ticks(self) -> int:
        """Length of a 1/16-note grid slot in ticks."""
        # Floor division: with a ppqn not divisible by 4 the grid runs slightly
        # short of each beat, and the final note is clamped to ``total_ticks``.
        return self.ppqn // 4

    @property
    def total_slots(self) -> int:
        return self.bars * self.beats_per_bar * 4

    @property
    def total_ticks(self) -> int:
        return self.bars * self.beats_per_bar * self.ppqn

    def validate(self) -> "GenerationConfig":
        """Raise :class:`InvalidConfig` if any field is out of range."""

        _check_int("root_pitch", self.root_pitch, 0, 127)
        if not self.scale:
            raise InvalidConfig("scale must contain at least one offset")
        for offset in self.scale:
            _check_int("scale offset", offset, 0, 11)
        if isinstance(self.bars, bool) or not isinstance(self.bars, int) or self.bars < 0:
            raise InvalidConfig(f"bars must be a non-negative integer, got {self.bars!r}")
        # Below 4 ticks per quarter a sixteenth note would be zero ticks long.
        _check_int("ppqn", self.ppqn, 4, MAX_PPQN)
        if len(self.velocity_range) != 2:
            raise InvalidConfig("velocity_range must be a (low, high) pair")
        low, high = self.velocity_range
        _check_int("velocity low", low, 1, 127)
        _check_int("velocity high", high, 1, 127)
        if low > high:
            raise InvalidConfig(f"velocity range {low}-{high} is empty")
        # Velocity 0 would read as a Note-Off, hence the lower bound of 1 and
        # an accent that can lift at most 1 to 127.
        _check_int("accent", self.accent, 0, 126)
        return self


@dataclass(frozen=True)
class NoteEvent:
    """A single sounded note on the tick grid."""

    start_tick: int
    duration_ticks: int
    pitch: int
    velocity: int

    @property
    def end_tick(self) -> int:
        return self.start_tick + self.duration_ticks

    def validate(self) -> "NoteEvent":
        if isinstance(self.start_tick, bool) or not isinstance(self.start_tick, int) or self.start_tick < 0:
            raise InvalidConfig(f"start_tick must be a non-negative integer, got {self.start_tick!r}")
        if (
            isinstance(self.duration_ticks, bool)
            or not isinstance(self.duration_ticks, int)
            or self.duration_ticks <= 0
        ):
            raise InvalidConfig(f"duration_ticks must be a positive integer, got {self.duration_ticks!r}")
        _check_int("pitch", self.pitch, 0, 127)
        _check_int("velocity", self.velocity, 1, 127)
        return self


@dataclass(frozen=True)
class TransportConfig:
    """Tempo and instrument settings written ahead of the notes."""

    bpm: float = 120
    channel: int = 0
    program: int = 0

    @property
    def tempo_us(self) -> int:
        """Microseconds per quarter note for the Set-Tempo meta event."""
        return round(60_000_000 / self.bpm)

    def validate(self) -> "TransportConfig":
        if isinstance(self.bpm, bool) or not isinstance(self.bpm, (int, float)):
            raise InvalidConfig(f"bpm must be a number, got {self.bpm!r}")
        # ``not bpm > 0`` also rejects NaN.
        if not self.bpm > 0 or self.bpm == float("inf"):
            raise InvalidConfig(f"bpm must be positive, got {self.bpm}")
        _check_int("channel", self.channel, 0, 15)
        _check_int("program", self.program, 0, 127)
        # The tempo payload is three bytes wide.
        if not 1 <= self.tempo_us <= 0xFFFFFF:
            raise InvalidConfig(f"bpm {self.bpm} gives an unencodable tempo of {self.tempo_us} us")
        return self
