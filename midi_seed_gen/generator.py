"""Seeded melody generation on a sixteenth-note grid.

:class:`MelodyGenerator` walks the phrase one 1/16-note slot at a time and
decides, from a private :class:`random.Random` stream, whether a note starts
there.  Output depends only on the seed and the
:class:`~midi_seed_gen.models.GenerationConfig`, so the same inputs always
yield the same :class:`~midi_seed_gen.models.NoteEvent` list regardless of
process or platform.

Draw order
----------
For every free slot the stream is consumed in exactly this order::

    onset    = randrange(100)            # note when >= REST_PERCENT
    degree   = randrange(len(scale))     # only if a note starts
    octave   = randrange(100)            # see OCTAVE_SHIFTS
    duration = randrange(sum(weights))   # see DURATION_WEIGHTS
    velocity = randint(low, high)

Slots covered by a sounding note make no draws.  Changing this order changes
every generated phrase, so existing seeds would no longer reproduce.  The
test-suite pins the phrase for seed ``123`` note by note to catch that.

Modification summary
--------------------
* Each call builds its own ``random.Random(seed)`` instead of touching the
  module-level generator, so concurrent callers never share state.
* Durations are clamped at the final bar line rather than spilling into a
  bar the caller did not ask for.
* Velocity accents land on quarter-note slots only and saturate at 127.
"""

from __future__ import annotations

import logging
import random
from typing import List, Sequence, Tuple

from .models import GenerationConfig, NoteEvent, validate_seed

__all__ = [
    "MelodyGenerator",
    "generate",
    "REST_PERCENT",
    "DURATION_WEIGHTS",
    "OCTAVE_SHIFTS",
]

logger = logging.getLogger(__name__)

# Percentage of free slots that stay silent.
REST_PERCENT = 55

# ``(slots, weight)`` pairs; short notes dominate with an occasional half-bar.
DURATION_WEIGHTS: Tuple[Tuple[int, int], ...] = ((1, 40), (2, 30), (3, 10), (4, 20))

# ``(upper bound, octave shift)`` on a 0-99 draw: 10% up, 5% down, else none.
OCTAVE_SHIFTS: Tuple[Tuple[int, int], ...] = ((10, 1), (15, -1), (100, 0))


def _weighted_choice(rng: random.Random, items: Sequence[Tuple[int, int]]) -> int:
    """Pick a value from ``(value, weight)`` pairs with one draw."""

    # Exactly one draw regardless of which bucket wins, so the stream stays
    # aligned with the documented order.
    total = sum(weight for _, weight in items)
    x = rng.randrange(total)
    for value, weight in items:
        if x < weight:
            return value
        x -= weight
    return items[-1][0]


def _octave_shift(draw: int) -> int:
    for bound, shift in OCTAVE_SHIFTS:
        if draw < bound:
            return shift
    return 0


class MelodyGenerator:
    """Generate a phrase of :class:`NoteEvent` objects from a seed."""

    def __init__(self, config: GenerationConfig) -> None:
        self.config = config.validate()

    def pitch_for(self, degree: int, octave_shift: int) -> int:
        """Return the clamped MIDI pitch for ``degree`` shifted by octaves."""

        cfg = self.config
        pitch = cfg.root_pitch + cfg.scale[degree] + 12 * octave_shift
        # A high root plus an upward shift can leave the MIDI range; clamp
        # instead of redrawing so the draw count per note stays fixed.
        return max(0, min(127, pitch))

    def generate(self, seed: int) -> List[NoteEvent]:
        """Return the notes for ``seed`` in ascending ``start_tick`` order."""

        validate_seed(seed)
        cfg = self.config
        # Integer seeding of ``random.Random`` is independent of
        # PYTHONHASHSEED, unlike seeding from a ``str``.
        rng = random.Random(seed)
        slot_ticks = cfg.slot_ticks
        total_ticks = cfg.total_ticks
        low, high = cfg.velocity_range

        notes: List[NoteEvent] = []
        slot = 0
        while slot < cfg.total_slots:
            # A rest costs only the onset draw.
            if rng.randrange(100) < REST_PERCENT:
                slot += 1
                continue

            degree = rng.randrange(len(cfg.scale))
            pitch = self.pitch_for(degree, _octave_shift(rng.randrange(100)))
            dur_slots = _weighted_choice(rng, DURATION_WEIGHTS)
            # Velocity is always drawn, accent or not, so the accent setting
            # changes loudness without shifting later draws.
            velocity = rng.randint(low, high)
            if slot % 4 == 0:
                velocity = min(velocity + cfg.accent, 127)

            start = slot * slot_ticks
            duration = min(dur_slots * slot_ticks, total_ticks - start)
            notes.append(NoteEvent(start, duration, pitch, velocity))
            # Skip the covered slots; notes on one channel never overlap.
            slot += dur_slots

        logger.debug("Generated %d notes from seed %d", len(notes), seed)
        return notes


def generate(seed: int, config: GenerationConfig) -> List[NoteEvent]:
    """Return the deterministic note sequence for ``seed`` and ``config``."""

    return MelodyGenerator(config).generate(seed)
