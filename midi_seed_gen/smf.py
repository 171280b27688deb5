"""Byte-level Standard MIDI File (format 0) encoder.

The encoder turns a :class:`~midi_seed_gen.models.TransportConfig` and a list
of :class:`~midi_seed_gen.models.NoteEvent` objects into a complete SMF with a
single track.  Layout::

    MThd 00000006 0000 0001 <ppqn>
    MTrk <length>
        00 FF 51 03 <tempo>          set tempo
        00 C<ch> <program>           program change
        <delta> 9<ch> <pitch> <vel>  note on
        <delta> 8<ch> <pitch> 00     note off
        ...
        <delta> FF 2F 00             end of track

Events sharing a tick are written tempo first, then program change, then
note-offs, then note-ons, so a pitch re-struck on the tick its previous
instance ends never appears to overlap itself.  Running status is not used.

All validation happens before the first byte is produced, so a failed call
never yields a partial file.

Modification summary
--------------------
* ``encode_sequence`` rejects phrases whose length exceeds the 32-bit tick
  range before generating any notes, so a huge ``bars`` value fails
  immediately with :class:`EncodingOverflow` instead of walking billions of
  grid slots first.
* ``encode`` accepts an ``end_tick`` so callers may keep trailing rests up to
  the final bar line.
"""

from __future__ import annotations

import logging
import struct
from typing import Iterable, List, Optional, Sequence, Tuple

from .generator import generate
from .models import (
    EncodingOverflow,
    GenerationConfig,
    InvalidConfig,
    MAX_PPQN,
    NoteEvent,
    TransportConfig,
)

__all__ = [
    "MAX_VLQ",
    "encode_vlq",
    "decode_vlq",
    "encode",
    "encode_sequence",
]

logger = logging.getLogger(__name__)

# Largest value a four-byte variable-length quantity can hold.
MAX_VLQ = 0x0FFFFFFF

# SMF chunk lengths and our absolute tick counters are unsigned 32-bit.
MAX_UINT32 = 0xFFFFFFFF

# Tie-break priority for events at the same absolute tick.
TEMPO, PROGRAM_CHANGE, NOTE_OFF, NOTE_ON = range(4)

END_OF_TRACK = b"\xff\x2f\x00"


def encode_vlq(value: int) -> bytes:
    """Encode ``value`` as a MIDI variable-length quantity.

    Seven bits are stored per byte, most significant group first, with the
    high bit set on every byte except the last.

    >>> encode_vlq(0x80).hex()
    '8100'
    """

    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(f"VLQ value must be an integer, got {value!r}")
    if not 0 <= value <= MAX_VLQ:
        raise InvalidConfig(f"VLQ value {value} out of range 0-{MAX_VLQ}")

    # Build the groups least significant first, flagging every group but the
    # lowest as a continuation byte, then flip them into wire order.
    out = bytearray([value & 0x7F])
    value >>= 7
    while value:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.reverse()
    return bytes(out)


def decode_vlq(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a variable-length quantity starting at ``offset``.

    Returns
    -------
    tuple[int, int]
        The decoded value and the offset of the first byte after it.

    Raises
    ------
    ValueError
        If the quantity is truncated or longer than four bytes.
    """

    value = 0
    for i in range(4):
        pos = offset + i
        if pos >= len(data):
            raise ValueError(f"truncated variable-length quantity at offset {offset}")
        byte = data[pos]
        # The low seven bits carry payload; a clear high bit ends the quantity.
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, pos + 1
    raise ValueError(f"variable-length quantity at offset {offset} exceeds 4 bytes")


def _timed_events(
    transport: TransportConfig, notes: Sequence[NoteEvent]
) -> List[Tuple[int, int, bytes]]:
    """Return ``(tick, priority, payload)`` triples sorted for writing."""

    channel = transport.channel
    # Set-Tempo carries a 24-bit big-endian payload, so drop the top byte of
    # the packed 32-bit value. ``TransportConfig.validate`` guarantees it fits.
    tempo = struct.pack(">I", transport.tempo_us)[1:]
    events: List[Tuple[int, int, bytes]] = [
        (0, TEMPO, b"\xff\x51\x03" + tempo),
        (0, PROGRAM_CHANGE, bytes([0xC0 | channel, transport.program])),
    ]
    # Note-Off uses status 0x8n with velocity 0 rather than a zero-velocity
    # Note-On so readers never mistake it for a sounding note.
    for note in notes:
        events.append((note.start_tick, NOTE_ON, bytes([0x90 | channel, note.pitch, note.velocity])))
        events.append((note.end_tick, NOTE_OFF, bytes([0x80 | channel, note.pitch, 0])))

    # ``sort`` is stable so equal (tick, priority) pairs keep emission order.
    events.sort(key=lambda e: (e[0], e[1]))
    return events


def _check_ppqn(ppqn: int) -> None:
    if isinstance(ppqn, bool) or not isinstance(ppqn, int) or not 1 <= ppqn <= MAX_PPQN:
        raise InvalidConfig(f"ppqn must be an integer in 1-{MAX_PPQN}, got {ppqn!r}")


def encode(
    transport: TransportConfig,
    ppqn: int,
    notes: Iterable[NoteEvent],
    *,
    end_tick: Optional[int] = None,
) -> bytes:
    """Serialize ``notes`` as a format-0 Standard MIDI File.

    Parameters
    ----------
    transport:
        Tempo, channel and program written at tick ``0``.
    ppqn:
        Ticks per quarter note stored in the header's division field.
    notes:
        Notes to write. They need not be sorted; the encoder orders the
        flattened note-on/note-off stream itself.
    end_tick:
        Optional absolute tick for End-of-Track. When it lies beyond the last
        event the gap is kept as trailing silence; otherwise End-of-Track
        follows the last event with a delta of ``0``.

    Raises
    ------
    InvalidConfig
        If the transport, ``ppqn`` or any note is out of range, or a delta
        cannot be expressed as a variable-length quantity.
    EncodingOverflow
        If an absolute tick or the track length exceeds 32 bits.
    """

    # Validate everything up front: nothing below may raise InvalidConfig for
    # a field, only for a delta, and no bytes are returned on any failure.
    transport.validate()
    _check_ppqn(ppqn)
    notes = [note.validate() for note in notes]
    for note in notes:
        if note.end_tick > MAX_UINT32:
            raise EncodingOverflow(f"note ending at tick {note.end_tick} exceeds the 32-bit tick range")
    if end_tick is not None:
        if isinstance(end_tick, bool) or not isinstance(end_tick, int) or end_tick < 0:
            raise InvalidConfig(f"end_tick must be a non-negative integer, got {end_tick!r}")
        if end_tick > MAX_UINT32:
            raise EncodingOverflow(f"end_tick {end_tick} exceeds the 32-bit tick range")

    body = bytearray()
    # Deltas are relative to the previous event; the first event is measured
    # from tick 0, which is where tempo and program change always sit.
    previous = 0
    for tick, _priority, payload in _timed_events(transport, notes):
        body += encode_vlq(tick - previous)
        body += payload
        previous = tick

    # End-of-Track appears exactly once and always last. Any requested
    # trailing silence becomes its delta.
    trailing = end_tick - previous if end_tick is not None and end_tick > previous else 0
    body += encode_vlq(trailing)
    body += END_OF_TRACK

    if len(body) > MAX_UINT32:
        raise EncodingOverflow(f"track body of {len(body)} bytes exceeds the chunk length field")

    header = b"MThd" + struct.pack(">IHHH", 6, 0, 1, ppqn)
    track = b"MTrk" + struct.pack(">I", len(body)) + bytes(body)
    logger.debug("Encoded %d notes into %d bytes", len(notes), len(header) + len(track))
    return header + track


def encode_sequence(
    seed: int,
    config: GenerationConfig,
    transport: TransportConfig,
    *,
    pad_to_end: bool = False,
) -> bytes:
    """Generate the phrase for ``seed`` and return the encoded file.

    When ``pad_to_end`` is ``True`` End-of-Track is placed at the end of the
    last bar so trailing rests are preserved.

    Raises
    ------
    InvalidConfig
        If ``config`` or ``transport`` is invalid.
    EncodingOverflow
        If ``config.total_ticks`` exceeds the 32-bit tick range. This is
        detected before generation starts.
    """

    transport.validate()
    config.validate()
    # The phrase length is known before a single note is drawn. Checking it
    # here keeps an enormous ``bars`` value from walking the whole grid and
    # allocating every note only to fail in ``encode``.
    if config.total_ticks > MAX_UINT32:
        raise EncodingOverflow(
            f"{config.bars} bars at {config.ppqn} ppqn span {config.total_ticks} ticks, "
            f"beyond the 32-bit tick range"
        )
    notes = generate(seed, config)
    end_tick = config.total_ticks if pad_to_end else None
    return encode(transport, config.ppqn, notes, end_tick=end_tick)
