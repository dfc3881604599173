"""
inference_effects/codec.py
══════════════════════════

Compact 32-bit form of an ``Effects`` value, as stored in cached method
metadata.

Bit layout (LSB first):

    ┌────────┬──────────────┬───────┐
    │ offset │ field        │ width │
    ├────────┼──────────────┼───────┤
    │   0    │ consistent   │   3   │
    │   3    │ effect_free  │   1   │
    │   4    │ nothrow      │   1   │
    │   5    │ terminates   │   1   │
    │   6    │ notaskstate  │   1   │
    │   7    │ noglobal     │   1   │
    │   8    │ nonoverlayed │   1   │
    │  9-31  │ (reserved)   │  23   │
    └────────┴──────────────┴───────┘

``noinbounds`` is not persisted: it only taints an aggregate before it is
finalised, and every decoded value carries its optimistic ``True``.

Every 9-bit pattern is a legal value, so decoding never fails on a word
of the format.  Words outside ``[0, 2**32)`` are not words of the format
and raise :class:`~inference_effects.errors.EffectsCodecError`.
"""

from __future__ import annotations

import logging
import operator
import struct
from typing import Any, Final, Optional, Tuple

from inference_effects.config import CodecConfig, resolve_config
from inference_effects.effectbits import CONSISTENCY_MASK, CONSISTENCY_WIDTH
from inference_effects.effects import Effects
from inference_effects.errors import EffectsCodecError

logger = logging.getLogger(__name__)

WORD_WIDTH: Final[int] = 32
WORD_MASK: Final[int] = (1 << WORD_WIDTH) - 1

# (field, offset) for the single-bit fields; consistent sits at offset 0.
_FLAG_LAYOUT: Final[Tuple[Tuple[str, int], ...]] = (
    ("effect_free", CONSISTENCY_WIDTH),
    ("nothrow", CONSISTENCY_WIDTH + 1),
    ("terminates", CONSISTENCY_WIDTH + 2),
    ("notaskstate", CONSISTENCY_WIDTH + 3),
    ("noglobal", CONSISTENCY_WIDTH + 4),
    ("nonoverlayed", CONSISTENCY_WIDTH + 5),
)

USED_BITS: Final[int] = CONSISTENCY_WIDTH + len(_FLAG_LAYOUT)
USED_MASK: Final[int] = (1 << USED_BITS) - 1

_PACKED_FORMAT: Final[str] = "<I"
PACKED_SIZE: Final[int] = struct.calcsize(_PACKED_FORMAT)


def check_unsigned(value: Any, width: int) -> int:
    """Return *value* as an ``int`` in ``[0, 2**width)`` or raise."""
    try:
        n = operator.index(value)
    except TypeError:
        raise EffectsCodecError(
            f"expected an integer, got {type(value).__name__}",
            value=value,
        ) from None
    if n < 0 or n >> width:
        raise EffectsCodecError(
            f"{n:#x} is not an unsigned {width}-bit value",
            value=value,
            width=width,
        )
    return n


def encode_effects(effects: Effects) -> int:
    word = int(effects.consistent) & CONSISTENCY_MASK
    for name, offset in _FLAG_LAYOUT:
        word |= int(getattr(effects, name)) << offset
    return word


def decode_effects(word: int, *, config: Optional[CodecConfig] = None) -> Effects:
    """Inverse of :func:`encode_effects`; ``noinbounds`` is always ``True``."""
    cfg = resolve_config(config)
    word = check_unsigned(word, WORD_WIDTH)
    reserved = word & ~USED_MASK
    if reserved:
        if cfg.strict:
            raise EffectsCodecError(
                f"reserved bits {reserved:#x} set in effects word {word:#x}",
                value=word,
                width=WORD_WIDTH,
            )
        logger.debug("ignoring reserved bits %#x in effects word %#x",
                     reserved, word)
    return Effects(
        word & CONSISTENCY_MASK,
        *((word >> offset) & 1 for _, offset in _FLAG_LAYOUT),
    )


def pack_effects(effects: Effects) -> bytes:
    """The encoded word as 4 little-endian bytes."""
    return struct.pack(_PACKED_FORMAT, encode_effects(effects))


def unpack_effects(data: bytes, *, config: Optional[CodecConfig] = None) -> Effects:
    if len(data) != PACKED_SIZE:
        raise EffectsCodecError(
            f"packed effects must be {PACKED_SIZE} bytes, got {len(data)}",
            value=data,
            width=WORD_WIDTH,
        )
    (word,) = struct.unpack(_PACKED_FORMAT, data)
    return decode_effects(word, config=config)
