# inference_effects/override.py
"""
User-declared effect assumptions and their one-byte storage form.

An ``EffectsOverride`` records which properties the programmer asserted
to hold.  It is shaped independently of ``Effects``: termination is split
into a global and a local claim, and there is no flag for overlaying or
bounds checking.  Combining an override with inferred effects is up to the
caller.

Byte layout: one bit per flag in declaration order, bit 7 reserved::

    bit  0 consistent
    bit  1 effect_free
    bit  2 nothrow
    bit  3 terminates_globally
    bit  4 terminates_locally
    bit  5 notaskstate
    bit  6 noglobal
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Final, Optional, Tuple

from inference_effects.codec import check_unsigned
from inference_effects.config import CodecConfig, resolve_config
from inference_effects.errors import EffectsCodecError

logger = logging.getLogger(__name__)

BYTE_WIDTH: Final[int] = 8


@dataclass(frozen=True, slots=True)
class EffectsOverride:
    consistent: bool = False
    effect_free: bool = False
    nothrow: bool = False
    terminates_globally: bool = False
    terminates_locally: bool = False
    notaskstate: bool = False
    noglobal: bool = False

    def __post_init__(self) -> None:
        for name in OVERRIDE_FIELDS:
            object.__setattr__(self, name, bool(getattr(self, name)))

    def declared(self) -> Tuple[str, ...]:
        """Names of the asserted flags, in declaration order."""
        return tuple(name for name in OVERRIDE_FIELDS if getattr(self, name))


OVERRIDE_FIELDS: Final[Tuple[str, ...]] = tuple(
    f.name for f in dataclasses.fields(EffectsOverride)
)

_RESERVED_MASK: Final[int] = 0xFF & ~((1 << len(OVERRIDE_FIELDS)) - 1)


def encode_effects_override(eo: EffectsOverride) -> int:
    e = 0
    for bit, name in enumerate(OVERRIDE_FIELDS):
        if getattr(eo, name):
            e |= 1 << bit
    return e


def decode_effects_override(
    e: int, *, config: Optional[CodecConfig] = None
) -> EffectsOverride:
    cfg = resolve_config(config)
    e = check_unsigned(e, BYTE_WIDTH)
    if e & _RESERVED_MASK:
        if cfg.strict:
            raise EffectsCodecError(
                f"reserved bit set in effects override byte {e:#04x}",
                value=e,
                width=BYTE_WIDTH,
            )
        logger.debug("ignoring reserved bit in effects override byte %#04x", e)
    return EffectsOverride(
        *((e >> bit) & 1 for bit in range(len(OVERRIDE_FIELDS)))
    )
