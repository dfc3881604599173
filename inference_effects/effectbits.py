"""
inference_effects/effectbits.py
═══════════════════════════════

Field-level merge primitives for the effect lattice.

Two kinds of field exist:

    ┌──────────────┬──────────────────────────────────────────────────┐
    │  bool        │  guarantee holds / may be violated               │
    │              │  merge = AND                                     │
    ├──────────────┼──────────────────────────────────────────────────┤
    │  Consistency │  3-bit flag register                             │
    │              │  merge = ALWAYS_FALSE if either side is it,      │
    │              │          bitwise OR of the qualifiers otherwise  │
    └──────────────┴──────────────────────────────────────────────────┘

Qualifier bits accumulate: two different conditions for consistency can
both be pending at once.  The ``ALWAYS_FALSE`` verdict absorbs everything
and is never diluted back into a combination of qualifier bits.
"""

from __future__ import annotations

import enum
from typing import Final, Union


class Consistency(enum.IntFlag):
    """Flag register describing the consistency of a computation.

    ``ALWAYS_TRUE`` (no bits set) means unconditionally consistent.  A
    register of exactly ``ALWAYS_FALSE`` is the definite verdict that
    absorbs every other register on merge.
    """
    ALWAYS_TRUE = 0
    ALWAYS_FALSE = 1 << 0
    IFNOTRETURNED = 1 << 1
    IFNOGLOBAL = 1 << 2


CONSISTENCY_WIDTH: Final[int] = 3
CONSISTENCY_MASK: Final[int] = (1 << CONSISTENCY_WIDTH) - 1

ConsistencyLike = Union[Consistency, int]


def as_consistency(value: ConsistencyLike) -> Consistency:
    """Coerce *value* to a :class:`Consistency`, keeping only the three
    register bits."""
    return Consistency(int(value) & CONSISTENCY_MASK)


def is_always_false(value: ConsistencyLike) -> bool:
    """Does the register hold exactly the ``ALWAYS_FALSE`` verdict?

    A register such as ``0b011`` is a distinct value: its low bit does not
    make it definitely inconsistent.
    """
    return as_consistency(value) == Consistency.ALWAYS_FALSE


def merge_effectbits(old: bool, new: bool) -> bool:
    """A guarantee holds for two fragments only if it holds for both."""
    return bool(old) and bool(new)


def merge_consistency(old: ConsistencyLike, new: ConsistencyLike) -> Consistency:
    if is_always_false(old) or is_always_false(new):
        return Consistency.ALWAYS_FALSE
    return as_consistency(int(old) | int(new))


def meet_consistency(a: ConsistencyLike, b: ConsistencyLike) -> Consistency:
    """Greatest lower bound of two registers (dual of the merge)."""
    if is_always_false(a):
        return as_consistency(b)
    if is_always_false(b):
        return as_consistency(a)
    common = as_consistency(int(a) & int(b))
    # a lone ALWAYS_FALSE bit is ⊤, not a lower bound of either side
    if common == Consistency.ALWAYS_FALSE:
        return Consistency.ALWAYS_TRUE
    return common
