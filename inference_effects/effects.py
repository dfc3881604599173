"""
inference_effects/effects.py
════════════════════════════

The ``Effects`` lattice value and everything computed from it.

An ``Effects`` value describes the guarantees one unit of code offers:

    ┌──────────────┬───────────┬──────────────────────────────────────────┐
    │ field        │ type      │ guarantee                                │
    ├──────────────┼───────────┼──────────────────────────────────────────┤
    │ consistent   │ 3-bit set │ equal inputs give equal results          │
    │ effect_free  │ bool      │ no externally visible side effects       │
    │ nothrow      │ bool      │ never raises                             │
    │ terminates   │ bool      │ always terminates                        │
    │ notaskstate  │ bool      │ no access to task-local state            │
    │ noglobal     │ bool      │ no access to mutable global state        │
    │ nonoverlayed │ bool      │ only calls non-overlayed definitions     │
    │ noinbounds   │ bool      │ not tainted by bounds-check elision      │
    └──────────────┴───────────┴──────────────────────────────────────────┘

The abstract interpreter produces one value per statement and folds them
with :func:`merge_effects` into one aggregate per method.  Every field
starts optimistic and only ever moves toward the pessimistic end, so the
fold may run in any order (including a tree reduction across workers)
and reach the same aggregate.

The optimiser then asks the derived predicates:

    is_total  ⟹  is_foldable          (result may be computed at compile time)
    is_removable_if_unused             (call may be deleted when unused;
                                        does not need consistency)
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Final, Iterable, List, Optional, Tuple

from inference_effects.effectbits import (
    Consistency,
    as_consistency,
    is_always_false,
    meet_consistency,
    merge_consistency,
    merge_effectbits,
)

logger = logging.getLogger(__name__)

BOOL_FIELDS: Final[Tuple[str, ...]] = (
    "effect_free",
    "nothrow",
    "terminates",
    "notaskstate",
    "noglobal",
    "nonoverlayed",
    "noinbounds",
)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — THE LATTICE VALUE
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Effects:
    """
    One effect assessment.

    ``consistent`` accepts any int-like value and keeps its three register
    bits; the boolean fields are coerced with ``bool()``.

    ⊥:  EFFECTS_TOTAL (every guarantee holds, identity of the merge)
    ⊤:  every guarantee lost, ``noinbounds`` tainted as well
    """
    consistent: Consistency
    effect_free: bool
    nothrow: bool
    terminates: bool
    notaskstate: bool
    noglobal: bool
    nonoverlayed: bool
    noinbounds: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "consistent", as_consistency(self.consistent))
        for name in BOOL_FIELDS:
            object.__setattr__(self, name, bool(getattr(self, name)))

    @classmethod
    def bottom(cls) -> Effects:
        return EFFECTS_TOTAL

    @classmethod
    def top(cls) -> Effects:
        return cls(Consistency.ALWAYS_FALSE,
                   False, False, False, False, False, False,
                   noinbounds=False)

    def replace(self, **changes: Any) -> Effects:
        """Copy of this value with the named fields replaced."""
        return dataclasses.replace(self, **changes)

    # ---- AbstractDomain ---------------------------------------------------

    def is_bottom(self) -> bool:
        return self == EFFECTS_TOTAL

    def is_top(self) -> bool:
        return self == Effects.top()

    def join(self, other: Effects) -> Effects:
        return merge_effects(self, other)

    def meet(self, other: Effects) -> Effects:
        return Effects(
            meet_consistency(self.consistent, other.consistent),
            *(getattr(self, name) or getattr(other, name)
              for name in BOOL_FIELDS),
        )

    def leq(self, other: Effects) -> bool:
        return merge_effects(self, other) == other

    def widen(self, other: Effects) -> Effects:
        # Finite height (3 register bits + 7 booleans); join suffices.
        return self.join(other)

    def narrow(self, other: Effects) -> Effects:
        return other

    def __str__(self) -> str:
        return format_effects(self)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — NAMED PRESETS
# ═══════════════════════════════════════════════════════════════════════════

EFFECTS_TOTAL: Final[Effects] = Effects(
    Consistency.ALWAYS_TRUE, True, True, True, True, True, True)
EFFECTS_THROWS: Final[Effects] = Effects(
    Consistency.ALWAYS_TRUE, True, False, True, True, True, True)
# Unknown mostly, but not overlayed at least (e.g. it is not a call).
EFFECTS_UNKNOWN: Final[Effects] = Effects(
    Consistency.ALWAYS_FALSE, False, False, False, False, False, True)
EFFECTS_FULLY_UNKNOWN: Final[Effects] = Effects(
    Consistency.ALWAYS_FALSE, False, False, False, False, False, False)

PRESETS: Final[dict[str, Effects]] = {
    "total": EFFECTS_TOTAL,
    "throws": EFFECTS_THROWS,
    "unknown": EFFECTS_UNKNOWN,
    "fully_unknown": EFFECTS_FULLY_UNKNOWN,
}


def derive_effects(base: Optional[Effects] = None, **changes: Any) -> Effects:
    """Build an ``Effects`` from *base* with some fields replaced.

    With no *base* the fully unknown preset is used, so every guarantee the
    caller does not name explicitly is assumed lost.

    >>> derive_effects(EFFECTS_TOTAL, nothrow=False) == EFFECTS_THROWS
    True
    """
    if base is None:
        base = EFFECTS_FULLY_UNKNOWN
    return base.replace(**changes)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — MERGE OPERATOR
# ═══════════════════════════════════════════════════════════════════════════

def merge_effects(old: Effects, new: Effects) -> Effects:
    """Conservative join of two assessments, field by field."""
    return Effects(
        merge_consistency(old.consistent, new.consistent),
        merge_effectbits(old.effect_free, new.effect_free),
        merge_effectbits(old.nothrow, new.nothrow),
        merge_effectbits(old.terminates, new.terminates),
        merge_effectbits(old.notaskstate, new.notaskstate),
        merge_effectbits(old.noglobal, new.noglobal),
        merge_effectbits(old.nonoverlayed, new.nonoverlayed),
        merge_effectbits(old.noinbounds, new.noinbounds),
    )


def merge_all(effects: Iterable[Effects],
              initial: Effects = EFFECTS_TOTAL) -> Effects:
    """Left fold of :func:`merge_effects` starting at *initial*."""
    acc = initial
    count = 0
    for e in effects:
        acc = merge_effects(acc, e)
        count += 1
    logger.debug("merged %d effect(s) into %s", count, acc)
    return acc


def tree_merge(effects: Iterable[Effects]) -> Effects:
    """Pairwise tree reduction; equal to :func:`merge_all` for any input.

    This is the shape a parallel analysis produces when each worker folds
    a disjoint slice of statements and the partial aggregates are combined.
    """
    level: List[Effects] = list(effects)
    if not level:
        return EFFECTS_TOTAL
    while len(level) > 1:
        paired = [merge_effects(level[i], level[i + 1])
                  for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            paired.append(level[-1])
        level = paired
    return level[0]


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — DERIVED PREDICATES
# ═══════════════════════════════════════════════════════════════════════════

def is_consistent(effects: Effects) -> bool:
    return effects.consistent == Consistency.ALWAYS_TRUE


def is_effect_free(effects: Effects) -> bool:
    return effects.effect_free


def is_nothrow(effects: Effects) -> bool:
    return effects.nothrow


def is_terminates(effects: Effects) -> bool:
    return effects.terminates


def is_notaskstate(effects: Effects) -> bool:
    return effects.notaskstate


def is_noglobal(effects: Effects) -> bool:
    return effects.noglobal


def is_nonoverlayed(effects: Effects) -> bool:
    return effects.nonoverlayed


def is_noinbounds(effects: Effects) -> bool:
    return effects.noinbounds


# implies `is_notaskstate` & `is_noglobal`, but not explicitly checked here
def is_foldable(effects: Effects) -> bool:
    return (is_consistent(effects)
            and is_effect_free(effects)
            and is_terminates(effects))


def is_total(effects: Effects) -> bool:
    return is_foldable(effects) and is_nothrow(effects)


def is_removable_if_unused(effects: Effects) -> bool:
    return (is_effect_free(effects)
            and is_terminates(effects)
            and is_nothrow(effects))


def is_consistent_ifnotreturned(effects: Effects) -> bool:
    return bool(effects.consistent & Consistency.IFNOTRETURNED)


def is_consistent_ifnoglobal(effects: Effects) -> bool:
    return bool(effects.consistent & Consistency.IFNOGLOBAL)


def is_inconsistent(effects: Effects) -> bool:
    """Definitely not consistent; no further refinement is possible."""
    return is_always_false(effects.consistent)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 5 — TEXT RENDERING
# ═══════════════════════════════════════════════════════════════════════════
#
#  One letter per property, prefixed with its state:
#    +  guaranteed      !  may be violated      ?  conditionally consistent
#
#      (+c,+e,!n,+t,+s,+m,+o,+i)
# ═══════════════════════════════════════════════════════════════════════════

_LETTERS: Final[Tuple[Tuple[str, str], ...]] = (
    ("effect_free", "e"),
    ("nothrow", "n"),
    ("terminates", "t"),
    ("notaskstate", "s"),
    ("noglobal", "m"),
    ("nonoverlayed", "o"),
    ("noinbounds", "i"),
)


def _consistency_mark(c: Consistency) -> str:
    if c == Consistency.ALWAYS_TRUE:
        return "+"
    if is_always_false(c):
        return "!"
    return "?"


def format_effects(effects: Effects) -> str:
    parts = [_consistency_mark(effects.consistent) + "c"]
    for name, letter in _LETTERS:
        parts.append(("+" if getattr(effects, name) else "!") + letter)
    return "(" + ",".join(parts) + ")"


def describe_effects(effects: Effects) -> dict[str, Any]:
    """Plain-data view of *effects* plus its derived predicates."""
    return {
        "consistent": int(effects.consistent),
        **{name: getattr(effects, name) for name in BOOL_FIELDS},
        "is_consistent": is_consistent(effects),
        "is_consistent_ifnotreturned": is_consistent_ifnotreturned(effects),
        "is_consistent_ifnoglobal": is_consistent_ifnoglobal(effects),
        "is_foldable": is_foldable(effects),
        "is_total": is_total(effects),
        "is_removable_if_unused": is_removable_if_unused(effects),
    }
