"""
inference_effects/lattice.py
════════════════════════════

Structural contract shared by the lattice values in this package.

The effect lattice is ordered from *optimistic* to *pessimistic*:

    ┌───────────────────────────────────────────────────────────┐
    │  ⊤  every guarantee lost, noinbounds tainted              │
    │  │                                                        │
    │  ⋮  merge_effects() only ever moves upward                │
    │  │                                                        │
    │  ⊥  EFFECTS_TOTAL: every guarantee holds                  │
    └───────────────────────────────────────────────────────────┘

so ``join`` is the merge operator used by the abstract interpreter when it
folds per-statement assessments into a method-level aggregate.

Lattice laws that MUST hold:

    1. x ⊔ ⊥ = x                          (⊥ is identity for join)
    2. x ⊓ ⊤ = x                          (⊤ is identity for meet)
    3. x ⊑ x ⊔ y  and  y ⊑ x ⊔ y         (join is upper bound)
    4. x ⊓ y ⊑ x  and  x ⊓ y ⊑ y         (meet is lower bound)
    5. x ⊑ y  ⟺  x ⊔ y = y              (ordering ↔ join)
    6. x ⊔ y = y ⊔ x                      (commutativity of join)
    7. (x ⊔ y) ⊔ z = x ⊔ (y ⊔ z)         (associativity of join)
    8. ⊥ ⊑ x ⊑ ⊤                         (extremal elements)
"""

from __future__ import annotations

from typing import Protocol, Self, runtime_checkable


@runtime_checkable
class AbstractDomain(Protocol):
    """
    Protocol that every lattice element in this package satisfies.

    Consumers (fixpoint drivers, method-level aggregation) depend only on
    these operations, never on the concrete field layout.
    """

    # ---- Lattice operations ----------------------------------------------

    def join(self, other: Self) -> Self:
        """Least upper bound:  self ⊔ other."""
        ...

    def meet(self, other: Self) -> Self:
        """Greatest lower bound:  self ⊓ other."""
        ...

    def leq(self, other: Self) -> bool:
        """Partial order:  self ⊑ other."""
        ...

    def is_bottom(self) -> bool:
        """Is this the least element ⊥?"""
        ...

    def is_top(self) -> bool:
        """Is this the greatest element ⊤?"""
        ...

    # ---- Widening / narrowing --------------------------------------------

    def widen(self, other: Self) -> Self:
        """
        Widening operator  self ∇ other.

        Finite-height lattices (all of the ones in this package) implement
        this as plain ``join``.
        """
        ...

    def narrow(self, other: Self) -> Self:
        """
        Narrowing operator  self Δ other.

        Default implementation: return other (always safe, may be imprecise).
        """
        ...
