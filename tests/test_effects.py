# tests/test_effects.py
"""
Tests for the Effects lattice value: presets, derivation, the merge
operator, the derived predicates and the AbstractDomain contract.
"""

import itertools

import pytest

from inference_effects import (
    AbstractDomain,
    Consistency,
    Effects,
    EFFECTS_FULLY_UNKNOWN,
    EFFECTS_THROWS,
    EFFECTS_TOTAL,
    EFFECTS_UNKNOWN,
    derive_effects,
    format_effects,
    is_consistent,
    is_consistent_ifnoglobal,
    is_consistent_ifnotreturned,
    is_effect_free,
    is_foldable,
    is_inconsistent,
    is_noglobal,
    is_noinbounds,
    is_nonoverlayed,
    is_notaskstate,
    is_nothrow,
    is_removable_if_unused,
    is_terminates,
    is_total,
    merge_all,
    merge_effects,
    tree_merge,
)
from inference_effects.codec import USED_BITS, decode_effects
from inference_effects.effects import describe_effects
from tests.conftest import all_effects


BOTH_QUALIFIERS = Consistency.IFNOTRETURNED | Consistency.IFNOGLOBAL


# ── Construction ─────────────────────────────────────────────────

class TestConstruction:

    def test_noinbounds_defaults_true(self):
        e = Effects(Consistency.ALWAYS_TRUE, True, True, True, True, True, True)
        assert e.noinbounds is True

    def test_coerces_fields(self):
        e = Effects(6, 1, 0, 1, 0, 1, 0, 0)
        assert e.consistent == BOTH_QUALIFIERS
        assert isinstance(e.consistent, Consistency)
        assert (e.effect_free, e.nothrow, e.noinbounds) == (True, False, False)

    def test_immutable(self):
        with pytest.raises(AttributeError):
            EFFECTS_TOTAL.nothrow = False

    def test_hashable(self):
        assert len({EFFECTS_TOTAL, EFFECTS_TOTAL.replace(), EFFECTS_THROWS}) == 2


class TestPresets:

    def test_total(self):
        assert is_total(EFFECTS_TOTAL)
        assert EFFECTS_TOTAL.nonoverlayed and EFFECTS_TOTAL.noinbounds

    def test_throws_differs_only_in_nothrow(self):
        assert EFFECTS_THROWS == EFFECTS_TOTAL.replace(nothrow=False)

    def test_unknown_is_not_overlayed(self):
        assert EFFECTS_UNKNOWN.consistent == Consistency.ALWAYS_FALSE
        assert not any((EFFECTS_UNKNOWN.effect_free, EFFECTS_UNKNOWN.nothrow,
                        EFFECTS_UNKNOWN.terminates, EFFECTS_UNKNOWN.notaskstate,
                        EFFECTS_UNKNOWN.noglobal))
        assert EFFECTS_UNKNOWN.nonoverlayed

    def test_fully_unknown(self):
        assert EFFECTS_FULLY_UNKNOWN == EFFECTS_UNKNOWN.replace(nonoverlayed=False)


class TestDerive:

    def test_replaces_only_named_fields(self):
        e = derive_effects(EFFECTS_TOTAL, noglobal=False)
        assert not e.noglobal
        assert e.replace(noglobal=True) == EFFECTS_TOTAL

    def test_default_base_is_fully_unknown(self):
        assert derive_effects() == EFFECTS_FULLY_UNKNOWN
        e = derive_effects(nothrow=True)
        assert e.nothrow and not e.effect_free and not e.nonoverlayed

    def test_base_untouched(self):
        derive_effects(EFFECTS_TOTAL, consistent=Consistency.IFNOGLOBAL)
        assert EFFECTS_TOTAL.consistent == Consistency.ALWAYS_TRUE

    def test_unknown_field_is_type_error(self):
        with pytest.raises(TypeError):
            derive_effects(EFFECTS_TOTAL, pure=True)


# ── Merge operator ───────────────────────────────────────────────

class TestMerge:

    def test_commutative(self, every_effects):
        sample = every_effects[::7]
        for a, b in itertools.product(sample, repeat=2):
            assert merge_effects(a, b) == merge_effects(b, a)

    def test_associative(self, effects_sample):
        for a, b, c in itertools.product(effects_sample, repeat=3):
            assert (merge_effects(merge_effects(a, b), c)
                    == merge_effects(a, merge_effects(b, c)))

    def test_total_is_identity(self, every_effects):
        for x in every_effects:
            assert merge_effects(EFFECTS_TOTAL, x) == x
            assert merge_effects(x, EFFECTS_TOTAL) == x

    def test_total_with_throws(self):
        m = merge_effects(EFFECTS_TOTAL, EFFECTS_THROWS)
        assert not m.nothrow
        assert all((m.effect_free, m.terminates, m.notaskstate,
                    m.noglobal, m.nonoverlayed, m.noinbounds))
        assert is_foldable(m)
        assert not is_total(m)
        assert not is_removable_if_unused(m)

    def test_noinbounds_participates(self):
        tainted = EFFECTS_TOTAL.replace(noinbounds=False)
        assert merge_effects(EFFECTS_TOTAL, tainted).noinbounds is False

    def test_always_false_absorbs_qualifiers(self):
        q = EFFECTS_TOTAL.replace(consistent=BOTH_QUALIFIERS)
        assert merge_effects(EFFECTS_UNKNOWN, q).consistent == Consistency.ALWAYS_FALSE
        assert merge_effects(q, EFFECTS_UNKNOWN).consistent == Consistency.ALWAYS_FALSE

    def test_mixed_register_is_kept(self):
        mixed = EFFECTS_TOTAL.replace(consistent=Consistency.ALWAYS_FALSE | Consistency.IFNOTRETURNED)
        assert merge_effects(mixed, EFFECTS_TOTAL) == mixed
        assert merge_effects(mixed, mixed) == mixed
        assert merge_effects(mixed, EFFECTS_UNKNOWN).consistent == Consistency.ALWAYS_FALSE

    @pytest.mark.parametrize("start", range(0, 1 << USED_BITS, 64))
    def test_decoded_words_obey_identity(self, start):
        for word in range(start, start + 64):
            x = decode_effects(word)
            assert merge_effects(EFFECTS_TOTAL, x) == x
            assert merge_effects(x, EFFECTS_TOTAL) == x
            assert merge_effects(x, x) == x
            assert x.leq(x)


class TestFolds:

    def test_merge_all_empty_is_total(self):
        assert merge_all([]) == EFFECTS_TOTAL

    def test_merge_all_with_initial(self):
        assert merge_all([EFFECTS_TOTAL], initial=EFFECTS_THROWS) == EFFECTS_THROWS

    def test_tree_merge_matches_left_fold(self, effects_sample):
        for n in range(len(effects_sample) + 1):
            part = effects_sample[:n]
            assert tree_merge(part) == merge_all(part)

    def test_order_independent(self, effects_sample):
        expected = merge_all(effects_sample)
        assert merge_all(reversed(effects_sample)) == expected
        assert tree_merge(effects_sample[::2] + effects_sample[1::2]) == expected


# ── Derived predicates ───────────────────────────────────────────

class TestPredicates:

    def test_accessors(self):
        e = Effects(Consistency.ALWAYS_TRUE, True, False, True, False, True, False, False)
        assert is_effect_free(e)
        assert not is_nothrow(e)
        assert is_terminates(e)
        assert not is_notaskstate(e)
        assert is_noglobal(e)
        assert not is_nonoverlayed(e)
        assert not is_noinbounds(e)

    def test_total_implies_foldable(self, every_effects):
        for x in every_effects:
            if is_total(x):
                assert is_foldable(x)

    def test_foldable_without_total(self):
        assert is_foldable(EFFECTS_THROWS) and not is_total(EFFECTS_THROWS)

    def test_removable_ignores_consistency(self):
        e = EFFECTS_TOTAL.replace(consistent=Consistency.ALWAYS_FALSE)
        assert is_removable_if_unused(e)
        assert not is_foldable(e)

    def test_foldable_ignores_taskstate_and_global(self):
        e = EFFECTS_TOTAL.replace(notaskstate=False, noglobal=False)
        assert is_total(e)

    @pytest.mark.parametrize("field", ["effect_free", "terminates"])
    def test_foldable_requires(self, field):
        assert not is_foldable(EFFECTS_TOTAL.replace(**{field: False}))

    def test_both_qualifiers_report_independently(self):
        e = EFFECTS_TOTAL.replace(consistent=BOTH_QUALIFIERS)
        assert is_consistent_ifnotreturned(e)
        assert is_consistent_ifnoglobal(e)
        assert not is_consistent(e)
        assert not is_inconsistent(e)

    def test_single_qualifier(self):
        e = EFFECTS_TOTAL.replace(consistent=Consistency.IFNOGLOBAL)
        assert is_consistent_ifnoglobal(e)
        assert not is_consistent_ifnotreturned(e)

    def test_inconsistent_only_for_exact_register(self):
        mixed = EFFECTS_TOTAL.replace(consistent=Consistency.ALWAYS_FALSE | Consistency.IFNOGLOBAL)
        assert not is_inconsistent(mixed)
        assert not is_consistent(mixed)
        assert is_consistent_ifnoglobal(mixed)
        assert is_inconsistent(EFFECTS_UNKNOWN)
        assert not is_inconsistent(EFFECTS_TOTAL)


# ── Lattice contract ─────────────────────────────────────────────

class TestLattice:

    def test_satisfies_protocol(self):
        assert isinstance(EFFECTS_TOTAL, AbstractDomain)

    def test_extremal_elements(self, every_effects):
        bottom, top = Effects.bottom(), Effects.top()
        assert bottom.is_bottom() and top.is_top()
        assert not EFFECTS_FULLY_UNKNOWN.is_top()
        for x in every_effects:
            assert bottom.leq(x)
            assert x.leq(top)

    def test_join_is_upper_bound(self, effects_sample):
        for x, y in itertools.product(effects_sample, repeat=2):
            j = x.join(y)
            assert x.leq(j) and y.leq(j)

    def test_meet_is_lower_bound(self, effects_sample):
        for x, y in itertools.product(effects_sample, repeat=2):
            m = x.meet(y)
            assert m.leq(x) and m.leq(y)

    def test_top_is_meet_identity(self, effects_sample):
        for x in effects_sample:
            assert x.meet(Effects.top()) == x

    def test_widen_and_narrow(self):
        assert EFFECTS_TOTAL.widen(EFFECTS_THROWS) == EFFECTS_THROWS
        assert EFFECTS_THROWS.narrow(EFFECTS_TOTAL) == EFFECTS_TOTAL

    def test_leq_is_reflexive(self, every_effects):
        for x in every_effects:
            assert x.leq(x)


# ── Rendering ────────────────────────────────────────────────────

class TestRendering:

    def test_format_total(self):
        assert format_effects(EFFECTS_TOTAL) == "(+c,+e,+n,+t,+s,+m,+o,+i)"

    def test_format_throws_via_str(self):
        assert str(EFFECTS_THROWS) == "(+c,+e,!n,+t,+s,+m,+o,+i)"

    def test_format_conditional(self):
        e = EFFECTS_UNKNOWN.replace(consistent=Consistency.IFNOGLOBAL)
        assert format_effects(e).startswith("(?c,!e,")

    def test_describe(self):
        d = describe_effects(EFFECTS_THROWS)
        assert d["consistent"] == 0
        assert d["nothrow"] is False
        assert d["is_foldable"] is True
        assert d["is_total"] is False
        assert d["is_removable_if_unused"] is False


def test_all_effects_generator_size():
    assert len(list(all_effects())) == 8 * 2 ** 7
