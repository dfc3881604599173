# tests/conftest.py
"""
Shared fixtures and value generators for the inference-effects test suite.
"""

import itertools
import random

import pytest

from inference_effects.effectbits import Consistency
from inference_effects.effects import Effects


# Every 3-bit register is a legal value: the decoder produces all eight,
# including the low bit combined with qualifier bits.
ALL_CONSISTENCY = tuple(Consistency(v) for v in range(8))

PERSISTED_BOOLS = (
    "effect_free",
    "nothrow",
    "terminates",
    "notaskstate",
    "noglobal",
    "nonoverlayed",
)


def all_effects(consistency_values=ALL_CONSISTENCY):
    """Every combination of the seven boolean fields for each register value."""
    for c in consistency_values:
        for bits in itertools.product((True, False), repeat=7):
            yield Effects(c, *bits)


@pytest.fixture(scope="session")
def every_effects():
    return list(all_effects())


@pytest.fixture(scope="session")
def effects_sample():
    """Small deterministic sample for the cubic (associativity) checks.

    Three values per register, so the mixed registers are always covered.
    """
    rng = random.Random(20240611)
    return [x for c in ALL_CONSISTENCY for x in rng.sample(list(all_effects((c,))), 3)]
