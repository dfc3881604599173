"""
inference_effects — Effect Lattice for Compiler Abstract Interpretation
=======================================================================

This package provides the value types an abstract interpreter uses to
record which semantic guarantees a piece of code offers (consistency,
freedom from side effects, termination, no-throw, and a few finer-grained
safety properties), the merge operator that folds per-statement results
into a per-method aggregate, the predicates an optimiser consults before
folding or deleting a call, and the compact integer encodings used to
cache those results.

Core modules
------------
effectbits
    ``Consistency`` flag register and the field-level merge primitives.
effects
    ``Effects`` lattice value, named presets, ``merge_effects`` and the
    derived predicates (``is_foldable``, ``is_total``, ...).
codec
    32-bit word encoding of ``Effects`` for method-metadata caches.
override
    ``EffectsOverride`` (user-declared assumptions) and its byte encoding.
lattice
    ``AbstractDomain`` protocol the lattice values satisfy.
config / errors
    ``CodecConfig`` and the exception hierarchy.

Quick start
-----------
>>> from inference_effects import (
...     EFFECTS_TOTAL, EFFECTS_THROWS, encode_effects, is_foldable, is_total,
...     merge_effects)
>>> agg = merge_effects(EFFECTS_TOTAL, EFFECTS_THROWS)
>>> is_foldable(agg), is_total(agg)
(True, False)
>>> hex(encode_effects(agg))
'0x1e8'
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__license__ = "MIT"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_re-export)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "EffectsError",
        "EffectsCodecError",
        "EffectsConfigError",
    ],
    "config": [
        "CodecConfig",
        "DEFAULT_CONFIG",
    ],
    "lattice": [
        "AbstractDomain",
    ],
    "effectbits": [
        "Consistency",
        "merge_effectbits",
        "merge_consistency",
    ],
    "effects": [
        "Effects",
        "EFFECTS_TOTAL",
        "EFFECTS_THROWS",
        "EFFECTS_UNKNOWN",
        "EFFECTS_FULLY_UNKNOWN",
        "PRESETS",
        "derive_effects",
        "merge_effects",
        "merge_all",
        "tree_merge",
        "is_consistent",
        "is_effect_free",
        "is_nothrow",
        "is_terminates",
        "is_notaskstate",
        "is_noglobal",
        "is_nonoverlayed",
        "is_noinbounds",
        "is_foldable",
        "is_total",
        "is_removable_if_unused",
        "is_consistent_ifnotreturned",
        "is_consistent_ifnoglobal",
        "is_inconsistent",
        "format_effects",
    ],
    "codec": [
        "encode_effects",
        "decode_effects",
        "pack_effects",
        "unpack_effects",
    ],
    "override": [
        "EffectsOverride",
        "encode_effects_override",
        "decode_effects_override",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"inference_effects: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"inference_effects.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)

    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

_log.debug("inference_effects %s loaded (%d names)", __version__, len(__all__))
