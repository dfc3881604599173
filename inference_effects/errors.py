# inference_effects/errors.py
"""
Exception hierarchy for inference-effects.

The lattice operations themselves are total: construction, merging and the
derived predicates accept every value of their domain.  The errors below
only fire when a caller hands the codecs something that is not a word of
the persisted format at all (negative numbers, values wider than the
format, non-integers) or when strict decoding finds a reserved bit set.

    EffectsError (base)
    ├── EffectsCodecError   - value outside the persisted word / byte format
    └── EffectsConfigError  - invalid CodecConfig
"""

from __future__ import annotations

from typing import Any, Optional


class EffectsError(Exception):
    """Base class for every error raised by this package."""


class EffectsCodecError(EffectsError, ValueError):
    """A value cannot be decoded from (or encoded to) the compact format.

    Attributes
    ----------
    value:
        The offending input, as received.
    width:
        Bit width of the format that rejected it (32 for ``Effects``
        words, 8 for ``EffectsOverride`` bytes), or ``None`` when the
        input was not even an integer.
    """

    def __init__(
        self,
        message: str,
        *,
        value: Any = None,
        width: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.value = value
        self.width = width

    def __str__(self) -> str:
        base = super().__str__()
        if self.width is None:
            return base
        return f"{base} (format width: {self.width} bits)"


class EffectsConfigError(EffectsError, ValueError):
    """Raised by :meth:`CodecConfig.checked` for an unusable configuration."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = list(problems)
