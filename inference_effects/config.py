# inference_effects/config.py
"""Tuning knobs for the compact codecs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, List, Optional

from inference_effects.errors import EffectsConfigError


@dataclass(frozen=True)
class CodecConfig:
    """Decoder behaviour for the persisted word / byte formats.

    ``strict``
        Reject words whose reserved bits are set instead of silently
        ignoring them.  Off by default: caches written by newer versions
        may use bits this version does not know about.
    """
    strict: bool = False

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if not isinstance(self.strict, bool):
            warnings.append(
                f"strict must be a bool, got {type(self.strict).__name__}"
            )
        return warnings

    def checked(self) -> CodecConfig:
        problems = self.validate()
        if problems:
            raise EffectsConfigError(problems)
        return self


DEFAULT_CONFIG: Final[CodecConfig] = CodecConfig()


def resolve_config(config: Optional[CodecConfig]) -> CodecConfig:
    """Return *config* if given and valid, else :data:`DEFAULT_CONFIG`."""
    if config is None:
        return DEFAULT_CONFIG
    return config.checked()
