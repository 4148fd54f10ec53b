"""Validation options.

Options are passed per call; the engine keeps no state between validations.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ValidationOptions:
    """Options recognized by the structural validator.

    Attributes:
        abort_early: Stop at the first structural issue instead of collecting all
        strip_unknown: Remove fields that the node's schema does not declare

    Examples:
        >>> ValidationOptions.from_dict({"stripUnknown": True})
        ValidationOptions(abort_early=False, strip_unknown=True)
        >>> ValidationOptions().nested().abort_early
        True
    """
    abort_early: bool = False
    strip_unknown: bool = False

    def nested(self) -> "ValidationOptions":
        """Options for a nested invocation (single event, generated element)."""
        return replace(self, abort_early=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"abortEarly": self.abort_early, "stripUnknown": self.strip_unknown}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ValidationOptions":
        """Create options from a camelCase dict; missing keys keep their defaults."""
        if not data:
            return cls()
        return cls(
            abort_early=bool(data.get("abortEarly", False)),
            strip_unknown=bool(data.get("stripUnknown", False)),
        )


__all__ = [
    "ValidationOptions",
]
