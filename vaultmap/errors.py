"""Structured errors raised by the vaultmap numerical core and its boundary.

Every error carries the offending indices or sizes as attributes so callers
can build an actionable message without parsing strings. ``to_dict`` exposes
the same information for JSON responses and the CLI.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VaultmapError(Exception):
    """Base class for all structured vaultmap failures."""

    kind = "VaultmapError"

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": str(self), **self.details()}


class InvalidLinkIndex(VaultmapError, IndexError):
    """An edge references a node outside ``[0, n)``."""

    kind = "InvalidLinkIndex"

    def __init__(self, from_id: int, to_id: int, max: int) -> None:  # noqa: A002
        self.from_id = from_id
        self.to_id = to_id
        self.max = max
        super().__init__(
            f"Link ({from_id} -> {to_id}) references a note outside [0, {max}]"
        )

    def details(self) -> Dict[str, Any]:
        return {"from": self.from_id, "to": self.to_id, "max": self.max}


class InvalidVectorDimensions(VaultmapError, ValueError):
    """Vector widths disagree or a requested width is not achievable."""

    kind = "InvalidVectorDimensions"

    def __init__(
        self, expected: int, got: int, vector_index: Optional[int] = None
    ) -> None:
        self.expected = expected
        self.got = got
        self.vector_index = vector_index
        where = f" at vector {vector_index}" if vector_index is not None else ""
        super().__init__(f"Expected dimension {expected}, got {got}{where}")

    def details(self) -> Dict[str, Any]:
        return {
            "expected": self.expected,
            "got": self.got,
            "vector_index": self.vector_index,
        }


class InsufficientData(VaultmapError, ValueError):
    """Fewer vectors or dimensions than the operation requires."""

    kind = "InsufficientData"

    def __init__(self, required: int, provided: int) -> None:
        self.required = required
        self.provided = provided
        super().__init__(f"Insufficient data: required {required}, provided {provided}")

    def details(self) -> Dict[str, Any]:
        return {"required": self.required, "provided": self.provided}


class ZeroNormVector(VaultmapError, ValueError):
    """A vector has (numerically) zero length and cannot be normalized."""

    kind = "ZeroNormVector"

    def __init__(self, index: Optional[int] = None) -> None:
        self.index = index
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"Cannot normalize zero-norm vector{where}")

    def details(self) -> Dict[str, Any]:
        return {"index": self.index}


class DimensionalityReductionError(VaultmapError, RuntimeError):
    """Internal numerical failure during reduction."""

    kind = "DimensionalityReductionError"

    def __init__(self, method: str, reason: str) -> None:
        self.method = method
        self.reason = reason
        super().__init__(f"{method} reduction failed: {reason}")

    def details(self) -> Dict[str, Any]:
        return {"method": self.method, "reason": self.reason}


class SerializationError(VaultmapError, ValueError):
    """Serialized input could not be parsed or output could not be encoded."""

    kind = "SerializationError"

    def __init__(self, context: str, source: str) -> None:
        self.context = context
        self.source = source
        super().__init__(f"Serialization error in {context}: {source}")

    def details(self) -> Dict[str, Any]:
        return {"context": self.context, "source": self.source}


class ValidationError(VaultmapError, ValueError):
    """A setting value was rejected."""

    kind = "ValidationError"

    def __init__(self, field: str, value: str, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Validation failed for field '{field}' with value '{value}': {reason}"
        )

    def details(self) -> Dict[str, Any]:
        return {"field": self.field, "value": self.value, "reason": self.reason}


class UnknownSetting(VaultmapError, KeyError):
    """A setting key is not part of :class:`VisualizationSettings`."""

    kind = "UnknownSetting"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Unknown setting key: '{key}'")

    def __str__(self) -> str:
        return f"Unknown setting key: '{self.key}'"

    def details(self) -> Dict[str, Any]:
        return {"key": self.key}
