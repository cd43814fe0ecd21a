"""Error taxonomy shared by the registry and the HTTP surface."""
from __future__ import annotations

from typing import Any, Dict, Optional


class SynthError(Exception):
    """Base exception for user-facing errors.

    Every subclass maps to a plain-text HTTP response with `status_code`.
    """

    status_code = 400
    default_detail = "Bad request"

    def __init__(self, detail: Optional[str] = None, *, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail
        self.extra = extra or {}


class InvalidPath(SynthError):
    default_detail = "Invalid data path"


class NotFound(SynthError):
    default_detail = "No such metric"


class UnknownType(NotFound):
    def __init__(self, numeric_type: str) -> None:
        super().__init__(f"Unknown numeric type: {numeric_type!r}", extra={"type": numeric_type})


class UnknownAlgorithm(NotFound):
    def __init__(self, numeric_type: str, algorithm: str) -> None:
        super().__init__(
            f"Unknown algorithm {algorithm!r} for type {numeric_type!r}",
            extra={"type": numeric_type, "algorithm": algorithm},
        )


class InvalidParameter(SynthError):
    default_detail = "Invalid parameter"


class ConfigParseError(ValueError):
    """Raised by value parsers; ConfigSource recovers with the default."""

    def __init__(self, name: str, raw: str, reason: str) -> None:
        super().__init__(f"{name}={raw!r}: {reason}")
        self.name = name
        self.raw = raw
        self.reason = reason
