"""Outcome of a permission check, consumed by the command dispatcher."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ResultType(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    FAILURE = "failure"


_GLYPHS = {
    ResultType.SUCCESS: ":ok:",
    ResultType.WARNING: ":warning:",
    ResultType.FAILURE: ":x:",
}


@dataclass(frozen=True)
class AuthorizationResult:
    """Tri-state result with a human readable reason.

    Instances are immutable; build them through ``success``, ``warning`` or
    ``failure`` rather than the constructor.
    """
    type: ResultType
    reason: str

    def __post_init__(self):
        if not isinstance(self.reason, str):
            raise TypeError("reason must be a string")

    @classmethod
    def success(cls, reason: str) -> "AuthorizationResult":
        return cls(ResultType.SUCCESS, reason)

    @classmethod
    def warning(cls, reason: str) -> "AuthorizationResult":
        return cls(ResultType.WARNING, reason)

    @classmethod
    def failure(cls, reason: str) -> "AuthorizationResult":
        return cls(ResultType.FAILURE, reason)

    @property
    def is_success(self) -> bool:
        return self.type is ResultType.SUCCESS

    @property
    def is_warning(self) -> bool:
        return self.type is ResultType.WARNING

    @property
    def is_failure(self) -> bool:
        return self.type is ResultType.FAILURE

    def render(self) -> Optional[str]:
        glyph = _GLYPHS.get(self.type)
        if glyph is None:
            return None
        return f"{glyph} {self.reason}"

    def __str__(self) -> str:
        return self.render() or ""


__all__ = ["AuthorizationResult", "ResultType"]
