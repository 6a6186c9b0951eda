"""Result values returned across the pipeline boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CommandResult:
    """Outcome of executing one action, or of a whole pipeline run."""

    success: bool
    message: str = ""
    error: str = ""
    cancelled: bool = False

    @classmethod
    def ok(cls, message: str, cancelled: bool = False) -> CommandResult:
        return cls(success=True, message=message, cancelled=cancelled)

    @classmethod
    def fail(cls, error: str, message: str = "") -> CommandResult:
        return cls(success=False, message=message, error=error)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.error:
            d["error"] = self.error
        if self.cancelled:
            d["cancelled"] = True
        return d


@dataclass(frozen=True)
class GeneratorResponse:
    """Outcome of one generator call.

    ``complete`` is False when a streamed response was cut short, either by
    cancellation or by the stream ending without a ``done`` marker.
    """

    success: bool
    text: str = ""
    error: str = ""
    complete: bool = True
    error_code: str | None = None
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "success": self.success,
            "text": self.text,
            "complete": self.complete,
        }
        if self.error:
            d["error"] = self.error
        if self.error_code:
            d["error_code"] = self.error_code
        if self.cancelled:
            d["cancelled"] = True
        return d
