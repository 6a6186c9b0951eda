"""Exception hierarchy for the assistant pipeline.

Each error kind carries a stable ``error_code`` so that results crossing the
pipeline boundary (command results, generator responses, MCP tool payloads)
can be classified without string matching.
"""

from __future__ import annotations

from typing import Any


class AssistError(Exception):
    """Base exception for all kicad-assist errors."""

    error_code: str = ""

    def __init__(self, message: str, error_code: str | None = None, **kwargs: Any):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.error_code or self.__class__.__name__
        self.__dict__.update(kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a serializable dict."""
        result: dict[str, Any] = {
            "error": True,
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
        }
        result.update(
            {k: v for k, v in self.__dict__.items() if k not in ["message", "error_code"]}
        )
        return result


class ConfigError(AssistError):
    """Raised when a configuration key or value is invalid."""

    error_code = "CONFIG_ERROR"

    def __init__(self, message: str, key: str | None = None, **kwargs: Any):
        super().__init__(message, "CONFIG_ERROR", key=key, **kwargs)


class NotInExpectedEditorError(AssistError):
    """Raised when an action targets an editor other than the active one."""

    error_code = "NOT_IN_EXPECTED_EDITOR"

    def __init__(self, message: str, editor_kind: str | None = None, **kwargs: Any):
        super().__init__(message, "NOT_IN_EXPECTED_EDITOR", editor_kind=editor_kind, **kwargs)


class ParseFailedError(AssistError):
    """Raised when a command line does not match the command grammar."""

    error_code = "PARSE_FAILED"

    def __init__(self, message: str, position: int | None = None, **kwargs: Any):
        super().__init__(message, "PARSE_FAILED", position=position, **kwargs)


class LibraryNotFoundError(AssistError):
    """Raised when a library nickname is not present in the library tables."""

    error_code = "LIBRARY_NOT_FOUND"

    def __init__(self, message: str, library: str | None = None, **kwargs: Any):
        super().__init__(message, "LIBRARY_NOT_FOUND", library=library, **kwargs)


class SymbolNotFoundError(AssistError):
    """Raised when a symbol cannot be found or loaded from the libraries."""

    error_code = "SYMBOL_NOT_FOUND"

    def __init__(self, message: str, symbol: str | None = None, **kwargs: Any):
        super().__init__(message, "SYMBOL_NOT_FOUND", symbol=symbol, **kwargs)


class ReferenceNotFoundError(AssistError):
    """Raised when a reference designator is not present in the design."""

    error_code = "REFERENCE_NOT_FOUND"

    def __init__(self, message: str, reference: str | None = None, **kwargs: Any):
        super().__init__(message, "REFERENCE_NOT_FOUND", reference=reference, **kwargs)


class PinNotFoundError(AssistError):
    """Raised when a pin name or number does not exist on a symbol."""

    error_code = "PIN_NOT_FOUND"

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        pin: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, "PIN_NOT_FOUND", reference=reference, pin=pin, **kwargs)


class HostEditFailedError(AssistError):
    """Raised when the host rejects or fails an edit."""

    error_code = "HOST_EDIT_FAILED"

    def __init__(self, message: str, label: str | None = None, **kwargs: Any):
        super().__init__(message, "HOST_EDIT_FAILED", label=label, **kwargs)


class GeneratorUnavailableError(AssistError):
    """Raised when the generator service cannot be reached."""

    error_code = "GENERATOR_UNAVAILABLE"

    def __init__(self, message: str, base_url: str | None = None, **kwargs: Any):
        super().__init__(message, self.error_code, base_url=base_url, **kwargs)


class GeneratorTimeoutError(GeneratorUnavailableError):
    """Raised when a generator request exceeds the configured timeout."""

    error_code = "TIMEOUT"


class GeneratorProtocolError(AssistError):
    """Raised when the generator returns a body that cannot be understood."""

    error_code = "GENERATOR_PROTOCOL"

    def __init__(self, message: str, body: str | None = None, **kwargs: Any):
        super().__init__(message, "GENERATOR_PROTOCOL", body=body, **kwargs)


class CancelledError(AssistError):
    """Raised when a pipeline run is cancelled through its cancel token."""

    error_code = "CANCELLED"

    def __init__(self, message: str = "Request cancelled.", **kwargs: Any):
        super().__init__(message, "CANCELLED", **kwargs)


__all__ = [
    "AssistError",
    "CancelledError",
    "ConfigError",
    "GeneratorProtocolError",
    "GeneratorTimeoutError",
    "GeneratorUnavailableError",
    "HostEditFailedError",
    "LibraryNotFoundError",
    "NotInExpectedEditorError",
    "ParseFailedError",
    "PinNotFoundError",
    "ReferenceNotFoundError",
    "SymbolNotFoundError",
]
