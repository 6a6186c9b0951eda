"""Typed data models for the assistant pipeline."""

from .common import Coordinate, EditorKind, LibraryId
from .context import ContextSnapshot
from .library import LibPin, LibraryEntry, LibraryScope, LibSymbol
from .results import CommandResult, GeneratorResponse

__all__ = [
    "CommandResult",
    "ContextSnapshot",
    "Coordinate",
    "EditorKind",
    "GeneratorResponse",
    "LibPin",
    "LibSymbol",
    "LibraryEntry",
    "LibraryId",
    "LibraryScope",
]
