"""Typed data models for library tables and loaded library symbols."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..sexp import SExp


class LibraryScope(str, Enum):
    """Which library table(s) to read."""

    GLOBAL = "global"
    PROJECT = "project"
    BOTH = "both"


@dataclass(frozen=True)
class LibraryEntry:
    """A row in a sym-lib-table or fp-lib-table."""

    nickname: str
    lib_type: str  # "KiCad", "Legacy", etc.
    uri: str
    description: str = ""
    scope: LibraryScope = LibraryScope.GLOBAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "nickname": self.nickname,
            "type": self.lib_type,
            "uri": self.uri,
            "description": self.description,
            "scope": self.scope.value,
        }


@dataclass(frozen=True)
class LibPin:
    """A pin of a library symbol, in symbol-local millimetres (Y up)."""

    name: str
    number: str
    x: float
    y: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "number": self.number, "x": self.x, "y": self.y}


@dataclass(frozen=True)
class LibSymbol:
    """A symbol loaded from a ``.kicad_sym`` library."""

    library: str
    name: str
    reference_prefix: str
    pins: tuple[LibPin, ...] = ()
    node: SExp | None = field(default=None, compare=False, repr=False)

    @property
    def full_id(self) -> str:
        return f"{self.library}:{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "library": self.library,
            "name": self.name,
            "full_id": self.full_id,
            "reference_prefix": self.reference_prefix,
            "pins": [p.to_dict() for p in self.pins],
        }
