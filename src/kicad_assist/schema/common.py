"""Common typed values shared by the parser, executor and hosts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EditorKind(str, Enum):
    """The host editor the assistant is attached to."""

    SCHEMATIC = "schematic"
    BOARD = "board"
    FOOTPRINT = "footprint"
    UNKNOWN = "unknown"

    @property
    def is_board_like(self) -> bool:
        return self in (EditorKind.BOARD, EditorKind.FOOTPRINT)


@dataclass(frozen=True)
class Coordinate:
    """2D integer position in host internal units.

    The command parser treats coordinates as opaque signed integers; only the
    executor and the host know what one unit means.
    """

    x: int
    y: int

    def __str__(self) -> str:
        return f"{self.x},{self.y}"

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class LibraryId:
    """A ``library_nickname:item_name`` pair.

    Equality is case-sensitive. Case-insensitive matching happens during
    resolution, which always stores the nickname spelled as the library
    table spells it.
    """

    library: str
    item: str

    @classmethod
    def parse(cls, text: str) -> LibraryId | None:
        """Split ``lib:item``; None when there is no library part."""
        lib, sep, item = text.partition(":")
        if not sep or not lib or not item:
            return None
        return cls(library=lib, item=item)

    def __str__(self) -> str:
        return f"{self.library}:{self.item}"

    def to_dict(self) -> dict[str, Any]:
        return {"library": self.library, "item": self.item}
