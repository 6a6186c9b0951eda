"""Structured design actions produced by the command parser.

Every action knows its canonical command text (``to_command``) and which
execution pass it belongs to (``pass_key``). The pass is a property of the
action type, never of the text it was parsed from.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum
from typing import Any, ClassVar, Union

from ..schema.common import Coordinate, LibraryId


class PassKey(IntEnum):
    """Execution pass; lower values run first."""

    PLACEMENT = 1
    CONNECTION = 2
    OTHER = 3


def format_number(value: float) -> str:
    """Plain decimal text, never exponent notation."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return format(Decimal(repr(number)), "f")


@dataclass(frozen=True)
class AddComponent:
    symbol: LibraryId | str
    at: Coordinate | None = None

    pass_key: ClassVar[PassKey] = PassKey.PLACEMENT

    @property
    def symbol_text(self) -> str:
        return str(self.symbol)

    def to_command(self) -> str:
        cmd = f"add component {self.symbol}"
        if self.at is not None:
            cmd += f" at {self.at}"
        return cmd

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "add_component",
            "symbol": str(self.symbol),
            "at": self.at.to_dict() if self.at else None,
        }


@dataclass(frozen=True)
class Connect:
    ref1: str
    pin1: str
    ref2: str
    pin2: str

    pass_key: ClassVar[PassKey] = PassKey.CONNECTION

    def to_command(self) -> str:
        return f"connect {self.ref1}.{self.pin1} to {self.ref2}.{self.pin2}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "connect",
            "from": {"reference": self.ref1, "pin": self.pin1},
            "to": {"reference": self.ref2, "pin": self.pin2},
        }


@dataclass(frozen=True)
class AddTrace:
    """A board track between two points; width in host units, None for the host default."""

    start: Coordinate
    end: Coordinate
    width: float | None = None

    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        cmd = f"add trace from {self.start} to {self.end}"
        if self.width is not None:
            cmd += f" width {format_number(self.width)}"
        return cmd

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "add_trace",
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "width": self.width,
        }


@dataclass(frozen=True)
class ModifyComponent:
    refdes: str

    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        return f"modify component {self.refdes}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "modify_component", "refdes": self.refdes}


@dataclass(frozen=True)
class ModifyFootprint:
    name: str

    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        return f"modify footprint {self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "modify_footprint", "name": self.name}


@dataclass(frozen=True)
class Help:
    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        return "help"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "help"}


@dataclass(frozen=True)
class ListComponents:
    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        return "list components"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "list_components"}


@dataclass(frozen=True)
class ListLibraries:
    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        return "list libraries"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "list_libraries"}


@dataclass(frozen=True)
class ListFootprints:
    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        return "list footprints"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "list_footprints"}


@dataclass(frozen=True)
class Query:
    term: str

    pass_key: ClassVar[PassKey] = PassKey.OTHER

    def to_command(self) -> str:
        return f"query {self.term}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "query", "term": self.term}


Action = Union[
    AddComponent,
    Connect,
    AddTrace,
    ModifyComponent,
    ModifyFootprint,
    Help,
    ListComponents,
    ListLibraries,
    ListFootprints,
    Query,
]
