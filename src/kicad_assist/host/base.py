"""Interfaces the assistant consumes from a host EDA application.

The executor only talks to these protocols. A host handle carries its editor
kind explicitly together with whichever capability set applies: a schematic
for the schematic editor, a board for the board and footprint editors.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from ..schema.common import Coordinate, EditorKind, LibraryId
from ..schema.library import LibraryEntry, LibraryScope, LibSymbol


class HostItem(Protocol):
    def mark_new(self) -> None:
        """Flag the item as newly inserted so the host treats it as fresh."""
        ...


class PinView(Protocol):
    """A pin of a placed symbol as shown in the editor."""

    name: str
    number: str

    def position(self) -> Coordinate:
        """World position of the pin's connection point."""
        ...


class SymbolInstance(HostItem, Protocol):
    reference: str
    lib_id: LibraryId

    def pins(self) -> Sequence[PinView]: ...

    def autoplace(self) -> None:
        """Lay out the reference and value fields around the body."""
        ...


class Screen(Protocol):
    def add(self, item: HostItem) -> None: ...


class Commit(Protocol):
    def added(self, item: HostItem) -> None: ...

    def push(self, label: str) -> None: ...


class Canvas(Protocol):
    def refresh(self) -> None: ...


class Schematic(Protocol):
    autoplace_fields: bool

    def current_sheet(self) -> Any: ...

    def reference_list(self) -> Sequence[SymbolInstance]: ...

    def screen(self) -> Screen: ...

    def create_symbol(
        self, lib_symbol: LibSymbol, lib_id: LibraryId, sheet: Any, position: Coordinate
    ) -> SymbolInstance: ...

    def create_wire(self, start: Coordinate, end: Coordinate) -> HostItem: ...

    def mark_modified(self) -> None:
        """Flag the design modified so the host re-annotates new symbols."""
        ...


class FootprintView(Protocol):
    reference: str
    footprint: str


class Board(Protocol):
    def footprints(self) -> Sequence[FootprintView]: ...

    def file_name(self) -> str: ...

    def add_track(self, start: Coordinate, end: Coordinate, width: float | None) -> HostItem: ...


class SymbolLibraries(Protocol):
    def rows(self, scope: LibraryScope = LibraryScope.BOTH) -> list[LibraryEntry]: ...

    def symbol_names(self, nickname: str) -> list[str]: ...

    def load_symbol(self, nickname: str, name: str) -> LibSymbol | None: ...


class FootprintLibraries(Protocol):
    def rows(self, scope: LibraryScope = LibraryScope.BOTH) -> list[LibraryEntry]: ...

    def footprint_names(self, nickname: str) -> list[str]: ...


class HostHandle(Protocol):
    """Everything the pipeline needs from one editor frame."""

    editor_kind: EditorKind
    file_path: str | None
    project_path: str | None
    schematic: Schematic | None
    board: Board | None
    symbol_libraries: SymbolLibraries
    footprint_libraries: FootprintLibraries
    canvas: Canvas

    def new_commit(self) -> Commit: ...
