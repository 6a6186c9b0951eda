"""Tests for action execution against a host."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from kicad_assist.commands import (
    AddComponent,
    AddTrace,
    Connect,
    Help,
    ListComponents,
    ListFootprints,
    ListLibraries,
    ModifyComponent,
    ModifyFootprint,
    Query,
)
from kicad_assist.config import Settings
from kicad_assist.context import collect_context
from kicad_assist.exceptions import (
    LibraryNotFoundError,
    PinNotFoundError,
    ReferenceNotFoundError,
    SymbolNotFoundError,
)
from kicad_assist.executor import ActionExecutor
from kicad_assist.executor.resolve import find_pin, find_reference, pin_candidates, resolve_symbol
from kicad_assist.host.files import BoardFileHost, SchematicFileHost
from kicad_assist.schema import Coordinate, LibraryEntry, LibraryId, LibraryScope


def _executor(host: SchematicFileHost | BoardFileHost, **settings: object) -> ActionExecutor:
    s = Settings(**settings)  # type: ignore[arg-type]
    return ActionExecutor(host, collect_context(host, s), s)


# ── Resolution ──────────────────────────────────────────────────────


class TestResolveSymbol:
    def test_nickname_matched_case_insensitively(self, sch_host: SchematicFileHost) -> None:
        resolved = resolve_symbol(sch_host.symbol_libraries, LibraryId("device", "r"))
        assert resolved == LibraryId("Device", "r")

    def test_bare_name_searches_libraries(self, sch_host: SchematicFileHost) -> None:
        resolved = resolve_symbol(sch_host.symbol_libraries, "lm7805_to220")
        assert resolved == LibraryId("Regulator_Linear", "LM7805_TO220")

    def test_unknown_library(self, sch_host: SchematicFileHost) -> None:
        with pytest.raises(LibraryNotFoundError) as exc:
            resolve_symbol(sch_host.symbol_libraries, LibraryId("Foo", "R"))
        assert exc.value.message == (
            "Library 'Foo' not found. Available libraries: Device,Regulator_Linear"
        )

    def test_unknown_library_list_capped(self) -> None:
        libraries = MagicMock()
        libraries.rows.return_value = [
            LibraryEntry(nickname=f"L{i}", lib_type="KiCad", uri="") for i in range(25)
        ]
        with pytest.raises(LibraryNotFoundError) as exc:
            resolve_symbol(libraries, LibraryId("Foo", "R"))
        assert exc.value.message.endswith("L18,L19,...")
        libraries.rows.assert_called_once_with(LibraryScope.BOTH)

    def test_no_libraries_configured(self) -> None:
        libraries = MagicMock()
        libraries.rows.return_value = []
        with pytest.raises(LibraryNotFoundError, match="No symbol libraries are configured"):
            resolve_symbol(libraries, LibraryId("Device", "R"))

    def test_unknown_bare_name(self, sch_host: SchematicFileHost) -> None:
        with pytest.raises(SymbolNotFoundError, match="Component 'NE555' not found in libraries"):
            resolve_symbol(sch_host.symbol_libraries, "NE555")


class TestFindPin:
    def _instance(self) -> MagicMock:
        inst = MagicMock()
        inst.reference = "U1"
        pins = []
        for name, number in (("VI", "1"), ("GND", "2"), ("VO", "3")):
            pin = MagicMock()
            pin.name, pin.number = name, number
            pins.append(pin)
        inst.pins.return_value = pins
        return inst

    def test_by_name_or_number(self) -> None:
        inst = self._instance()
        assert find_pin(inst, "gnd").number == "2"
        assert find_pin(inst, "3").name == "VO"

    def test_p_prefix_alias(self) -> None:
        assert pin_candidates("P1") == ["p1", "1"]
        assert pin_candidates("P") == ["p"]
        assert find_pin(self._instance(), "P1").name == "VI"

    def test_missing_pin(self) -> None:
        with pytest.raises(PinNotFoundError, match="pin 'VIN' not found on U1"):
            find_pin(self._instance(), "VIN")

    def test_find_reference(self) -> None:
        inst = self._instance()
        assert find_reference([inst], "u1") is inst
        with pytest.raises(ReferenceNotFoundError, match="Reference 'U9' not found"):
            find_reference([inst], "U9")


# ── Executor ────────────────────────────────────────────────────────


class TestPlacement:
    def test_place_bare_symbol_at_default(self, sch_host: SchematicFileHost) -> None:
        result = _executor(sch_host).execute(AddComponent("R"))
        assert result.success
        assert result.message == "Added component 'Device:R' at (100000, 100000)"
        assert [c.operation for c in sch_host.changes] == ["Place Symbol"]
        assert sch_host.canvas.refresh_count == 1

    def test_configured_default_placement(self, sch_host: SchematicFileHost) -> None:
        result = _executor(sch_host, default_x=5, default_y=7).execute(AddComponent("R"))
        assert result.message == "Added component 'Device:R' at (5, 7)"

    def test_symbol_name_case_fallback(self, sch_host: SchematicFileHost) -> None:
        result = _executor(sch_host).execute(AddComponent(LibraryId("device", "r"), Coordinate(10, 20)))
        assert result.success
        assert result.message == "Added component 'Device:R' at (10, 20)"
        [symbol] = sch_host.schematic.reference_list()
        assert str(symbol.lib_id) == "Device:R"

    def test_unknown_library(self, sch_host: SchematicFileHost) -> None:
        result = _executor(sch_host).execute(AddComponent(LibraryId("Foo", "R")))
        assert not result.success
        assert result.error == "Library 'Foo' not found. Available libraries: Device,Regulator_Linear"
        assert sch_host.changes == []

    def test_unknown_symbol_in_known_library(self, sch_host: SchematicFileHost) -> None:
        result = _executor(sch_host).execute(AddComponent(LibraryId("Device", "LED")))
        assert result.error == "Failed to load symbol (tried Device:LED)"

    def test_not_in_schematic_editor(self, board_host: BoardFileHost) -> None:
        result = _executor(board_host).execute(AddComponent("R"))
        assert not result.success
        assert result.error == "Not in schematic editor"

    def test_autoplace_respected(self, sch_host: SchematicFileHost) -> None:
        sch_host.schematic.autoplace_fields = False
        _executor(sch_host).execute(AddComponent(LibraryId("Device", "R"), Coordinate(100_000, 100_000)))
        [symbol] = sch_host.schematic.reference_list()
        ref = next(p for p in symbol.node.find_all("property") if p.first_value == "Reference")
        assert ref.get("at").atom_values == ["10", "10", "0"]


class TestConnect:
    def _placed(self, host: SchematicFileHost) -> ActionExecutor:
        executor = _executor(host)
        executor.execute(AddComponent(LibraryId("Device", "R"), Coordinate(100_000, 100_000)))
        executor.execute(AddComponent(LibraryId("Device", "C"), Coordinate(200_000, 100_000)))
        executor.prepare_connection_pass()
        return executor

    def test_connect_draws_wire(self, sch_host: SchematicFileHost) -> None:
        result = self._placed(sch_host).execute(Connect("R1", "2", "C1", "1"))
        assert result.success
        assert result.message == "Connected R1.2 to C1.1"
        assert sch_host.changes[-1].operation == "Draw Wire"
        wire = sch_host.document.root.get("wire")
        assert [xy.atom_values for xy in wire.find_recursive("xy")] == [["10", "13.81"], ["20", "6.19"]]

    def test_unknown_reference(self, sch_host: SchematicFileHost) -> None:
        result = self._placed(sch_host).execute(Connect("R1", "1", "U9", "1"))
        assert result.error == "Reference 'U9' not found"

    def test_unknown_pin(self, sch_host: SchematicFileHost) -> None:
        result = self._placed(sch_host).execute(Connect("R1", "3", "C1", "1"))
        assert result.error == "pin '3' not found on R1"


class TestBoardActions:
    def test_add_trace(self, board_host: BoardFileHost) -> None:
        result = _executor(board_host).execute(AddTrace(Coordinate(0, 0), Coordinate(1_000_000, 0), 250_000))
        assert result.success
        assert result.message == "Added trace from (0, 0) to (1000000, 0) with width 250000"
        assert board_host.changes[-1].operation == "Add Track"

    def test_add_trace_not_in_board(self, sch_host: SchematicFileHost) -> None:
        result = _executor(sch_host).execute(AddTrace(Coordinate(0, 0), Coordinate(1, 1)))
        assert result.error == "Not in board editor"

    def test_modify_acknowledged(self, sch_host: SchematicFileHost, board_host: BoardFileHost) -> None:
        assert _executor(sch_host).execute(ModifyComponent("R1")).message == "Would modify component 'R1'"
        assert _executor(board_host).execute(ModifyFootprint("R_0603")).message == (
            "Would modify footprint 'R_0603'"
        )
        assert _executor(sch_host).execute(ModifyFootprint("R_0603")).error == "Not in board editor"


class TestQueries:
    def test_help(self, sch_host: SchematicFileHost) -> None:
        result = _executor(sch_host).execute(Help())
        assert result.message.startswith("Available commands:")
        assert "- connect <ref>.<pin> to <ref>.<pin>" in result.message

    def test_list_components_empty(self, sch_host: SchematicFileHost) -> None:
        assert _executor(sch_host).execute(ListComponents()).message == "No components found in current design."

    def test_list_components_board(self, board_host: BoardFileHost) -> None:
        assert _executor(board_host).execute(ListComponents()).message == (
            "Components in current design:\n  - R1 (Resistor_SMD:R_0603_1608Metric)"
        )

    def test_list_libraries(self, sch_host: SchematicFileHost) -> None:
        message = _executor(sch_host).execute(ListLibraries()).message
        assert message.splitlines()[:3] == [
            "Available symbol libraries and components:",
            "  Library: Device",
            "    - R",
        ]

    def test_list_footprints(self, sch_host: SchematicFileHost) -> None:
        message = _executor(sch_host).execute(ListFootprints()).message
        assert "    - R_0805_2012Metric" in message

    def test_query(self, sch_host: SchematicFileHost) -> None:
        message = _executor(sch_host).execute(Query("lm78")).message
        assert message == "Search results for 'lm78':\n  Component: Regulator_Linear:LM7805_TO220"

    def test_query_no_match(self, sch_host: SchematicFileHost) -> None:
        message = _executor(sch_host).execute(Query("NE555")).message
        assert message.endswith("No matches found.")


class TestHostFailures:
    def test_unexpected_error_reported(self, sch_host: SchematicFileHost) -> None:
        executor = _executor(sch_host)
        sch_host.schematic.create_symbol = MagicMock(side_effect=RuntimeError("screen locked"))  # type: ignore[method-assign]
        result = executor.execute(AddComponent(LibraryId("Device", "R")))
        assert not result.success
        assert result.error == "Host edit failed: screen locked"
