"""Schematic edits: symbol placement, connections and wires."""

from __future__ import annotations

from ..commands.actions import AddComponent, Connect
from ..config import Settings
from ..constants import DRAW_WIRE_LABEL, PLACE_SYMBOL_LABEL
from ..host.base import HostHandle, Schematic
from ..logging_config import create_logger
from ..schema.common import Coordinate, LibraryId
from ..schema.results import CommandResult
from .resolve import find_pin, find_reference, load_symbol, resolve_symbol

logger = create_logger(__name__)


def _schematic(host: HostHandle) -> Schematic:
    assert host.schematic is not None
    return host.schematic


def place_symbol(host: HostHandle, action: AddComponent, settings: Settings) -> CommandResult:
    """Resolve, load and place one symbol, committed as a single edit."""
    sch = _schematic(host)
    resolved = resolve_symbol(host.symbol_libraries, action.symbol)
    lib_symbol = load_symbol(host.symbol_libraries, resolved)
    lib_id = LibraryId(resolved.library, lib_symbol.name)
    position = action.at or Coordinate(*settings.default_placement)

    item = sch.create_symbol(lib_symbol, lib_id, sch.current_sheet(), position)
    item.mark_new()
    if sch.autoplace_fields:
        item.autoplace()
    sch.screen().add(item)

    commit = host.new_commit()
    commit.added(item)
    commit.push(PLACE_SYMBOL_LABEL)
    host.canvas.refresh()

    logger.info(f"Placed {lib_id} at {position}")
    return CommandResult.ok(f"Added component '{lib_id}' at ({position.x}, {position.y})")


def draw_wire(host: HostHandle, start: Coordinate, end: Coordinate) -> None:
    """Add one wire segment. Junctions and overlap trimming are left to the host."""
    sch = _schematic(host)
    wire = sch.create_wire(start, end)
    wire.mark_new()
    sch.screen().add(wire)

    commit = host.new_commit()
    commit.added(wire)
    commit.push(DRAW_WIRE_LABEL)
    host.canvas.refresh()


def connect(host: HostHandle, action: Connect) -> CommandResult:
    """Wire two pins together, resolving references and pins first."""
    instances = _schematic(host).reference_list()
    first = find_reference(instances, action.ref1)
    second = find_reference(instances, action.ref2)
    pin_a = find_pin(first, action.pin1)
    pin_b = find_pin(second, action.pin2)

    draw_wire(host, pin_a.position(), pin_b.position())
    return CommandResult.ok(
        f"Connected {first.reference}.{action.pin1} to {second.reference}.{action.pin2}"
    )


def prepare_connection_pass(host: HostHandle) -> None:
    """Mark the design modified so new symbols get references before wiring."""
    if host.schematic is not None:
        host.schematic.mark_modified()
