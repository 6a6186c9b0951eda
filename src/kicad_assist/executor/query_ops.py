"""Read-only commands answered from the context snapshot."""

from __future__ import annotations

from collections.abc import Mapping

from ..constants import LIST_PREVIEW_ITEMS
from ..schema.context import ContextSnapshot
from ..schema.results import CommandResult

HELP_TEXT = """\
Available commands:
- add component <library>:<symbol> [at <x>,<y>]
- add component <symbol> [at <x>,<y>]
- connect <ref>.<pin> to <ref>.<pin>
- add trace from <x1>,<y1> to <x2>,<y2> [width <w>]
- modify component <refdes>
- modify footprint <name>
- list components - Show components in current design
- list libraries - Show available symbol libraries
- list footprints - Show available footprint libraries
- query <term> - Search for specific parts"""


def help_text() -> CommandResult:
    return CommandResult.ok(HELP_TEXT)


def list_components(context: ContextSnapshot) -> CommandResult:
    placed = [*context.present_refs, *context.present_footprints]
    if not placed:
        return CommandResult.ok("No components found in current design.")
    lines = ["Components in current design:"]
    lines += [f"  - {ref} ({name})" if name else f"  - {ref}" for ref, name in placed]
    return CommandResult.ok("\n".join(lines))


def _list_libraries(libs: Mapping[str, tuple[str, ...]], title: str, noun: str) -> str:
    if not libs:
        return f"No {noun} libraries available."
    lines = [title]
    for nickname, items in libs.items():
        lines.append(f"  Library: {nickname}")
        lines += [f"    - {item}" for item in items[:LIST_PREVIEW_ITEMS]]
        if len(items) > LIST_PREVIEW_ITEMS:
            lines.append(f"    ... (more {noun}s available)")
    return "\n".join(lines)


def list_libraries(context: ContextSnapshot) -> CommandResult:
    return CommandResult.ok(
        _list_libraries(context.symbol_libs, "Available symbol libraries and components:", "symbol")
    )


def list_footprints(context: ContextSnapshot) -> CommandResult:
    return CommandResult.ok(
        _list_libraries(
            context.footprint_libs, "Available footprint libraries and footprints:", "footprint"
        )
    )


def query(context: ContextSnapshot, term: str) -> CommandResult:
    """Case-insensitive substring search over library components and footprints."""
    needle = term.lower()
    lines = [f"Search results for '{term}':"]
    lines += [f"  Component: {e}" for e in context.component_entries() if needle in e.lower()]
    lines += [f"  Footprint: {e}" for e in context.footprint_entries() if needle in e.lower()]
    if len(lines) == 1:
        lines.append("No matches found.")
    return CommandResult.ok("\n".join(lines))
