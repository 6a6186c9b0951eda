"""System prompt sent to the generator with every request.

The prompt spells out the command grammar so that the reply is easy to mine,
and lists what is placed and what is available so the generator picks real
library entries. Every list is capped to keep the prompt size bounded.
"""

from __future__ import annotations

from ..constants import MAX_PROMPT_ENTRIES
from ..schema.context import ContextSnapshot

ROLE = (
    "You are an AI assistant for the KiCad EDA application. "
    "You help users with electronic design tasks including schematic design, "
    "PCB layout, and footprint creation."
)

COMMAND_SECTION = """\
IMPORTANT: When asked to create or build circuits, respond with EXECUTABLE COMMANDS, one per line.
Use only these forms:
- add component <library>:<symbol> at <x>,<y>
- connect <ref>.<pin> to <ref>.<pin>
- add trace from <x1>,<y1> to <x2>,<y2> width <w>   (board editor only)
Coordinates are integers in internal units. Place every component before connecting it;
new components are numbered in placement order (the first resistor becomes R1).
Use the available libraries listed above.

Example for 'create a 5V voltage regulator':
1. add component Regulator_Linear:LM7805_TO220 at 100000,100000
2. add component Device:C at 50000,100000
3. add component Device:C at 150000,100000
4. connect U1.VI to C1.1
5. connect U1.VO to C2.1
6. connect U1.GND to C1.2
7. connect U1.GND to C2.2"""


def _capped(title: str, items: list[str], cap: int, noun: str) -> list[str]:
    if not items:
        return []
    lines = ["", title]
    lines.extend(f"  - {item}" for item in items[:cap])
    if len(items) > cap:
        lines.append(f"  ... and {len(items) - cap} more {noun}")
    return lines


def describe_context(context: ContextSnapshot) -> str:
    """One line naming the editor and, when present, the file and project."""
    parts = [f"Current context: {context.editor_kind.value} editor."]
    if context.file_path:
        parts.append(f"Working on file: {context.file_path}.")
    if context.project_path:
        parts.append(f"Project path: {context.project_path}.")
    return " ".join(parts)


def build_system_prompt(context: ContextSnapshot, cap_components: int = MAX_PROMPT_ENTRIES) -> str:
    """Build the generator system prompt for ``context``.

    Args:
        context: Snapshot of the design taken for this request.
        cap_components: Entries listed per section; never more than 100.
    """
    cap = max(0, min(cap_components, MAX_PROMPT_ENTRIES))
    lines = [ROLE, describe_context(context)]

    lines += _capped(
        "Components placed in the current design:",
        [f"{ref} ({name})" for ref, name in context.present_refs],
        cap,
        "components",
    )
    lines += _capped(
        "Footprints placed on the current board:",
        [f"{ref} ({name})" for ref, name in context.present_footprints],
        cap,
        "footprints",
    )
    lines += _capped(
        "Available symbols (library:symbol):",
        context.component_entries(),
        cap,
        "symbols",
    )
    lines += _capped(
        "Available footprints (library:footprint):",
        context.footprint_entries(),
        cap,
        "footprints",
    )

    lines += ["", COMMAND_SECTION]
    return "\n".join(lines)
