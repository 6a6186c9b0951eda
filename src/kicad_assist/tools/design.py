"""Design tools: open a design and inspect what the assistant sees."""

from __future__ import annotations

from typing import Any

from .registry import register_tool

# ── Handlers ────────────────────────────────────────────────────────


def _open_design_handler(design_path: str) -> dict[str, Any]:
    """Open a KiCad schematic (.kicad_sch) or board (.kicad_pcb) file.

    Args:
        design_path: Path to the design file.
    """
    from .. import state

    host = state.load_design(design_path)
    return {
        "status": "ok",
        "editor_kind": host.editor_kind.value,
        "message": f"Opened {design_path} in the {host.editor_kind.value} editor",
    }


def _get_design_context_handler() -> dict[str, Any]:
    """Snapshot of the open design: placed parts and available libraries."""
    from .. import state
    from ..context import collect_context

    return collect_context(state.get_host(), state.get_settings()).to_dict()


def _list_changes_handler() -> dict[str, Any]:
    """Edits committed to the open design since it was opened."""
    from .. import state

    changes = state.get_host().changes
    return {"count": len(changes), "changes": [c.to_dict() for c in changes]}


# ── Registration ────────────────────────────────────────────────────

register_tool(
    name="open_design",
    description="Open a KiCad schematic (.kicad_sch) or board (.kicad_pcb) for the assistant.",
    handler=_open_design_handler,
    category="design",
)

register_tool(
    name="get_design_context",
    description="Show the editor kind, placed components and available libraries.",
    handler=_get_design_context_handler,
    category="design",
    requires_design=True,
)

register_tool(
    name="list_changes",
    description="List the edits the assistant has committed to the open design.",
    handler=_list_changes_handler,
    category="design",
    requires_design=True,
)
