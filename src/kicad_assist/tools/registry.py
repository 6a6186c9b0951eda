"""Registry of the MCP tools exposed by the assistant server.

Tool modules call :func:`register_tool` at import time; the server walks
the registry once when it is created.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    handler: Callable[..., Any]
    category: str = "general"
    requires_design: bool = False  # handler raises until open_design has run


TOOL_REGISTRY: dict[str, ToolSpec] = {}


def register_tool(
    name: str,
    description: str,
    handler: Callable[..., Any],
    *,
    category: str = "general",
    requires_design: bool = False,
) -> ToolSpec:
    """Add a tool to the registry. Names are unique."""
    if name in TOOL_REGISTRY:
        raise ValueError(f"Tool '{name}' is already registered")
    spec = ToolSpec(
        name=name,
        description=description,
        handler=handler,
        category=category,
        requires_design=requires_design,
    )
    TOOL_REGISTRY[name] = spec
    return spec


def tools_by_category() -> dict[str, list[str]]:
    """Tool names grouped by category, in registration order."""
    grouped: dict[str, list[str]] = {}
    for spec in TOOL_REGISTRY.values():
        grouped.setdefault(spec.category, []).append(spec.name)
    return grouped
