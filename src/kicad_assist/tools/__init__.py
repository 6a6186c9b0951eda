"""kicad-assist MCP tools."""

# Import modules to trigger tool registration via register_tool() calls
from . import assistant, design, generator  # noqa: F401
from .registry import TOOL_REGISTRY, register_tool

__all__ = ["TOOL_REGISTRY", "register_tool"]
