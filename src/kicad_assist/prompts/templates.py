"""MCP prompt templates."""

from __future__ import annotations

from fastmcp import FastMCP


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates with the MCP server."""

    @mcp.prompt()
    def design_assistant() -> str:
        """The system prompt the assistant uses for the open design.

        Lets a client-side model produce commands that execute_response
        can run directly.
        """
        from .. import state
        from ..context import collect_context
        from .system_prompt import build_system_prompt

        if not state.is_loaded():
            return (
                "No design is currently open. Use the open_design tool to load a "
                ".kicad_sch or .kicad_pcb file first."
            )
        settings = state.get_settings()
        context = collect_context(state.get_host(), settings)
        return build_system_prompt(context, settings.cap_components)
