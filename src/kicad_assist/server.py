"""kicad-assist MCP server entry point."""

from __future__ import annotations

from fastmcp import FastMCP

from .logging_config import create_logger, setup_logging
from .prompts import register_prompts
from .tools import TOOL_REGISTRY
from .tools.registry import tools_by_category

logger = create_logger(__name__)

_NEEDS_DESIGN = " Requires a design opened with open_design."


def create_server() -> FastMCP:
    """Create the MCP server with every registered tool and the assistant prompt."""
    mcp = FastMCP("kicad-assist")

    for spec in TOOL_REGISTRY.values():
        description = spec.description + (_NEEDS_DESIGN if spec.requires_design else "")
        mcp.tool(spec.handler, name=spec.name, description=description)

    register_prompts(mcp)

    for category, names in tools_by_category().items():
        logger.debug(f"Registered {category} tools: {', '.join(names)}")
    return mcp


def main() -> None:
    """CLI entry point."""
    setup_logging()
    server = create_server()
    server.run()


if __name__ == "__main__":
    main()
