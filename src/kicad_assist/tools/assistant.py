"""Assistant tools: run requests, commands and generated responses."""

from __future__ import annotations

from typing import Any

from .registry import register_tool


def _assist_handler(prompt: str) -> dict[str, Any]:
    """Ask the assistant to carry out a request on the open design.

    Args:
        prompt: Free-form request, e.g. "add a 10k pull-up on the reset line".
    """
    from .. import state

    return state.get_pipeline().run(prompt).to_dict()


def _execute_command_handler(command: str) -> dict[str, Any]:
    """Execute one structured command without calling the generator.

    Args:
        command: e.g. "add component Device:R at 100000,100000".
    """
    from .. import state

    return state.get_pipeline().execute_command(command).to_dict()


def _execute_response_handler(text: str) -> dict[str, Any]:
    """Mine commands from generated text and execute them in two passes.

    Args:
        text: Text containing command lines, e.g. a previous generator reply.
    """
    from .. import state

    return state.get_pipeline().execute_response(text).to_dict()


register_tool(
    name="assist",
    description=(
        "Turn a natural-language request into schematic or board edits "
        "using the configured generator."
    ),
    handler=_assist_handler,
    category="assistant",
    requires_design=True,
)

register_tool(
    name="execute_command",
    description="Execute a single assistant command (add component, connect, add trace, ...).",
    handler=_execute_command_handler,
    category="assistant",
    requires_design=True,
)

register_tool(
    name="execute_response",
    description="Extract commands from text and execute placements before connections.",
    handler=_execute_response_handler,
    category="assistant",
    requires_design=True,
)
