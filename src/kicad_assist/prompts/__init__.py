"""Generator system prompt and MCP prompt templates."""

from .system_prompt import build_system_prompt, describe_context
from .templates import register_prompts

__all__ = ["build_system_prompt", "describe_context", "register_prompts"]
