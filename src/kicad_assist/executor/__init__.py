"""Action executor."""

from .dispatcher import ActionExecutor

__all__ = ["ActionExecutor"]
