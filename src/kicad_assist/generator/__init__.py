"""Generator client and cancellation."""

from .cancel import CancelToken
from .ollama import OllamaClient

__all__ = ["CancelToken", "OllamaClient"]
