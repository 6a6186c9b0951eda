"""Process-wide state for the MCP server.

Holds the settings, the generator client and the currently opened design.
All reads and writes go through a module-level lock.
"""

from __future__ import annotations

import threading

from .config import Settings, load_settings
from .generator.ollama import OllamaClient
from .host.files import BoardFileHost, SchematicFileHost, open_design
from .logging_config import create_logger
from .pipeline import AssistantPipeline

logger = create_logger(__name__)

_lock = threading.Lock()
_settings: Settings | None = None
_client: OllamaClient | None = None
_host: SchematicFileHost | BoardFileHost | None = None


def get_settings() -> Settings:
    global _settings
    with _lock:
        if _settings is None:
            _settings = load_settings()
        return _settings


def configure(settings: Settings, client: OllamaClient | None = None) -> None:
    """Replace the settings, and the generator client built from them."""
    global _settings, _client
    with _lock:
        if _client is not None:
            _client.close()
        _settings = settings
        _client = client


def get_client() -> OllamaClient:
    global _client
    settings = get_settings()
    with _lock:
        if _client is None:
            _client = OllamaClient.from_settings(settings)
        return _client


def load_design(path: str) -> SchematicFileHost | BoardFileHost:
    """Open a design file and make it the current host."""
    global _host
    # Do I/O outside the lock
    host = open_design(path)
    with _lock:
        _host = host
    return host


def get_host() -> SchematicFileHost | BoardFileHost:
    """Get the current host, or raise."""
    with _lock:
        if _host is None:
            raise RuntimeError("No design loaded. Use open_design first.")
        return _host


def is_loaded() -> bool:
    with _lock:
        return _host is not None


def get_pipeline() -> AssistantPipeline:
    return AssistantPipeline(get_host(), get_client(), get_settings())


def reset() -> None:
    """Drop the host and client; settings are reloaded on next use."""
    global _settings, _client, _host
    with _lock:
        if _client is not None:
            _client.close()
        _settings = None
        _client = None
        _host = None
