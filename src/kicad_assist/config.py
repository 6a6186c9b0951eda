"""Runtime configuration.

Settings are addressed by dotted keys (``generator.base_url``). They can come
from a JSON file and from environment variables; the environment wins. The
JSON file may be flat (``{"generator.model": "llama3"}``) or nested
(``{"generator": {"model": "llama3"}}``).

Environment variables use the ``KICAD_ASSIST_`` prefix with dots replaced by
underscores, e.g. ``KICAD_ASSIST_GENERATOR_TIMEOUT_S=30``.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_PLACEMENT,
    DEFAULT_TIMEOUT_S,
    MAX_ITEMS_PER_LIBRARY,
    MAX_LIBRARIES,
    MAX_PROMPT_ENTRIES,
)
from .exceptions import ConfigError
from .logging_config import create_logger

logger = create_logger(__name__)

ENV_PREFIX = "KICAD_ASSIST_"
CONFIG_PATH_ENV = "KICAD_ASSIST_CONFIG"

# Dotted key -> Settings field name
_KEY_FIELDS: dict[str, str] = {
    "generator.base_url": "base_url",
    "generator.model": "model",
    "generator.timeout_s": "timeout_s",
    "generator.max_retries": "max_retries",
    "context.cap_components": "cap_components",
    "context.include_file_paths": "include_file_paths",
    "context.max_libraries": "max_libraries",
    "context.max_items_per_library": "max_items_per_library",
    "executor.default_x": "default_x",
    "executor.default_y": "default_y",
    "history.save": "history_save",
    "history.path": "history_path",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Immutable assistant configuration."""

    base_url: str = DEFAULT_BASE_URL
    model: str | None = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_retries: int = 3  # reserved
    cap_components: int = MAX_PROMPT_ENTRIES
    include_file_paths: bool = True
    max_libraries: int = MAX_LIBRARIES
    max_items_per_library: int = MAX_ITEMS_PER_LIBRARY
    default_x: int = DEFAULT_PLACEMENT[0]
    default_y: int = DEFAULT_PLACEMENT[1]
    history_save: bool = True
    history_path: str = str(Path.home() / ".kicad" / "ai_chat_history.json")

    @property
    def default_placement(self) -> tuple[int, int]:
        return (self.default_x, self.default_y)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], base: Settings | None = None) -> Settings:
        """Build settings from dotted keys, starting from ``base`` (or defaults).

        Raises:
            ConfigError: On an unknown key or a value of the wrong type.
        """
        base = base or cls()
        updates: dict[str, Any] = {}
        for key, raw in _flatten(values).items():
            field_name = _KEY_FIELDS.get(key)
            if field_name is None:
                raise ConfigError(f"Unknown configuration key: {key!r}", key=key)
            updates[field_name] = _coerce(key, field_name, raw)
        return replace(base, **updates)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, base: Settings | None = None) -> Settings:
        """Overlay ``KICAD_ASSIST_*`` environment variables onto ``base``."""
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for key in _KEY_FIELDS:
            var = ENV_PREFIX + key.upper().replace(".", "_")
            if var in env and env[var] != "":
                values[key] = env[var]
        return cls.from_mapping(values, base=base)

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, name) for key, name in _KEY_FIELDS.items()}


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from an optional JSON file, then the environment.

    Args:
        path: JSON config file. Defaults to ``$KICAD_ASSIST_CONFIG`` if set.
        environ: Environment mapping, ``os.environ`` when omitted.
    """
    env = os.environ if environ is None else environ
    if path is None:
        path = env.get(CONFIG_PATH_ENV) or None

    settings = Settings()
    if path is not None:
        cfg_path = Path(path)
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigError(f"Config file not found: {cfg_path}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {cfg_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {cfg_path} must contain a JSON object")
        settings = Settings.from_mapping(data, base=settings)
        logger.debug(f"Loaded settings from {cfg_path}")

    return Settings.from_env(env, base=settings)


def _flatten(values: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in values.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(_flatten(value, dotted))
        else:
            flat[dotted] = value
    return flat


def _coerce(key: str, field_name: str, raw: Any) -> Any:
    """Convert a raw config value to the type of the target field."""
    target = {f.name: f.type for f in fields(Settings)}[field_name]

    if raw is None:
        if "None" in str(target):
            return None
        raise ConfigError(f"{key} cannot be null", key=key)

    if target == "bool":
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ConfigError(f"{key} expects a boolean, got {raw!r}", key=key)

    if target in ("int", "float"):
        if isinstance(raw, bool):
            raise ConfigError(f"{key} expects a number, got {raw!r}", key=key)
        try:
            number = int(raw) if target == "int" else float(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{key} expects a number, got {raw!r}", key=key) from e
        if key != "executor.default_x" and key != "executor.default_y" and number < 0:
            raise ConfigError(f"{key} must not be negative", key=key)
        return number

    value = str(raw).strip()
    if field_name == "base_url":
        if not value.startswith(("http://", "https://")):
            raise ConfigError(f"{key} must be an http(s) URL, got {raw!r}", key=key)
        value = value.rstrip("/")
    if field_name == "model" and not value:
        return None
    return value
