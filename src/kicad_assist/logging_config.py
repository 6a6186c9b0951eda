"""Logging infrastructure for kicad-assist.

Every record is stamped with the id of the pipeline run that produced it so
that a generator call, the mined commands and the edits they caused can be
correlated in one log.
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

run_id_ctx: ContextVar[str | None] = ContextVar("run_id", default=None)


def get_run_id() -> str | None:
    """Get the current pipeline run ID if available."""
    return run_id_ctx.get()


@contextmanager
def run_context(run_id: str | None = None) -> Iterator[str]:
    """Bind a run ID to the current context for the duration of the block."""
    rid = run_id or uuid.uuid4().hex[:8]
    token = run_id_ctx.set(rid)
    try:
        yield rid
    finally:
        run_id_ctx.reset(token)


def setup_logging(
    level: int | str | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """Configure logging for the application.

    Args:
        level: Logging level (e.g., 'DEBUG', 'INFO', 'ERROR').
               Defaults to LOGGING_LEVEL env var or 'INFO'.
        format_string: Custom log format string. Defaults to a structured format.

    Returns:
        The root logger configured for the application.
    """
    if level is None:
        level = os.environ.get("LOGGING_LEVEL", "INFO")

    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] [%(name)s] [run=%(run_id)s] %(message)s"

    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    # MCP stdio transport owns stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(format_string, defaults={"run_id": "-"}))
    logger.addHandler(console_handler)

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel("WARNING")
        logging.getLogger(noisy).propagate = False

    return logger


class RunLoggerAdapter(logging.LoggerAdapter[Any]):
    """Logger adapter that adds the current run ID to log records."""

    def process(self, msg: str, kwargs: Any) -> tuple[str, Any]:
        extra = kwargs.get("extra")
        if extra is None:
            extra = {}
        extra["run_id"] = get_run_id() or "-"
        kwargs["extra"] = extra
        return msg, kwargs


def create_logger(name: str) -> RunLoggerAdapter:
    """Create and return a logger for a module.

    Args:
        name: The module name (typically __name__).

    Returns:
        A logger that tags records with the active run ID.
    """
    return RunLoggerAdapter(logging.getLogger(name), {})
