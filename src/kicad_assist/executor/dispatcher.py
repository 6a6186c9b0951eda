"""Execute parsed actions against a host.

Each action yields its own CommandResult; the executor never raises for an
individual action. Actions that need a specific editor are rejected with a
clear message when the host is attached to another one.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..commands.actions import (
    Action,
    AddComponent,
    AddTrace,
    Connect,
    Help,
    ListComponents,
    ListFootprints,
    ListLibraries,
    ModifyComponent,
    ModifyFootprint,
    Query,
)
from ..config import Settings
from ..exceptions import AssistError, HostEditFailedError, NotInExpectedEditorError
from ..host.base import HostHandle
from ..logging_config import create_logger
from ..schema.common import EditorKind
from ..schema.context import ContextSnapshot
from ..schema.results import CommandResult
from . import board_ops, query_ops, schematic_ops

logger = create_logger(__name__)


class ActionExecutor:
    """Runs actions for one pipeline run on the calling thread."""

    def __init__(self, host: HostHandle, context: ContextSnapshot, settings: Settings | None = None):
        self.host = host
        self.context = context
        self.settings = settings or Settings()
        self._handlers: dict[type, Callable[[Any], CommandResult]] = {
            AddComponent: self._add_component,
            Connect: self._connect,
            ModifyComponent: self._modify_component,
            AddTrace: self._add_trace,
            ModifyFootprint: self._modify_footprint,
            Help: lambda _: query_ops.help_text(),
            ListComponents: lambda _: query_ops.list_components(self.context),
            ListLibraries: lambda _: query_ops.list_libraries(self.context),
            ListFootprints: lambda _: query_ops.list_footprints(self.context),
            Query: lambda a: query_ops.query(self.context, a.term),
        }

    def execute(self, action: Action) -> CommandResult:
        handler = self._handlers.get(type(action))
        if handler is None:
            return CommandResult.fail(f"Unsupported action: {type(action).__name__}")
        try:
            return handler(action)
        except AssistError as e:
            logger.info(f"{action.to_command()!r} failed [{e.error_code}]: {e.message}")
            return CommandResult.fail(e.message)
        except Exception as e:
            logger.exception(f"Host edit failed for {action.to_command()!r}")
            return CommandResult.fail(HostEditFailedError(f"Host edit failed: {e}").message)

    def prepare_connection_pass(self) -> None:
        schematic_ops.prepare_connection_pass(self.host)

    # ── Editor checks ──────────────────────────────────────────────

    def _require_schematic(self) -> None:
        if self.host.editor_kind is not EditorKind.SCHEMATIC or self.host.schematic is None:
            raise NotInExpectedEditorError(
                "Not in schematic editor", editor_kind=self.host.editor_kind.value
            )

    def _require_board(self) -> None:
        if not self.host.editor_kind.is_board_like or self.host.board is None:
            raise NotInExpectedEditorError(
                "Not in board editor", editor_kind=self.host.editor_kind.value
            )

    # ── Handlers ───────────────────────────────────────────────────

    def _add_component(self, action: AddComponent) -> CommandResult:
        self._require_schematic()
        return schematic_ops.place_symbol(self.host, action, self.settings)

    def _connect(self, action: Connect) -> CommandResult:
        self._require_schematic()
        return schematic_ops.connect(self.host, action)

    def _modify_component(self, action: ModifyComponent) -> CommandResult:
        self._require_schematic()
        return CommandResult.ok(f"Would modify component '{action.refdes}'")

    def _add_trace(self, action: AddTrace) -> CommandResult:
        self._require_board()
        return board_ops.add_trace(self.host, action)

    def _modify_footprint(self, action: ModifyFootprint) -> CommandResult:
        if not self.host.editor_kind.is_board_like:
            raise NotInExpectedEditorError(
                "Not in board editor", editor_kind=self.host.editor_kind.value
            )
        return CommandResult.ok(f"Would modify footprint '{action.name}'")
