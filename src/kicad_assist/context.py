"""Snapshot the host state that the prompt builder and executor need."""

from __future__ import annotations

from collections.abc import Callable

from .config import Settings
from .host.base import HostHandle
from .logging_config import create_logger
from .schema.context import ContextSnapshot
from .schema.library import LibraryEntry, LibraryScope

logger = create_logger(__name__)


def _enumerate(
    kind: str,
    rows: Callable[[LibraryScope], list[LibraryEntry]],
    names: Callable[[str], list[str]],
    max_libraries: int,
    max_items: int,
) -> dict[str, tuple[str, ...]]:
    try:
        table = rows(LibraryScope.BOTH)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read {kind} library table: {e}")
        return {}

    libs: dict[str, tuple[str, ...]] = {}
    for row in table[:max_libraries]:
        try:
            libs[row.nickname] = tuple(names(row.nickname)[:max_items])
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping {kind} library '{row.nickname}': {e}")
    return libs


def collect_context(host: HostHandle, settings: Settings | None = None) -> ContextSnapshot:
    """Build the read-only context snapshot for one request."""
    settings = settings or Settings()

    present_refs: list[tuple[str, str]] = []
    if host.schematic is not None:
        present_refs = [(sym.reference, str(sym.lib_id)) for sym in host.schematic.reference_list()]

    present_footprints: list[tuple[str, str]] = []
    if host.board is not None:
        present_footprints = [(fp.reference, fp.footprint) for fp in host.board.footprints()]

    symbol_libs = _enumerate(
        "symbol",
        host.symbol_libraries.rows,
        host.symbol_libraries.symbol_names,
        settings.max_libraries,
        settings.max_items_per_library,
    )
    footprint_libs = _enumerate(
        "footprint",
        host.footprint_libraries.rows,
        host.footprint_libraries.footprint_names,
        settings.max_libraries,
        settings.max_items_per_library,
    )

    snapshot = ContextSnapshot(
        editor_kind=host.editor_kind,
        file_path=host.file_path if settings.include_file_paths else None,
        project_path=host.project_path if settings.include_file_paths else None,
        present_refs=tuple(present_refs),
        present_footprints=tuple(present_footprints),
        symbol_libs=symbol_libs,
        footprint_libs=footprint_libs,
    )
    logger.debug(
        f"Context: {snapshot.editor_kind.value}, {len(present_refs)} refs, "
        f"{len(symbol_libs)} symbol libs, {len(footprint_libs)} footprint libs"
    )
    return snapshot
