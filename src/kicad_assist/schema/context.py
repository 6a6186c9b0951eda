"""Read-only snapshot of host state, captured once per request."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .common import EditorKind


def _freeze(libs: Mapping[str, tuple[str, ...]] | None) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({nick: tuple(items) for nick, items in (libs or {}).items()})


@dataclass(frozen=True)
class ContextSnapshot:
    """What the assistant knows about the design for one pipeline run.

    Library nicknames are stored exactly as the host reports them; callers
    that need case-insensitive lookup do their own matching.
    """

    editor_kind: EditorKind = EditorKind.UNKNOWN
    file_path: str | None = None
    project_path: str | None = None
    present_refs: tuple[tuple[str, str], ...] = ()
    present_footprints: tuple[tuple[str, str], ...] = ()
    symbol_libs: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    footprint_libs: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "present_refs", tuple(tuple(p) for p in self.present_refs))
        object.__setattr__(
            self, "present_footprints", tuple(tuple(p) for p in self.present_footprints)
        )
        object.__setattr__(self, "symbol_libs", _freeze(self.symbol_libs))
        object.__setattr__(self, "footprint_libs", _freeze(self.footprint_libs))

    def component_entries(self) -> list[str]:
        """All ``lib:sym`` entries in library order."""
        return [f"{nick}:{sym}" for nick, syms in self.symbol_libs.items() for sym in syms]

    def footprint_entries(self) -> list[str]:
        """All ``lib:fp`` entries in library order."""
        return [f"{nick}:{fp}" for nick, fps in self.footprint_libs.items() for fp in fps]

    def to_dict(self) -> dict[str, Any]:
        return {
            "editor_kind": self.editor_kind.value,
            "file_path": self.file_path,
            "project_path": self.project_path,
            "present_refs": [{"reference": r, "symbol": s} for r, s in self.present_refs],
            "present_footprints": [
                {"reference": r, "footprint": f} for r, f in self.present_footprints
            ],
            "symbol_libs": {nick: list(syms) for nick, syms in self.symbol_libs.items()},
            "footprint_libs": {nick: list(fps) for nick, fps in self.footprint_libs.items()},
        }
