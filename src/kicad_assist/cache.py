"""Caching layer for parsed library files.

Symbol libraries can be large and a single pipeline run may load several
symbols from the same ``.kicad_sym`` file. Parsed results are kept per file
and per kind of result (``"doc"``, ``"names"``) and dropped as soon as the
file on disk changes size or modification time.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from .logging_config import create_logger

logger = create_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FileStamp:
    """What a cached result was computed from."""

    mtime_ns: int
    size: int

    @classmethod
    def of(cls, path: Path) -> FileStamp:
        st = path.stat()
        return cls(mtime_ns=st.st_mtime_ns, size=st.st_size)


class LibraryFileCache:
    """LRU cache of per-file results, invalidated by file stamp."""

    def __init__(self, max_files: int = 32):
        self.max_files = max_files
        self._entries: OrderedDict[tuple[str, Path], tuple[FileStamp, Any]] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, kind: str, path: Path) -> Any | None:
        """Return the cached result, or None when absent or stale."""
        key = (kind, path)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        stamp, value = entry
        if stamp != FileStamp.of(path):
            logger.debug(f"Library file changed on disk: {path}")
            del self._entries[key]
            self._misses += 1
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        return value

    def put(self, kind: str, path: Path, value: Any) -> None:
        key = (kind, path)
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_files:
            (old_kind, old_path), _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted {old_kind} for {old_path}")
        self._entries[key] = (FileStamp.of(path), value)

    def load(self, kind: str, path: Path, loader: Callable[[Path], T]) -> T:
        """Return the cached ``kind`` result for ``path``, computing it on a miss."""
        value = self.get(kind, path)
        if value is None:
            value = loader(path)
            self.put(kind, path, value)
        return value

    def invalidate(self, path: Path) -> int:
        """Drop every result derived from ``path``; returns how many were dropped."""
        stale = [key for key in self._entries if key[1] == path]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    @property
    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "hit_rate": self._hits / total if total > 0 else 0.0,
            "entries": len(self._entries),
            "max_files": self.max_files,
            "hits": self._hits,
            "misses": self._misses,
        }

    def __len__(self) -> int:
        return len(self._entries)


_library_cache = LibraryFileCache()


def get_library_cache() -> LibraryFileCache:
    """Get the shared parsed-library cache."""
    return _library_cache


def clear_all_caches() -> None:
    _library_cache.clear()
