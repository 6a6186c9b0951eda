"""Document wrapper for KiCad S-expression files."""

from __future__ import annotations

from pathlib import Path

from .parser import SExp, parse


class Document:
    """A loaded KiCad S-expression file.

    Usage::

        doc = Document.load("amp.kicad_sch")
        doc.root.name   # "kicad_sch"
        doc.save()      # writes back to the same path
    """

    __slots__ = ("path", "root")

    def __init__(self, path: Path, root: SExp) -> None:
        self.path = path
        self.root = root

    @classmethod
    def load(cls, path: str | Path) -> Document:
        """Load and parse a KiCad S-expression file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file cannot be decoded or parsed.
            IOError: If the file cannot be read.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ValueError(f"Invalid encoding in {path}: {e}") from e
        except OSError as e:
            raise IOError(f"Error reading {path}: {e}") from e
        return cls.from_text(text, path)

    @classmethod
    def from_text(cls, text: str, path: str | Path) -> Document:
        """Parse ``text`` as if it had been read from ``path``."""
        try:
            root = parse(text)
        except ValueError as e:
            raise ValueError(f"Failed to parse {path}: {e}") from e
        return cls(path=Path(path), root=root)

    def save(self, path: str | Path | None = None) -> Path:
        """Write the tree back to disk, to ``path`` or the original location.

        Raises:
            IOError: If the file cannot be written.
        """
        target = Path(path) if path is not None else self.path
        try:
            target.write_text(self.root.to_string() + "\n", encoding="utf-8")
        except OSError as e:
            raise IOError(f"Error writing to {target}: {e}") from e
        return target

    @property
    def file_type(self) -> str:
        """File type from the extension, e.g. ``kicad_sch``."""
        return self.path.suffix.lstrip(".")

    def insert_item(self, node: SExp) -> None:
        """Insert a top-level item before ``sheet_instances`` when present."""
        children = self.root.children
        for i, child in enumerate(children):
            if child.name in ("sheet_instances", "embedded_fonts"):
                children.insert(i, node)
                return
        children.append(node)

    def __repr__(self) -> str:
        return f"Document({self.path.name!r}, root={self.root.name!r})"
