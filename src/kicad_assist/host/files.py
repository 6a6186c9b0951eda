"""Host implementation backed by KiCad design files.

Lets the pipeline run outside the KiCad GUI: a ``.kicad_sch`` opens as a
schematic editor, a ``.kicad_pcb`` as a board editor. Edits are applied to
the in-memory S-expression tree; every commit records a :class:`ChangeRecord`
and writes the file back.

Units follow KiCad: schematic coordinates are 100 nm per internal unit,
board coordinates 1 nm per internal unit. Library symbol geometry is in
millimetres with Y pointing up.
"""

from __future__ import annotations

import math
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..constants import DEFAULT_TRACK_WIDTH_MM, PCB_IU_PER_MM, SCH_IU_PER_MM
from ..exceptions import HostEditFailedError
from ..library import FootprintLibraryTable, SymbolLibraryTable, symbol_pins
from ..logging_config import create_logger
from ..schema.common import Coordinate, EditorKind, LibraryId
from ..schema.library import LibSymbol
from ..sexp import Document, SExp
from ..sexp.parser import parse as sexp_parse

logger = create_logger(__name__)


def _mm(value: int, iu_per_mm: int) -> str:
    text = f"{value / iu_per_mm:.6f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def _q(text: str) -> str:
    return SExp.quoted(text).to_string()


@dataclass
class ChangeRecord:
    """One committed edit."""

    change_id: str
    operation: str  # commit label, e.g. "Place Symbol"
    description: str
    target: str
    after_snapshot: str
    applied: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_id": self.change_id,
            "operation": self.operation,
            "description": self.description,
            "target": self.target,
            "applied": self.applied,
        }


# ── Items ──────────────────────────────────────────────────────────


class FileItem:
    """An S-expression node that can be added to a design."""

    kind = "item"

    def __init__(self, node: SExp):
        self.node = node
        self.is_new = False

    def mark_new(self) -> None:
        self.is_new = True

    @property
    def uuid(self) -> str:
        uuid_node = self.node.get("uuid")
        return (uuid_node.first_value if uuid_node else "") or ""

    def describe(self) -> str:
        return self.kind

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"


class FileWire(FileItem):
    kind = "wire"

    def describe(self) -> str:
        pts = [xy.atom_values for xy in self.node.find_recursive("xy")]
        return "wire " + " -> ".join(f"({p[0]}, {p[1]})" for p in pts if len(p) >= 2)


class FileTrack(FileItem):
    kind = "segment"

    def describe(self) -> str:
        start = self.node.get("start")
        end = self.node.get("end")
        s = start.atom_values if start else []
        e = end.atom_values if end else []
        return f"segment ({', '.join(s)}) -> ({', '.join(e)})"


@dataclass(frozen=True)
class FilePin:
    name: str
    number: str
    world: Coordinate

    def position(self) -> Coordinate:
        return self.world


class FileSymbol(FileItem):
    """A placed schematic symbol."""

    kind = "symbol"

    def __init__(self, node: SExp, schematic: SchematicDocument, lib_node: SExp | None = None):
        super().__init__(node)
        self._schematic = schematic
        self.lib_node = lib_node

    @property
    def reference(self) -> str:
        return self.node.property_value("Reference") or ""

    @property
    def lib_id(self) -> LibraryId:
        lib_id_node = self.node.get("lib_id")
        text = (lib_id_node.first_value if lib_id_node else "") or ""
        return LibraryId.parse(text) or LibraryId("", text)

    @property
    def unit(self) -> int:
        unit_node = self.node.get("unit")
        return int(unit_node.first_value or 1) if unit_node else 1

    @property
    def mirror(self) -> str | None:
        """``"x"`` or ``"y"`` when the symbol is mirrored about that axis."""
        node = self.node.get("mirror")
        return node.first_value if node is not None else None

    def _placement(self) -> tuple[float, float, float]:
        at = self.node.get("at")
        vals = [float(v) for v in at.atom_values] if at else []
        vals += [0.0] * (3 - len(vals))
        return vals[0], vals[1], vals[2]

    def pins(self) -> list[FilePin]:
        lib_node = self.lib_node or self._schematic.embedded_lib_symbol(str(self.lib_id))
        if lib_node is None:
            return []
        sx, sy, angle = self._placement()
        mirror = self.mirror
        rad = math.radians(angle)
        cos_a, sin_a = math.cos(rad), math.sin(rad)
        pins: list[FilePin] = []
        for pin in symbol_pins(lib_node, self.unit):
            # Mirror in the symbol frame, then rotate. Library Y points up,
            # schematic Y points down.
            px = -pin.x if mirror == "y" else pin.x
            py = -pin.y if mirror == "x" else pin.y
            rx = px * cos_a - py * sin_a
            ry = px * sin_a + py * cos_a
            world = Coordinate(round((sx + rx) * SCH_IU_PER_MM), round((sy - ry) * SCH_IU_PER_MM))
            pins.append(FilePin(name=pin.name, number=pin.number, world=world))
        return pins

    def autoplace(self) -> None:
        sx, sy, _ = self._placement()
        offsets = {"Reference": -2.54, "Value": 2.54}
        for prop in self.node.find_all("property"):
            vals = prop.atom_values
            if not vals or vals[0] not in offsets:
                continue
            at = prop.get("at")
            if at is None:
                continue
            at.children = [SExp.atom(sx + 2.54), SExp.atom(sy + offsets[vals[0]]), SExp.atom(0)]

    def set_reference(self, reference: str) -> None:
        self.node.set_property("Reference", reference)
        for ref_node in self.node.find_recursive("reference"):
            ref_node.set_atom(0, reference)

    def describe(self) -> str:
        return f"{self.reference} ({self.lib_id})"


@dataclass(frozen=True)
class FileFootprint:
    reference: str
    footprint: str


# ── Screen, commit, canvas ─────────────────────────────────────────


class FileScreen:
    """Inserts items into the document tree."""

    def __init__(self, schematic: SchematicDocument):
        self._schematic = schematic

    def add(self, item: FileItem) -> None:
        if isinstance(item, FileSymbol) and item.lib_node is not None:
            self._schematic.embed_lib_symbol(str(item.lib_id), item.lib_node)
        self._schematic.document.insert_item(item.node)
        logger.debug(f"Added {item.describe()} to {self._schematic.document.path.name}")


class FileCanvas:
    def __init__(self) -> None:
        self.refresh_count = 0

    def refresh(self) -> None:
        self.refresh_count += 1


class FileCommit:
    """Collects added items and records them as one change on push."""

    def __init__(self, host: _FileHost):
        self._host = host
        self._items: list[FileItem] = []

    def added(self, item: FileItem) -> None:
        self._items.append(item)

    def push(self, label: str) -> None:
        if not self._items:
            return
        record = ChangeRecord(
            change_id=uuid.uuid4().hex[:8],
            operation=label,
            description="; ".join(item.describe() for item in self._items),
            target=",".join(f"{item.kind}:{item.uuid}" for item in self._items),
            after_snapshot="\n".join(item.node.to_string() for item in self._items),
        )
        self._host.changes.append(record)
        self._items = []
        if self._host.save_on_commit:
            try:
                self._host.save()
            except OSError as e:
                raise HostEditFailedError(f"Could not save after '{label}': {e}", label=label) from e
        logger.info(f"Committed '{label}': {record.description}")


# ── Documents ──────────────────────────────────────────────────────


_HEADER_NODES = ("version", "generator", "generator_version", "uuid", "paper", "title_block")
_REF_NUMBER = re.compile(r"^(.*?)(\d+)$")


class SchematicDocument:
    """Schematic capability set over a ``.kicad_sch`` document."""

    def __init__(
        self,
        document: Document,
        autoplace_fields: bool = True,
        on_change: Callable[[], None] | None = None,
    ):
        self.document = document
        self.autoplace_fields = autoplace_fields
        self._on_change = on_change
        self._screen = FileScreen(self)

    @property
    def project_name(self) -> str:
        return self.document.path.stem

    def current_sheet(self) -> str:
        """Sheet instance path of the root sheet."""
        uuid_node = self.document.root.get("uuid")
        root_uuid = (uuid_node.first_value if uuid_node else "") or ""
        return f"/{root_uuid}"

    def screen(self) -> FileScreen:
        return self._screen

    def symbols(self) -> list[FileSymbol]:
        return [
            FileSymbol(node, self)
            for node in self.document.root.find_all("symbol")
            if node.get("lib_id") is not None
        ]

    def reference_list(self) -> list[FileSymbol]:
        return self.symbols()

    # lib_symbols cache

    def _lib_symbols(self, create: bool = False) -> SExp | None:
        lib_symbols = self.document.root.get("lib_symbols")
        if lib_symbols is None and create:
            lib_symbols = SExp.node("lib_symbols")
            children = self.document.root.children
            insert_at = 0
            for i, child in enumerate(children):
                if child.name in _HEADER_NODES:
                    insert_at = i + 1
            children.insert(insert_at, lib_symbols)
        return lib_symbols

    def embedded_lib_symbol(self, lib_id: str) -> SExp | None:
        lib_symbols = self._lib_symbols()
        if lib_symbols is None:
            return None
        for sym in lib_symbols.find_all("symbol"):
            if sym.first_value == lib_id:
                return sym
        return None

    def embed_lib_symbol(self, lib_id: str, lib_node: SExp) -> None:
        if self.embedded_lib_symbol(lib_id) is not None:
            return
        embedded = lib_node.deep_copy()
        embedded.set_atom(0, lib_id)
        lib_symbols = self._lib_symbols(create=True)
        assert lib_symbols is not None
        lib_symbols.children.append(embedded)

    # edits

    def create_symbol(
        self, lib_symbol: LibSymbol, lib_id: LibraryId, sheet: str, position: Coordinate
    ) -> FileSymbol:
        x = _mm(position.x, SCH_IU_PER_MM)
        y = _mm(position.y, SCH_IU_PER_MM)
        reference = f"{lib_symbol.reference_prefix}?"
        node = lib_symbol.node
        value = (node.property_value("Value") if node else None) or lib_symbol.name
        footprint = (node.property_value("Footprint") if node else None) or ""
        pins = " ".join(
            f"(pin {_q(pin.number)} (uuid {_q(str(uuid.uuid4()))}))"
            for pin in lib_symbol.pins
            if pin.number
        )
        text = (
            f"(symbol (lib_id {_q(str(lib_id))}) (at {x} {y} 0) (unit 1)"
            f" (exclude_from_sim no) (in_bom yes) (on_board yes) (dnp no)"
            f" (uuid {_q(str(uuid.uuid4()))})"
            f" (property \"Reference\" {_q(reference)} (at {x} {y} 0)"
            f" (effects (font (size 1.27 1.27))))"
            f" (property \"Value\" {_q(value)} (at {x} {y} 0)"
            f" (effects (font (size 1.27 1.27))))"
            f" (property \"Footprint\" {_q(footprint)} (at {x} {y} 0)"
            f" (effects (font (size 1.27 1.27)) (hide yes)))"
            f" (property \"Datasheet\" \"~\" (at {x} {y} 0)"
            f" (effects (font (size 1.27 1.27)) (hide yes)))"
            f" {pins}"
            f" (instances (project {_q(self.project_name)}"
            f" (path {_q(sheet)} (reference {_q(reference)}) (unit 1)))))"
        )
        return FileSymbol(sexp_parse(text), self, lib_node=lib_symbol.node)

    def create_wire(self, start: Coordinate, end: Coordinate) -> FileWire:
        text = (
            f"(wire (pts (xy {_mm(start.x, SCH_IU_PER_MM)} {_mm(start.y, SCH_IU_PER_MM)})"
            f" (xy {_mm(end.x, SCH_IU_PER_MM)} {_mm(end.y, SCH_IU_PER_MM)}))"
            f" (stroke (width 0) (type default))"
            f" (uuid {_q(str(uuid.uuid4()))}))"
        )
        return FileWire(sexp_parse(text))

    def mark_modified(self) -> None:
        """Annotate unannotated references (``R?`` -> next free ``R<n>``)."""
        symbols = self.symbols()
        used: dict[str, set[int]] = {}
        for sym in symbols:
            m = _REF_NUMBER.match(sym.reference)
            if m:
                used.setdefault(m.group(1), set()).add(int(m.group(2)))

        annotated = 0
        for sym in symbols:
            if not sym.reference.endswith("?"):
                continue
            prefix = sym.reference[:-1]
            taken = used.setdefault(prefix, set())
            n = 1
            while n in taken:
                n += 1
            taken.add(n)
            sym.set_reference(f"{prefix}{n}")
            logger.debug(f"Annotated {prefix}? as {prefix}{n}")
            annotated += 1

        if annotated and self._on_change is not None:
            self._on_change()


class BoardDocument:
    """Board capability set over a ``.kicad_pcb`` document."""

    def __init__(self, document: Document, layer: str = "F.Cu"):
        self.document = document
        self.layer = layer

    def footprints(self) -> list[FileFootprint]:
        result: list[FileFootprint] = []
        for fp in self.document.root.find_all("footprint"):
            reference = fp.property_value("Reference")
            if reference is None:
                for text in fp.find_all("fp_text"):
                    vals = text.atom_values
                    if len(vals) >= 2 and vals[0] == "reference":
                        reference = vals[1]
                        break
            result.append(FileFootprint(reference=reference or "", footprint=fp.first_value or ""))
        return result

    def file_name(self) -> str:
        return str(self.document.path)

    def add_track(self, start: Coordinate, end: Coordinate, width: float | None) -> FileTrack:
        width_mm = (
            _mm(round(width), PCB_IU_PER_MM) if width is not None else str(DEFAULT_TRACK_WIDTH_MM)
        )
        text = (
            f"(segment (start {_mm(start.x, PCB_IU_PER_MM)} {_mm(start.y, PCB_IU_PER_MM)})"
            f" (end {_mm(end.x, PCB_IU_PER_MM)} {_mm(end.y, PCB_IU_PER_MM)})"
            f" (width {width_mm}) (layer {_q(self.layer)}) (net 0)"
            f" (uuid {_q(str(uuid.uuid4()))}))"
        )
        track = FileTrack(sexp_parse(text))
        self.document.insert_item(track.node)
        return track


# ── Hosts ──────────────────────────────────────────────────────────


class _FileHost:
    editor_kind = EditorKind.UNKNOWN

    def __init__(
        self,
        document: Document,
        config_dir: str | Path | None = None,
        save_on_commit: bool = True,
    ):
        self.document = document
        self.save_on_commit = save_on_commit
        self.changes: list[ChangeRecord] = []
        self.canvas = FileCanvas()
        design_dir = document.path.parent
        self.file_path: str | None = str(document.path)
        pro = document.path.with_suffix(".kicad_pro")
        self.project_path: str | None = str(pro if pro.exists() else design_dir)
        self.symbol_libraries = SymbolLibraryTable(design_dir, config_dir)
        self.footprint_libraries = FootprintLibraryTable(design_dir, config_dir)
        self.schematic: SchematicDocument | None = None
        self.board: BoardDocument | None = None

    def new_commit(self) -> FileCommit:
        return FileCommit(self)

    def save(self, path: str | Path | None = None) -> Path:
        return self.document.save(path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.document.path.name!r})"


class SchematicFileHost(_FileHost):
    editor_kind = EditorKind.SCHEMATIC

    def __init__(self, document: Document, **kwargs: Any):
        super().__init__(document, **kwargs)
        self.schematic = SchematicDocument(document, on_change=self._autosave)

    def _autosave(self) -> None:
        if self.save_on_commit:
            self.save()


class BoardFileHost(_FileHost):
    editor_kind = EditorKind.BOARD

    def __init__(self, document: Document, **kwargs: Any):
        super().__init__(document, **kwargs)
        self.board = BoardDocument(document)


_HOSTS: dict[str, type[_FileHost]] = {
    ".kicad_sch": SchematicFileHost,
    ".kicad_pcb": BoardFileHost,
}


def open_design(
    path: str | Path,
    config_dir: str | Path | None = None,
    save_on_commit: bool = True,
) -> SchematicFileHost | BoardFileHost:
    """Open a design file as a host handle.

    Args:
        path: A ``.kicad_sch`` or ``.kicad_pcb`` file.
        config_dir: Directory holding the global library tables. Defaults to
            the KiCad user config directory.
        save_on_commit: Write the file back after every committed edit.

    Raises:
        ValueError: If the file type is not supported or the file cannot be parsed.
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    host_cls = _HOSTS.get(path.suffix)
    if host_cls is None:
        raise ValueError(f"Unsupported design file: {path.name} (expected .kicad_sch or .kicad_pcb)")
    document = Document.load(path)
    if document.root.name != document.file_type:
        raise ValueError(
            f"{path.name} is not a {document.file_type} file (found '{document.root.name}')"
        )
    logger.info(f"Opened {path.name} as {host_cls.editor_kind.value} editor")
    return host_cls(document, config_dir=config_dir, save_on_commit=save_on_commit)  # type: ignore[return-value]

