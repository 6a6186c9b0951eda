"""Symbol and footprint library tables backed by KiCad files.

A design sees two tables per library kind: the user-global one in the KiCad
config directory and the project one next to the design. Rows from both are
merged with the project table first; a global row whose nickname already
appears in the project table is shadowed.
"""

from __future__ import annotations

import os
import platform
import re
from pathlib import Path

from .cache import get_library_cache
from .logging_config import create_logger
from .schema.library import LibPin, LibraryEntry, LibraryScope, LibSymbol
from .sexp import Document, SExp

logger = create_logger(__name__)

SYM_TABLE_NAME = "sym-lib-table"
FP_TABLE_NAME = "fp-lib-table"


def kicad_env_paths() -> dict[str, Path]:
    """Resolve the KiCad stock library directories."""
    paths: dict[str, Path] = {}
    system = platform.system()

    if system == "Windows":
        candidates = [
            Path(r"C:\Program Files\KiCad\9.0"),
            Path(r"C:\Program Files\KiCad\8.0"),
        ]
    elif system == "Darwin":
        candidates = [Path("/Applications/KiCad/KiCad.app/Contents/SharedSupport")]
    else:
        candidates = [Path("/usr/share/kicad"), Path("/usr/local/share/kicad")]

    for base in candidates:
        sym_dir = base / "symbols"
        fp_dir = base / "footprints"
        if sym_dir.exists():
            for ver in ("9", "8", ""):
                paths[f"KICAD{ver}_SYMBOL_DIR"] = sym_dir
        if fp_dir.exists():
            for ver in ("9", "8", ""):
                paths[f"KICAD{ver}_FOOTPRINT_DIR"] = fp_dir
        if sym_dir.exists() or fp_dir.exists():
            break

    return paths


def user_config_dir() -> Path:
    """Return the KiCad user config directory holding the global tables."""
    override = os.environ.get("KICAD_CONFIG_HOME")
    if override:
        return Path(override)

    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif system == "Darwin":
        base = Path.home() / "Library" / "Preferences"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    for ver in ("9.0", "8.0"):
        d = base / "kicad" / ver
        if d.exists():
            return d
    return base / "kicad" / "9.0"


_RE_VAR = re.compile(r"\$\{([A-Za-z0-9_]+)\}")


def resolve_uri(uri: str, env: dict[str, Path | str]) -> Path:
    """Expand ``${VAR}`` references from ``env``, then the process environment."""

    def _sub(m: re.Match[str]) -> str:
        name = m.group(1)
        if name in env:
            return str(env[name])
        return os.environ.get(name, m.group(0))

    return Path(_RE_VAR.sub(_sub, uri))


def parse_lib_table(
    path: Path, env: dict[str, Path | str], scope: LibraryScope
) -> list[LibraryEntry]:
    """Parse a sym-lib-table or fp-lib-table file into rows."""
    doc = Document.load(path)
    entries: list[LibraryEntry] = []
    for lib_node in doc.root.find_all("lib"):
        name_node = lib_node.get("name")
        type_node = lib_node.get("type")
        uri_node = lib_node.get("uri")
        descr_node = lib_node.get("descr")

        name = name_node.first_value if name_node else ""
        if not name:
            continue
        uri_raw = (uri_node.first_value if uri_node else "") or ""
        entries.append(
            LibraryEntry(
                nickname=name,
                lib_type=(type_node.first_value if type_node else "") or "",
                uri=str(resolve_uri(uri_raw, env)),
                description=(descr_node.first_value if descr_node else "") or "",
                scope=scope,
            )
        )
    return entries


class _LibraryTable:
    """Rows of one library kind, merged across the global and project tables."""

    table_name = ""

    def __init__(self, project_dir: str | Path | None, config_dir: str | Path | None = None):
        self.project_dir = Path(project_dir) if project_dir is not None else None
        self.config_dir = Path(config_dir) if config_dir is not None else user_config_dir()
        env: dict[str, Path | str] = dict(kicad_env_paths())
        if self.project_dir is not None:
            env["KIPRJMOD"] = self.project_dir
        self._env = env
        self._rows: dict[LibraryScope, list[LibraryEntry]] = {}

    def _load_scope(self, scope: LibraryScope) -> list[LibraryEntry]:
        if scope not in self._rows:
            base = self.project_dir if scope is LibraryScope.PROJECT else self.config_dir
            table = base / self.table_name if base is not None else None
            if table is not None and table.exists():
                self._rows[scope] = parse_lib_table(table, self._env, scope)
                logger.debug(f"Loaded {len(self._rows[scope])} rows from {table}")
            else:
                self._rows[scope] = []
        return self._rows[scope]

    def rows(self, scope: LibraryScope = LibraryScope.BOTH) -> list[LibraryEntry]:
        """Rows for ``scope``; BOTH lists project rows first, then unshadowed global rows."""
        if scope is not LibraryScope.BOTH:
            return list(self._load_scope(scope))
        merged = list(self._load_scope(LibraryScope.PROJECT))
        seen = {row.nickname for row in merged}
        merged.extend(row for row in self._load_scope(LibraryScope.GLOBAL) if row.nickname not in seen)
        return merged

    def find_row(self, nickname: str) -> LibraryEntry | None:
        for row in self.rows(LibraryScope.BOTH):
            if row.nickname == nickname:
                return row
        return None


class SymbolLibraryTable(_LibraryTable):
    """File-backed symbol libraries: ``sym-lib-table`` plus ``.kicad_sym`` files."""

    table_name = SYM_TABLE_NAME

    def symbol_names(self, nickname: str) -> list[str]:
        """Top-level symbol names of a library, in file order.

        Raises:
            FileNotFoundError: If the nickname is unknown or its file is missing.
        """
        row = self.find_row(nickname)
        if row is None:
            raise FileNotFoundError(f"No symbol library with nickname '{nickname}'")
        return list_symbol_names(row.uri)

    def load_symbol(self, nickname: str, name: str) -> LibSymbol | None:
        """Load a symbol by exact name, or None if the library or symbol is missing."""
        row = self.find_row(nickname)
        if row is None:
            return None
        path = Path(row.uri)
        if not path.exists():
            logger.warning(f"Symbol library file missing: {path}")
            return None
        doc = _load_cached(path)
        symbols = {sym.first_value: sym for sym in doc.root.find_all("symbol")}
        node = symbols.get(name)
        if node is None:
            return None
        return build_lib_symbol(nickname, node, symbols)


class FootprintLibraryTable(_LibraryTable):
    """File-backed footprint libraries: ``fp-lib-table`` plus ``.pretty`` directories."""

    table_name = FP_TABLE_NAME

    def footprint_names(self, nickname: str) -> list[str]:
        """Footprint names of a library, sorted.

        Raises:
            FileNotFoundError: If the nickname is unknown or its directory is missing.
        """
        row = self.find_row(nickname)
        if row is None:
            raise FileNotFoundError(f"No footprint library with nickname '{nickname}'")
        path = Path(row.uri)
        if not path.is_dir():
            raise FileNotFoundError(f"Footprint library directory not found: {path}")
        return sorted(mod.stem for mod in path.glob("*.kicad_mod"))


def _load_cached(path: Path) -> Document:
    return get_library_cache().load("doc", path, Document.load)


# Top-level symbols sit at one indent level; unit sub-symbols are deeper.
_RE_TOP_SYMBOL = re.compile(r'^(?:\t| {2})\(symbol\s+"([^"]+)"', re.MULTILINE)


def _is_unit_name(name: str) -> bool:
    parts = name.rsplit("_", 2)
    return len(parts) >= 3 and parts[-1].isdigit() and parts[-2].isdigit()


def _scan_symbol_names(path: Path) -> list[str]:
    text = path.read_text(encoding="utf-8", errors="replace")
    return [m.group(1) for m in _RE_TOP_SYMBOL.finditer(text) if not _is_unit_name(m.group(1))]


def list_symbol_names(lib_path: str | Path) -> list[str]:
    """List top-level symbol names in a ``.kicad_sym`` file.

    Uses a regex scan instead of a full parse since stock libraries can be
    very large.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(lib_path)
    if not path.exists():
        raise FileNotFoundError(f"Symbol library file not found: {path}")

    return list(get_library_cache().load("names", path, _scan_symbol_names))


def build_lib_symbol(nickname: str, node: SExp, siblings: dict[str | None, SExp]) -> LibSymbol:
    """Build a LibSymbol from a top-level ``symbol`` node.

    Derived symbols (``(extends "Base")``) take their graphics and pins from
    the base symbol and their properties from the derived one.
    """
    name = node.first_value or ""
    flat = node.deep_copy()
    extends = node.get("extends")
    base_name = extends.first_value if extends else None
    if base_name and base_name in siblings:
        base = siblings[base_name].deep_copy()
        flat = SExp.node("symbol", SExp.quoted(name))
        props = node.find_all("property")
        for child in base.children[1:]:
            if child.name == "property":
                continue
            if child.name == "symbol":
                unit = child.first_value or ""
                if unit.startswith(base_name + "_"):
                    child.set_atom(0, name + unit[len(base_name) :])
            flat.children.append(child)
        insert_at = 1
        for prop in props:
            flat.children.insert(insert_at, prop.deep_copy())
            insert_at += 1

    return LibSymbol(
        library=nickname,
        name=name,
        reference_prefix=flat.property_value("Reference") or "U",
        pins=tuple(symbol_pins(flat)),
        node=flat,
    )


def _unit_of(sub_symbol: SExp) -> int:
    parts = (sub_symbol.first_value or "").rsplit("_", 2)
    if len(parts) >= 3 and parts[-2].isdigit():
        return int(parts[-2])
    return 0


def _pin(node: SExp) -> LibPin:
    at = node.get("at")
    coords = at.atom_values if at else []
    name_node = node.get("name")
    number_node = node.get("number")
    pin_name = (name_node.first_value if name_node else "") or ""
    return LibPin(
        name="" if pin_name == "~" else pin_name,
        number=(number_node.first_value if number_node else "") or "",
        x=float(coords[0]) if len(coords) > 0 else 0.0,
        y=float(coords[1]) if len(coords) > 1 else 0.0,
    )


def symbol_pins(node: SExp, unit: int | None = None) -> list[LibPin]:
    """Pins of a library symbol node.

    With ``unit`` set, only pins of that unit and of the shared unit 0 are
    returned.
    """
    pins = [_pin(p) for p in node.find_all("pin")]
    for sub in node.find_all("symbol"):
        sub_unit = _unit_of(sub)
        if unit is None or sub_unit in (0, unit):
            pins.extend(_pin(p) for p in sub.find_all("pin"))
    return pins
