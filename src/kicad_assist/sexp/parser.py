"""S-expression reader/writer for KiCad files.

The file-backed host edits ``.kicad_sch`` and ``.kicad_pcb`` documents and
reads ``.kicad_sym`` libraries and ``*-lib-table`` files, all of which are
S-expressions. Atoms keep their original spelling so that untouched numbers
and quoted strings survive a load/save cycle unchanged.
"""

from __future__ import annotations

from collections.abc import Iterator


class SExp:
    """A node in an S-expression tree.

    A node is either an atom (``value`` set, no ``name``) or a list whose
    first element is its ``name``::

        node = parse('(property "Reference" "R1" (at 0 0 0))')
        node.name           # "property"
        node.atom_values    # ["Reference", "R1"]
        node.get("at")      # SExp(name='at', children=3)
    """

    __slots__ = ("name", "value", "children", "_original_str")

    def __init__(
        self,
        name: str | None = None,
        value: str | None = None,
        children: list[SExp] | None = None,
        _original_str: str | None = None,
    ) -> None:
        self.name = name
        self.value = value
        self.children: list[SExp] = children if children is not None else []
        self._original_str = _original_str

    # ── Construction helpers ───────────────────────────────────────

    @classmethod
    def atom(cls, value: str | int | float) -> SExp:
        """An unquoted atom such as a number or a keyword."""
        text = _format_number(value) if isinstance(value, (int, float)) else value
        return cls(value=text, _original_str=text)

    @classmethod
    def quoted(cls, value: str) -> SExp:
        """A double-quoted string atom."""
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return cls(value=value, _original_str=f'"{escaped}"')

    @classmethod
    def node(cls, name: str, *children: SExp) -> SExp:
        """A list node with the given name and children."""
        return cls(name=name, children=list(children))

    # ── Queries ────────────────────────────────────────────────────

    @property
    def is_atom(self) -> bool:
        return self.name is None and self.value is not None

    @property
    def is_list(self) -> bool:
        return self.name is not None

    @property
    def is_quoted(self) -> bool:
        return self.is_atom and (self._original_str or "").startswith('"')

    def get(self, key: str, default: SExp | None = None) -> SExp | None:
        """Get the first direct child list with the given name, or default."""
        for child in self.children:
            if child.name == key:
                return child
        return default

    def find_all(self, name: str) -> list[SExp]:
        """Find all direct child lists with the given name."""
        return [child for child in self.children if child.name == name]

    def find_recursive(self, name: str) -> Iterator[SExp]:
        """Yield all descendant lists with the given name, depth first."""
        for child in self.children:
            if child.name == name:
                yield child
            if child.children:
                yield from child.find_recursive(name)

    @property
    def first_value(self) -> str | None:
        """Value of the first atom child: ``(version 20231120)`` -> ``'20231120'``."""
        for child in self.children:
            if child.is_atom:
                return child.value
        return None

    @property
    def atom_values(self) -> list[str]:
        return [child.value for child in self.children if child.is_atom and child.value is not None]

    def property_value(self, key: str) -> str | None:
        """Value of a ``(property "<key>" "<value>" ...)`` child, if present."""
        for prop in self.find_all("property"):
            vals = prop.atom_values
            if vals and vals[0] == key:
                return vals[1] if len(vals) > 1 else ""
        return None

    # ── Mutation ───────────────────────────────────────────────────

    def set_atom(self, index: int, value: str, quoted: bool = True) -> None:
        """Replace the ``index``-th atom child, keeping list children in place."""
        seen = 0
        for pos, child in enumerate(self.children):
            if child.is_atom:
                if seen == index:
                    self.children[pos] = SExp.quoted(value) if quoted else SExp.atom(value)
                    return
                seen += 1
        raise IndexError(f"{self.name!r} has no atom at index {index}")

    def set_property(self, key: str, value: str) -> bool:
        """Set the value of an existing ``property`` child. Returns False if absent."""
        for prop in self.find_all("property"):
            vals = prop.atom_values
            if vals and vals[0] == key:
                prop.set_atom(1, value)
                return True
        return False

    def deep_copy(self) -> SExp:
        if self.is_atom:
            return SExp(value=self.value, _original_str=self._original_str)
        return SExp(name=self.name, children=[child.deep_copy() for child in self.children])

    # ── Serialization ──────────────────────────────────────────────

    def to_string(self, indent: int = 0) -> str:
        """Serialize back to S-expression text.

        Lists holding only atoms stay on one line; lists with nested lists put
        each nested list on its own indented line.
        """
        if self.is_atom:
            if self._original_str is not None:
                return self._original_str
            return _quote_if_needed(self.value or "")

        if not any(child.is_list for child in self.children):
            parts = [self.name or ""] + [child.to_string() for child in self.children]
            return "(" + " ".join(parts) + ")"

        pad = "\t" * (indent + 1)
        head = "(" + (self.name or "")
        lines: list[str] = []
        for child in self.children:
            if child.is_atom:
                head += " " + child.to_string()
            else:
                lines.append(pad + child.to_string(indent + 1))
        closing = "\t" * indent + ")"
        return "\n".join([head, *lines, closing])

    def __repr__(self) -> str:
        if self.is_atom:
            return f"SExp(value={self.value!r})"
        return f"SExp(name={self.name!r}, children={len(self.children)})"


def _format_number(value: int | float) -> str:
    if isinstance(value, float):
        text = f"{value:.6f}".rstrip("0").rstrip(".")
        return text if text not in ("", "-0") else "0"
    return str(value)


def _quote_if_needed(s: str) -> str:
    if not s:
        return '""'
    if not any(ch in ' \t\n\r"()\\' for ch in s):
        return s
    escaped = s.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class _Tokenizer:
    """Splits S-expression text into OPEN, CLOSE, STRING and ATOM tokens."""

    __slots__ = ("_text", "_pos", "_length")

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._length = len(text)

    def _skip_whitespace(self) -> None:
        while self._pos < self._length and self._text[self._pos] in " \t\n\r":
            self._pos += 1

    def peek(self) -> str | None:
        self._skip_whitespace()
        if self._pos >= self._length:
            return None
        return self._text[self._pos]

    def next_token(self) -> tuple[str, str, str] | None:
        """Return ``(kind, value, raw_text)`` or None at end of input."""
        self._skip_whitespace()
        if self._pos >= self._length:
            return None

        ch = self._text[self._pos]
        if ch == "(":
            self._pos += 1
            return ("OPEN", "(", "(")
        if ch == ")":
            self._pos += 1
            return ("CLOSE", ")", ")")
        if ch == '"':
            start = self._pos
            value = self._read_quoted()
            return ("STRING", value, self._text[start : self._pos])

        start = self._pos
        while self._pos < self._length and self._text[self._pos] not in ' \t\n\r()"':
            self._pos += 1
        value = self._text[start : self._pos]
        return ("ATOM", value, value)

    def _read_quoted(self) -> str:
        self._pos += 1
        out: list[str] = []
        while self._pos < self._length:
            ch = self._text[self._pos]
            if ch == "\\" and self._pos + 1 < self._length:
                out.append(self._text[self._pos + 1])
                self._pos += 2
                continue
            if ch == '"':
                self._pos += 1
                return "".join(out)
            out.append(ch)
            self._pos += 1
        raise ValueError("Unterminated quoted string")


def parse(text: str) -> SExp:
    """Parse a single S-expression.

    Raises:
        ValueError: If the input is malformed.
    """
    return _parse_expr(_Tokenizer(text))


def parse_all(text: str) -> list[SExp]:
    """Parse text holding several top-level S-expressions."""
    tokenizer = _Tokenizer(text)
    results: list[SExp] = []
    while tokenizer.peek() is not None:
        results.append(_parse_expr(tokenizer))
    return results


def _parse_expr(tokenizer: _Tokenizer) -> SExp:
    token = tokenizer.next_token()
    if token is None:
        raise ValueError("Unexpected end of input")

    kind, value, raw = token
    if kind in ("ATOM", "STRING"):
        return SExp(value=value, _original_str=raw)
    if kind == "CLOSE":
        raise ValueError("Unexpected ')'")

    if tokenizer.peek() == ")":
        tokenizer.next_token()
        return SExp(name="", children=[])

    first = _parse_expr(tokenizer)
    children: list[SExp] = []
    if first.is_atom:
        name = first.value
    else:
        name = first.name
        children.append(first)

    while True:
        pk = tokenizer.peek()
        if pk is None:
            raise ValueError("Unexpected end of input, unclosed '('")
        if pk == ")":
            tokenizer.next_token()
            break
        children.append(_parse_expr(tokenizer))

    return SExp(name=name, children=children)
