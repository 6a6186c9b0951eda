"""Recursive-descent parser for the assistant command language.

Grammar (keywords are case-insensitive, identifiers keep their case)::

    add (component|symbol) <target> [at <x>,<y>]
    place [component|symbol] <target> [at <x>,<y>]
    (connect|wire) <ref>.<pin> to <ref>.<pin>
    (connect|wire) <ref> pin <pin> to <ref> pin <pin>
    add trace from <x>,<y> to <x>,<y> [width <w>]
    (modify|change) component <ref>
    (modify|change) footprint <name>
    help | ?
    list (components|libraries|footprints)
    (query|search) <term>

    <target> := [<library>:]<symbol>

Anything after a complete command is ignored, so generator commentary such
as a trailing period does not cause a rejection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..exceptions import ParseFailedError
from ..schema.common import Coordinate, LibraryId
from .actions import (
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

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")
_PIN = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_\-]*")
_NICKNAME = _PIN
# Symbol and footprint names may start with a digit or '+' (74LS00, +5V) and
# contain inner dots; a trailing dot is punctuation.
_ITEM = re.compile(r"[A-Za-z0-9_+~][A-Za-z0-9_\-+~]*(?:\.[A-Za-z0-9_\-+~]+)*")
# Coordinates fit in 64 bits; longer digit runs are rejected, not converted.
_INT = re.compile(r"[-+]?\d{1,18}(?!\d)")
_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_WORD_END = re.compile(r"(?![A-Za-z0-9_\-])")


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one line.

    On rejection ``action`` is None, ``error`` describes what was expected and
    ``position`` is the 1-based column where parsing stopped.
    """

    action: Action | None = None
    error: str | None = None
    position: int | None = None

    @property
    def ok(self) -> bool:
        return self.action is not None


class _Cursor:
    __slots__ = ("text", "pos")

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def fail(self, expected: str) -> ParseFailedError:
        column = self.pos + 1
        return ParseFailedError(f"expected {expected} at column {column}", position=column)

    def peek_keyword(self, *words: str) -> str | None:
        """Return the keyword at the cursor (lower-cased) without consuming it."""
        self.skip_ws()
        for word in words:
            end = self.pos + len(word)
            if self.text[self.pos : end].lower() == word and _WORD_END.match(self.text, end):
                return word
        return None

    def accept_keyword(self, *words: str) -> str | None:
        word = self.peek_keyword(*words)
        if word is not None:
            self.pos += len(word)
        return word

    def keyword(self, *words: str) -> str:
        word = self.accept_keyword(*words)
        if word is None:
            raise self.fail(" or ".join(f"'{w}'" for w in words))
        return word

    def accept_char(self, ch: str) -> bool:
        self.skip_ws()
        if self.text.startswith(ch, self.pos):
            self.pos += 1
            return True
        return False

    def char(self, ch: str) -> None:
        if not self.accept_char(ch):
            raise self.fail(f"'{ch}'")

    def token(self, pattern: re.Pattern[str], what: str) -> str:
        self.skip_ws()
        m = pattern.match(self.text, self.pos)
        if m is None:
            raise self.fail(what)
        self.pos = m.end()
        return m.group(0)

    def coordinate(self, non_negative: bool = False) -> Coordinate:
        """``x,y`` or ``(x, y)``."""
        self.skip_ws()
        start = self.pos
        paren = self.accept_char("(")
        x = int(self.token(_INT, "an integer"))
        self.char(",")
        y = int(self.token(_INT, "an integer"))
        if paren:
            self.char(")")
        if non_negative and (x < 0 or y < 0):
            self.pos = start
            raise self.fail("non-negative coordinates")
        return Coordinate(x, y)

    def rest(self) -> str:
        self.skip_ws()
        value = self.text[self.pos :].strip()
        self.pos = len(self.text)
        return value


def parse_command(text: str) -> ParseResult:
    """Parse one command line into an action, with a diagnostic on rejection."""
    cur = _Cursor(text)
    try:
        action = _command(cur)
    except ParseFailedError as e:
        return ParseResult(error=e.message, position=e.position)
    return ParseResult(action=action)


def parse(text: str) -> Action | None:
    """Parse one command line; None when it is not a recognized command."""
    return parse_command(text).action


def _command(cur: _Cursor) -> Action:
    if cur.accept_char("?"):
        return Help()

    verb = cur.keyword(
        "add", "place", "connect", "wire", "modify", "change", "help", "list", "query", "search"
    )
    if verb == "add":
        if cur.keyword("component", "symbol", "trace") == "trace":
            return _trace(cur)
        return _placement(cur)
    if verb == "place":
        cur.accept_keyword("component", "symbol")
        return _placement(cur)
    if verb in ("connect", "wire"):
        return _connection(cur)
    if verb in ("modify", "change"):
        kind = cur.keyword("component", "footprint")
        if kind == "component":
            return ModifyComponent(cur.token(_IDENT, "a reference"))
        return ModifyFootprint(_target_text(cur))
    if verb == "help":
        return Help()
    if verb == "list":
        what = cur.keyword(
            "components", "component", "libraries", "library", "footprints", "footprint"
        )
        if what.startswith("component"):
            return ListComponents()
        if what.startswith("librar"):
            return ListLibraries()
        return ListFootprints()

    term = cur.rest()
    if not term:
        raise cur.fail("a search term")
    return Query(term)


def _target_text(cur: _Cursor) -> str:
    first = cur.token(_ITEM, "a name")
    if _NICKNAME.fullmatch(first) and cur.text.startswith(":", cur.pos):
        cur.pos += 1
        item = _ITEM.match(cur.text, cur.pos)
        if item is None:
            raise cur.fail("a name after ':'")
        cur.pos = item.end()
        return f"{first}:{item.group(0)}"
    return first


def _placement(cur: _Cursor) -> AddComponent:
    target = _target_text(cur)
    symbol: LibraryId | str = LibraryId.parse(target) or target
    at = None
    if cur.accept_keyword("at"):
        at = cur.coordinate()
    return AddComponent(symbol=symbol, at=at)


def _endpoint(cur: _Cursor) -> tuple[str, str]:
    ref = cur.token(_IDENT, "a reference")
    # no whitespace allowed inside ref.pin
    if cur.text.startswith(".", cur.pos):
        cur.pos += 1
        m = _PIN.match(cur.text, cur.pos)
        if m is None:
            raise cur.fail("a pin")
        cur.pos = m.end()
        return ref, m.group(0)
    if cur.accept_keyword("pin"):
        return ref, cur.token(_PIN, "a pin")
    raise cur.fail("'.' or 'pin'")


def _connection(cur: _Cursor) -> Connect:
    ref1, pin1 = _endpoint(cur)
    cur.keyword("to")
    ref2, pin2 = _endpoint(cur)
    return Connect(ref1=ref1, pin1=pin1, ref2=ref2, pin2=pin2)


def _trace(cur: _Cursor) -> AddTrace:
    cur.keyword("from")
    start = cur.coordinate(non_negative=True)
    cur.keyword("to")
    end = cur.coordinate(non_negative=True)
    width = None
    if cur.accept_keyword("width"):
        width = float(cur.token(_NUMBER, "a non-negative width"))
    return AddTrace(start=start, end=end, width=width)
