"""Extract command lines from free-form generator output.

Generators wrap commands in prose, markdown lists and inline code. The miner
looks at each line on its own and keeps only text whose first word is one of
the command verbs; parsing is left to the parser.
"""

from __future__ import annotations

import re

from ..constants import COMMAND_VERBS

_VERB = re.compile(r"(?:%s)(?![A-Za-z0-9_\-])" % "|".join(COMMAND_VERBS), re.IGNORECASE)
_BACKTICK = re.compile(r"`([^`]*)`")
_BOLD_HEADER = re.compile(r"^\*\*.*(?::\*\*|\*\*:)$")
_LIST_MARKER = re.compile(r"^(?:\d+[.)]|[-*])\s*")
_COMMAND_LABEL = re.compile(r"command:", re.IGNORECASE)


def starts_with_verb(text: str) -> bool:
    """True when the first word of ``text`` is a command verb."""
    return _VERB.match(text) is not None


def _first_span(text: str) -> str | None:
    m = _BACKTICK.search(text)
    return m.group(1).strip() if m else None


def _mine_line(line: str) -> str | None:
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#") or _BOLD_HEADER.match(trimmed):
        return None

    span = _first_span(trimmed)
    if span and starts_with_verb(span):
        return span

    label = _COMMAND_LABEL.search(trimmed)
    if label:
        span = _first_span(trimmed[label.end() :])
        if span and starts_with_verb(span):
            return span

    marker = _LIST_MARKER.match(trimmed)
    if marker:
        rest = trimmed[marker.end() :].strip()
        if starts_with_verb(rest):
            return rest

    if starts_with_verb(trimmed):
        return trimmed
    return None


def mine(text: str) -> list[str]:
    """Return candidate command lines from ``text`` in order, duplicates kept."""
    commands: list[str] = []
    for line in text.splitlines():
        cmd = _mine_line(line)
        if cmd is not None:
            commands.append(cmd)
    return commands
