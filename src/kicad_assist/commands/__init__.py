"""Command language: action types, parser and response miner."""

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
    PassKey,
    Query,
)
from .miner import mine
from .parser import ParseResult, parse, parse_command

__all__ = [
    "Action",
    "AddComponent",
    "AddTrace",
    "Connect",
    "Help",
    "ListComponents",
    "ListFootprints",
    "ListLibraries",
    "ModifyComponent",
    "ModifyFootprint",
    "ParseResult",
    "PassKey",
    "Query",
    "mine",
    "parse",
    "parse_command",
]
