"""Resolve library, symbol, reference and pin names against the live design.

All matching is case-insensitive, but a resolved LibraryId always carries
the nickname spelled exactly as the library table spells it.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..exceptions import (
    LibraryNotFoundError,
    PinNotFoundError,
    ReferenceNotFoundError,
    SymbolNotFoundError,
)
from ..host.base import PinView, SymbolInstance, SymbolLibraries
from ..logging_config import create_logger
from ..schema.common import LibraryId
from ..schema.library import LibraryScope, LibSymbol

logger = create_logger(__name__)

MAX_LISTED_LIBRARIES = 20


def _library_not_found(nickname: str, available: list[str]) -> LibraryNotFoundError:
    if not available:
        return LibraryNotFoundError(
            f"Library '{nickname}' not found. No symbol libraries are configured; "
            f"check the sym-lib-table.",
            library=nickname,
        )
    listed = ",".join(available[:MAX_LISTED_LIBRARIES])
    if len(available) > MAX_LISTED_LIBRARIES:
        listed += ",..."
    return LibraryNotFoundError(
        f"Library '{nickname}' not found. Available libraries: {listed}", library=nickname
    )


def resolve_symbol(libraries: SymbolLibraries, symbol: LibraryId | str) -> LibraryId:
    """Resolve ``lib:sym`` or a bare symbol name to a LibraryId.

    Raises:
        LibraryNotFoundError: If no table row matches the library nickname.
        SymbolNotFoundError: If a bare name matches no symbol in any library.
    """
    rows = libraries.rows(LibraryScope.BOTH)

    if isinstance(symbol, LibraryId):
        wanted = symbol.library.lower()
        for row in rows:
            if row.nickname.lower() == wanted:
                return LibraryId(row.nickname, symbol.item)
        raise _library_not_found(symbol.library, [row.nickname for row in rows])

    wanted = symbol.lower()
    for row in rows:
        try:
            names = libraries.symbol_names(row.nickname)
        except (OSError, ValueError) as e:
            logger.debug(f"Skipping library '{row.nickname}' during lookup: {e}")
            continue
        for name in names:
            if name.lower() == wanted:
                return LibraryId(row.nickname, name)
    raise SymbolNotFoundError(f"Component '{symbol}' not found in libraries", symbol=symbol)


def load_symbol(libraries: SymbolLibraries, lib_id: LibraryId) -> LibSymbol:
    """Load a resolved symbol, by exact name first, then case-insensitively.

    Raises:
        SymbolNotFoundError: Naming every (library, symbol) pair that was tried.
    """
    attempts = [f"{lib_id.library}:{lib_id.item}"]
    loaded = libraries.load_symbol(lib_id.library, lib_id.item)
    if loaded is not None:
        return loaded

    try:
        names = libraries.symbol_names(lib_id.library)
    except (OSError, ValueError) as e:
        logger.debug(f"Could not list symbols of '{lib_id.library}': {e}")
        names = []

    wanted = lib_id.item.lower()
    for name in names:
        if name != lib_id.item and name.lower() == wanted:
            attempts.append(f"{lib_id.library}:{name}")
            loaded = libraries.load_symbol(lib_id.library, name)
            if loaded is not None:
                return loaded

    raise SymbolNotFoundError(
        f"Failed to load symbol (tried {', '.join(attempts)})", symbol=str(lib_id)
    )


def find_reference(instances: Sequence[SymbolInstance], reference: str) -> SymbolInstance:
    """Find a placed symbol by reference designator, ignoring case.

    Raises:
        ReferenceNotFoundError: If no placed symbol has the reference.
    """
    wanted = reference.lower()
    for inst in instances:
        if inst.reference.lower() == wanted:
            return inst
    raise ReferenceNotFoundError(f"Reference '{reference}' not found", reference=reference)


def pin_candidates(pin: str) -> list[str]:
    """The requested pin, plus the same text without a leading ``P``."""
    candidates = [pin.lower()]
    if len(pin) > 1 and pin[0] in "Pp":
        candidates.append(pin[1:].lower())
    return candidates


def find_pin(instance: SymbolInstance, pin: str) -> PinView:
    """First pin whose shown name or number matches ``pin`` (``P1`` also matches ``1``).

    Raises:
        PinNotFoundError: If no pin matches.
    """
    candidates = pin_candidates(pin)
    for p in instance.pins():
        if p.name.lower() in candidates or p.number.lower() in candidates:
            return p
    raise PinNotFoundError(
        f"pin '{pin}' not found on {instance.reference}", reference=instance.reference, pin=pin
    )
