"""Cancellation token shared between the caller and a pipeline run."""

from __future__ import annotations

import threading

from ..constants import CANCELLED_MESSAGE
from ..exceptions import CancelledError


class CancelToken:
    """A one-way flag that any thread may raise.

    The generator client checks it before sending a request and between
    streamed lines; the pipeline checks it between actions and passes.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError(CANCELLED_MESSAGE)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.is_cancelled})"
