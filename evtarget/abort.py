"""Abort signals for removing groups of listeners at once."""

from __future__ import annotations

from typing import Any

from evtarget.domain.errors import AbortError
from evtarget.domain.events import Event
from evtarget.target import EventTarget


class AbortSignal(EventTarget):
    """One-shot target that fires ``"abort"`` when its controller aborts.

    Pass it as ``signal=`` when adding a listener and the listener is removed
    on abort.
    """

    def __init__(self) -> None:
        super().__init__()
        self.aborted = False
        self.reason: Any = None

    def throw_if_aborted(self) -> None:
        if self.aborted:
            raise AbortError(self.reason)

    def _abort(self, reason: Any) -> None:
        if self.aborted:
            return
        self.aborted = True
        self.reason = reason if reason is not None else AbortError()
        self.dispatch(Event("abort"))

    @classmethod
    def abort(cls, reason: Any = None) -> AbortSignal:
        """Return a signal that is already aborted."""
        signal = cls()
        signal._abort(reason)
        return signal


class AbortController:
    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        self.signal._abort(reason)
