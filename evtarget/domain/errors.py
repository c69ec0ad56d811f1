"""Error types raised or reported by event targets."""

from __future__ import annotations

from typing import Any


class EventTargetError(Exception):
    """Base class for every error this package raises."""


class InvalidArgumentError(EventTargetError, TypeError):
    """Raised when a listener registration gets a bad type, callback or options."""


class InvalidStateError(EventTargetError, RuntimeError):
    """Raised when an event instance is dispatched while already in flight."""


class AbortError(EventTargetError):
    """Raised by ``AbortSignal.throw_if_aborted`` once the signal has aborted."""

    def __init__(self, reason: Any = None) -> None:
        super().__init__(reason if reason is not None else "The operation was aborted")
        self.reason = reason


class CallbackFailure(EventTargetError):
    """A listener raised during dispatch.

    Never raised out of ``dispatch``; instances are handed to the active error
    reporter instead. ``__cause__`` is the original exception.
    """

    def __init__(self, event_type: str, listener: Any, error: BaseException) -> None:
        super().__init__(f"listener for {event_type!r} raised {type(error).__name__}: {error}")
        self.event_type = event_type
        self.listener = listener
        self.error = error
        self.__cause__ = error
