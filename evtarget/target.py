"""Public ``EventTarget`` facade over the listener registry and dispatcher."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from evtarget.domain.events import Event
from evtarget.domain.models import (
    ListenerOptions,
    capture_of,
    validate_callback,
    validate_event_type,
    validate_signal,
)
from evtarget.repos.memory import ListenerRegistry
from evtarget.services.dispatch import dispatch as _dispatch

Options = ListenerOptions | Mapping[str, Any] | bool | None


class EventTarget:
    """Owner of listeners for any number of event types.

    Listeners run synchronously, in registration order, inside ``dispatch``.
    """

    def __init__(self) -> None:
        self.registry = ListenerRegistry()

    def add(self, type: str, callback: Any, options: Options = None) -> None:
        """Register *callback* for *type*.

        Re-adding the same callback with the same ``capture`` flag is a no-op
        and keeps the first registration's ``once``/``passive``. A callback
        registered with an aborted ``signal`` is not added.
        """
        validate_event_type(type)
        validate_callback(callback)
        opts = ListenerOptions.coerce(options)
        validate_signal(opts.signal)
        if opts.signal is not None and opts.signal.aborted:
            return
        self.registry.add(type, callback, opts)

    def remove(self, type: str, callback: Any, options: Options = None) -> None:
        """Unregister *callback*.

        Only the ``capture`` flag of *options* is read; anything else in it is
        ignored, so removal never raises.
        """
        if not isinstance(type, str):
            return
        self.registry.remove(type, callback, capture_of(options))

    def dispatch(self, event: Event) -> bool:
        """Deliver *event* to this target's listeners.

        Returns ``False`` if the event is cancelable and a listener called
        ``prevent_default``.
        """
        return _dispatch(self, event)

    def has_listeners(self, type: str) -> bool:
        return self.registry.count(type) > 0

    def listener_count(self, type: str | None = None) -> int:
        return self.registry.count(type)

    def get_parent(self) -> EventTarget | None:
        """Next target on the propagation path; ``None`` for standalone targets."""
        return None
