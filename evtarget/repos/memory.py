"""In-memory listener storage owned by each event target."""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable
from typing import Any

from evtarget.config import get_settings
from evtarget.domain.models import Listener, ListenerOptions, listener_key

logger = logging.getLogger(__name__)

_EMPTY: tuple[Listener, ...] = ()


class ListenerList:
    """Insertion-ordered listeners for one event type.

    Entries are keyed by ``(callback identity, capture)``. The tuple handed to
    dispatch is cached until the next mutation, so a dispatch keeps iterating
    its own frozen order while callbacks add or remove entries.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[Hashable, bool], Listener] = {}
        self._snapshot: tuple[Listener, ...] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, key: tuple[Hashable, bool]) -> Listener | None:
        return self._entries.get(key)

    def add(self, listener: Listener) -> bool:
        key = listener.key
        if key in self._entries:
            return False
        self._entries[key] = listener
        self._snapshot = None
        return True

    def remove(self, key: tuple[Hashable, bool]) -> Listener | None:
        listener = self._entries.pop(key, None)
        if listener is not None:
            listener.removed = True
            self._snapshot = None
        return listener

    def snapshot(self) -> tuple[Listener, ...]:
        if self._snapshot is None:
            self._snapshot = tuple(self._entries.values())
        return self._snapshot

    def clear(self) -> list[Listener]:
        removed = list(self._entries.values())
        for listener in removed:
            listener.removed = True
        self._entries.clear()
        self._snapshot = None
        return removed


class ListenerRegistry:
    """Per-target store of listener lists, one per event type.

    Every read and write of the per-type lists runs under the registry's own
    lock; listener callbacks and signal hooks are never invoked while it is
    held.
    """

    def __init__(self) -> None:
        self._lists: dict[str, ListenerList] = {}
        self._lock = threading.Lock()

    def add(self, event_type: str, callback: Any, options: ListenerOptions) -> Listener | None:
        """Register a listener; ``None`` if one with the same identity exists.

        A listener added with a ``signal`` gets an abort hook on that signal,
        which is detached again whenever the listener leaves the registry.
        """
        key = listener_key(callback, options.capture)
        with self._lock:
            listeners = self._lists.get(event_type)
            if listeners is None:
                listeners = self._lists[event_type] = ListenerList()
            if listeners.find(key) is not None:
                self._trace("duplicate listener for %r ignored", event_type)
                return None
            listener = Listener(
                type=event_type,
                callback=callback,
                capture=options.capture,
                once=options.once,
                passive=options.passive,
                signal=options.signal,
            )
            listeners.add(listener)
        self._trace("added listener for %r (capture=%s)", event_type, options.capture)
        if listener.signal is not None:
            self._link_signal(listener)
        return listener

    def remove(self, event_type: str, callback: Any, capture: bool = False) -> bool:
        key = listener_key(callback, capture)
        with self._lock:
            listener = self._remove_key(event_type, key)
        if listener is None:
            return False
        self._trace("removed listener for %r (capture=%s)", event_type, capture)
        _unlink_signal(listener)
        return True

    def discard(self, listener: Listener) -> bool:
        """Remove this exact listener entry if it is still registered.

        Returns ``True`` only for the caller that actually removed it.
        """
        if listener.removed:
            return False
        with self._lock:
            listeners = self._lists.get(listener.type)
            if listeners is None or listeners.find(listener.key) is not listener:
                return False
            self._remove_key(listener.type, listener.key)
        _unlink_signal(listener)
        return True

    def find(self, event_type: str, callback: Any, capture: bool = False) -> Listener | None:
        key = listener_key(callback, capture)
        with self._lock:
            listeners = self._lists.get(event_type)
            return None if listeners is None else listeners.find(key)

    def snapshot_for(self, event_type: str) -> tuple[Listener, ...]:
        """Frozen dispatch order for *event_type*; the shared empty tuple if none."""
        with self._lock:
            listeners = self._lists.get(event_type)
            if listeners is None:
                return _EMPTY
            return listeners.snapshot()

    def count(self, event_type: str | None = None) -> int:
        with self._lock:
            if event_type is not None:
                listeners = self._lists.get(event_type)
                return 0 if listeners is None else len(listeners)
            return sum(len(listeners) for listeners in self._lists.values())

    def types(self) -> list[str]:
        with self._lock:
            return list(self._lists)

    def clear(self, event_type: str | None = None) -> None:
        with self._lock:
            if event_type is None:
                dropped = list(self._lists.values())
                self._lists.clear()
            else:
                listeners = self._lists.pop(event_type, None)
                dropped = [] if listeners is None else [listeners]
            removed = [listener for listeners in dropped for listener in listeners.clear()]
        for listener in removed:
            _unlink_signal(listener)

    def _remove_key(self, event_type: str, key: tuple[Hashable, bool]) -> Listener | None:
        listeners = self._lists.get(event_type)
        if listeners is None:
            return None
        listener = listeners.remove(key)
        if listener is not None and not listeners:
            del self._lists[event_type]
        return listener

    def _link_signal(self, listener: Listener) -> None:
        def on_abort(_event: Any) -> None:
            self.discard(listener)

        listener.signal.add("abort", on_abort, {"once": True})
        listener.abort_hook = on_abort
        if listener.removed:
            _unlink_signal(listener)
        elif listener.signal.aborted:
            self.discard(listener)

    @staticmethod
    def _trace(message: str, *args: Any) -> None:
        if get_settings().trace_listeners:
            logger.debug(message, *args)


def _unlink_signal(listener: Listener) -> None:
    hook = listener.abort_hook
    if hook is None:
        return
    listener.abort_hook = None
    listener.signal.remove("abort", hook)
