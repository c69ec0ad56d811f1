"""Capture/target/bubble propagation composed from single-target runs.

``EventTarget.dispatch`` never looks past its own listeners. Targets that form
a tree (by overriding ``get_parent``) can route an event through their
ancestors with :func:`propagate` instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from evtarget.domain.errors import InvalidStateError
from evtarget.domain.events import Event, EventPhase
from evtarget.services.dispatch import invoke_listeners

if TYPE_CHECKING:
    from evtarget.target import EventTarget


def propagation_path(target: EventTarget) -> tuple[EventTarget, ...]:
    """Return *target* followed by its ancestors, nearest first."""
    path = [target]
    seen = {id(target)}
    node = target.get_parent()
    while node is not None:
        if id(node) in seen:
            raise InvalidStateError("target parent chain contains a cycle")
        seen.add(id(node))
        path.append(node)
        node = node.get_parent()
    return tuple(path)


def propagate(target: EventTarget, event: Event) -> bool:
    """Dispatch *event* through *target*'s ancestor chain.

    Capturing listeners on ancestors run root first, then every listener on
    *target* in registration order, then (for bubbling events) non-capturing
    listeners on ancestors nearest first. ``stop_propagation`` ends the walk
    after the current node.
    """
    if event.dispatching:
        raise InvalidStateError(f"event {event.type!r} is already being dispatched")

    path = propagation_path(target)
    ancestors = path[1:]
    event._begin(target, path)
    try:
        for node in reversed(ancestors):
            _run(node, event, EventPhase.CAPTURING, capture=True)
            if event.propagation_stopped:
                break
        else:
            _run(target, event, EventPhase.AT_TARGET)
            if event.bubbles and not event.propagation_stopped:
                for node in ancestors:
                    _run(node, event, EventPhase.BUBBLING, capture=False)
                    if event.propagation_stopped:
                        break
    finally:
        event._finish()
    return not (event.cancelable and event.default_prevented)


def _run(node: EventTarget, event: Event, phase: EventPhase, capture: bool | None = None) -> None:
    listeners = node.registry.snapshot_for(event.type)
    if listeners:
        invoke_listeners(node, event, listeners, phase, capture)
