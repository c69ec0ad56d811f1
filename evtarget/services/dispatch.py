"""Delivery of one event to one target's listeners."""

from __future__ import annotations

from typing import TYPE_CHECKING

from evtarget.domain.errors import CallbackFailure, InvalidStateError
from evtarget.domain.events import Event, EventPhase
from evtarget.domain.models import Listener
from evtarget.services.reporting import report

if TYPE_CHECKING:
    from evtarget.target import EventTarget


def dispatch(target: EventTarget, event: Event) -> bool:
    """Deliver *event* to *target*'s listeners for ``event.type``.

    Returns ``False`` only when the event is cancelable and some listener
    prevented its default action.
    """
    if event.dispatching:
        raise InvalidStateError(f"event {event.type!r} is already being dispatched")

    listeners = target.registry.snapshot_for(event.type)
    if not listeners:
        return not (event.cancelable and event.default_prevented)

    event._begin(target, (target,))
    try:
        invoke_listeners(target, event, listeners, EventPhase.AT_TARGET)
    finally:
        event._finish()
    return not (event.cancelable and event.default_prevented)


def invoke_listeners(
    target: EventTarget,
    event: Event,
    listeners: tuple[Listener, ...],
    phase: EventPhase,
    capture: bool | None = None,
) -> None:
    """Run *listeners* in their frozen order for one phase on one target.

    ``capture`` restricts the run to capturing (``True``) or non-capturing
    (``False``) listeners; ``None`` runs both in registration order.
    """
    event.current_target = target
    event.event_phase = phase
    registry = target.registry
    for listener in listeners:
        if listener.removed:
            continue
        if capture is not None and listener.capture != capture:
            continue
        if event.immediate_propagation_stopped:
            break
        if listener.once and not registry.discard(listener):
            continue
        _invoke(listener, event)


def _invoke(listener: Listener, event: Event) -> None:
    if not listener.passive:
        try:
            listener.invoke(event)
        except Exception as exc:
            report(CallbackFailure(event.type, listener, exc))
        return

    prevented = event.default_prevented
    event._in_passive_listener = True
    try:
        listener.invoke(event)
    except Exception as exc:
        report(CallbackFailure(event.type, listener, exc))
    finally:
        event._in_passive_listener = False
        event.default_prevented = prevented
