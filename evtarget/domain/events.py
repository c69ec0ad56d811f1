"""Event records delivered by ``EventTarget.dispatch``."""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class EventPhase(StrEnum):
    NONE = "none"
    CAPTURING = "capturing"
    AT_TARGET = "at_target"
    BUBBLING = "bubbling"


class Event(BaseModel):
    """Mutable event record.

    The same instance may be dispatched several times in sequence. Every
    dispatch resets the propagation flags and the phase, but
    ``default_prevented`` carries over until the caller calls
    :meth:`reset_default`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str
    cancelable: bool = False
    bubbles: bool = False
    default_prevented: bool = False
    propagation_stopped: bool = False
    immediate_propagation_stopped: bool = False
    event_phase: EventPhase = EventPhase.NONE
    target: Any = None
    current_target: Any = None
    time_stamp: float = Field(default_factory=time.monotonic)

    _dispatching: bool = PrivateAttr(default=False)
    _in_passive_listener: bool = PrivateAttr(default=False)
    _path: tuple[Any, ...] = PrivateAttr(default=())

    def __init__(self, type: str | None = None, /, **data: Any) -> None:
        if type is not None:
            data["type"] = type
        super().__init__(**data)

    @property
    def dispatching(self) -> bool:
        return self._dispatching

    @property
    def return_value(self) -> bool:
        return not self.default_prevented

    def prevent_default(self) -> None:
        """Mark the default action as cancelled.

        Ignored for non-cancelable events and while a passive listener runs.
        """
        if self.cancelable and not self._in_passive_listener:
            self.default_prevented = True

    def reset_default(self) -> None:
        self.default_prevented = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def stop_immediate_propagation(self) -> None:
        self.propagation_stopped = True
        self.immediate_propagation_stopped = True

    def composed_path(self) -> list[Any]:
        """Targets of the dispatch in flight, innermost first; empty otherwise."""
        if not self._dispatching:
            return []
        return list(self._path)

    # ------------------------------------------------------------------
    # Dispatch bookkeeping, driven by evtarget.services.dispatch
    # ------------------------------------------------------------------

    def _begin(self, target: Any, path: tuple[Any, ...]) -> None:
        self._dispatching = True
        self._path = path
        self.target = target
        self.propagation_stopped = False
        self.immediate_propagation_stopped = False
        self.event_phase = EventPhase.AT_TARGET

    def _finish(self) -> None:
        self._dispatching = False
        self._in_passive_listener = False
        self._path = ()
        self.current_target = None
        self.event_phase = EventPhase.NONE


class CustomEvent(Event):
    """Event carrying an arbitrary ``detail`` payload."""

    detail: Any = None
