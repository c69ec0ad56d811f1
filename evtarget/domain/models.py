"""Listener registration models."""

from __future__ import annotations

import types
from collections.abc import Hashable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from evtarget.domain.errors import InvalidArgumentError

_METHOD_TYPES = (types.MethodType, types.BuiltinMethodType)


class ListenerOptions(BaseModel):
    """Modifiers accepted by ``EventTarget.add``.

    ``capture`` is part of the listener's identity; ``once`` and ``passive``
    are only read from the first registration of a given callback.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    capture: bool = False
    once: bool = False
    passive: bool = False
    signal: Any = None

    @classmethod
    def coerce(cls, options: ListenerOptions | Mapping[str, Any] | bool | None) -> ListenerOptions:
        """Normalise the shorthand forms: ``None``, a bare capture flag, or a mapping."""
        if options is None:
            return DEFAULT_OPTIONS
        if isinstance(options, ListenerOptions):
            return options
        if isinstance(options, bool):
            return CAPTURE_OPTIONS if options else DEFAULT_OPTIONS
        if isinstance(options, Mapping):
            try:
                return cls.model_validate(dict(options))
            except ValidationError as exc:
                raise InvalidArgumentError(f"invalid listener options: {exc}") from exc
        raise InvalidArgumentError(
            f"options must be ListenerOptions, a mapping or a bool, not {type(options).__name__}"
        )


DEFAULT_OPTIONS = ListenerOptions()
CAPTURE_OPTIONS = ListenerOptions(capture=True)


def capture_of(options: Any) -> bool:
    """Read only the capture flag, ignoring anything else in *options*."""
    if isinstance(options, ListenerOptions):
        return options.capture
    if isinstance(options, Mapping):
        return bool(options.get("capture", False))
    return options is True


class Listener(BaseModel):
    """One registered subscription.

    ``removed`` is flipped when the registry drops the entry so that a dispatch
    already holding a snapshot skips it.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str
    callback: Any
    capture: bool = False
    once: bool = False
    passive: bool = False
    signal: Any = None
    abort_hook: Any = None
    removed: bool = False

    @property
    def key(self) -> tuple[Hashable, bool]:
        return listener_key(self.callback, self.capture)

    def invoke(self, event: Any) -> None:
        callback = self.callback
        if callable(callback):
            callback(event)
        else:
            callback.handle_event(event)


def callback_identity(callback: Any) -> Hashable:
    """Identity used for dedup and removal.

    Bound methods are recreated on each attribute access, so they compare by
    their own ``==`` (same ``__self__`` object, same function). Everything else
    compares by ``id``, which stays stable while the registry holds the object.
    """
    if isinstance(callback, _METHOD_TYPES):
        return callback
    return id(callback)


def listener_key(callback: Any, capture: bool) -> tuple[Hashable, bool]:
    return (callback_identity(callback), bool(capture))


def validate_callback(callback: Any) -> None:
    if callable(callback):
        return
    if callable(getattr(callback, "handle_event", None)):
        return
    raise InvalidArgumentError(
        f"listener must be callable or define handle_event(), got {type(callback).__name__}"
    )


def validate_event_type(event_type: Any) -> str:
    if not isinstance(event_type, str):
        raise InvalidArgumentError(
            f"event type must be a string, got {type(event_type).__name__}"
        )
    return event_type


def validate_signal(signal: Any) -> None:
    if signal is None:
        return
    if hasattr(signal, "aborted") and callable(getattr(signal, "add", None)) and callable(
        getattr(signal, "remove", None)
    ):
        return
    raise InvalidArgumentError(
        f"signal must be an AbortSignal, got {type(signal).__name__}"
    )
