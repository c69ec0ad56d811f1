"""Environment-driven settings for dispatch and failure reporting."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

FAILURE_LOG_LEVEL_ENV = "EVTARGET_FAILURE_LOG_LEVEL"
TRACE_LISTENERS_ENV = "EVTARGET_TRACE_LISTENERS"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class DispatchSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    failure_log_level: int = logging.ERROR
    trace_listeners: bool = False

    @field_validator("failure_log_level", mode="before")
    @classmethod
    def _resolve_level(cls, value: object) -> int:
        if isinstance(value, str):
            name = value.strip().upper()
            if name.isdigit():
                return int(name)
            level = logging.getLevelName(name)
            if not isinstance(level, int):
                raise ValueError(f"unknown log level: {value!r}")
            return level
        return value  # type: ignore[return-value]

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> DispatchSettings:
        source = os.environ if env is None else env
        data: dict[str, object] = {}
        level = source.get(FAILURE_LOG_LEVEL_ENV)
        if level:
            data["failure_log_level"] = level
        data["trace_listeners"] = _flag(source.get(TRACE_LISTENERS_ENV), default=False)
        return cls(**data)


def _flag(raw: str | None, *, default: bool) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return default


@lru_cache(maxsize=1)
def get_settings() -> DispatchSettings:
    """Return process settings, read from the environment on first use."""
    return DispatchSettings.from_env()


def reload_settings() -> DispatchSettings:
    get_settings.cache_clear()
    return get_settings()
