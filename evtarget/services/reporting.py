"""Reporting of listener failures caught during dispatch."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

from evtarget.config import get_settings
from evtarget.domain.errors import CallbackFailure

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[CallbackFailure], None]


def log_failure(failure: CallbackFailure) -> None:
    """Default reporter: log the failure with the listener's traceback."""
    error = failure.error
    logger.log(
        get_settings().failure_log_level,
        "Listener for %r raised %s",
        failure.event_type,
        type(error).__name__,
        exc_info=(type(error), error, error.__traceback__),
    )


_REPORTER: ContextVar[ErrorReporter] = ContextVar("evtarget_error_reporter", default=log_failure)


def set_error_reporter(reporter: ErrorReporter | None) -> Token[ErrorReporter]:
    """Install *reporter* for the current context; ``None`` restores logging.

    Returns the token to hand to :func:`reset_error_reporter`.
    """
    return _REPORTER.set(reporter if reporter is not None else log_failure)


def reset_error_reporter(token: Token[ErrorReporter]) -> None:
    _REPORTER.reset(token)


def report(failure: CallbackFailure) -> None:
    try:
        _REPORTER.get()(failure)
    except Exception:
        logger.exception("Error reporter failed while reporting %r", failure.event_type)


@contextmanager
def collect_failures() -> Iterator[list[CallbackFailure]]:
    """Collect failures reported inside the block instead of logging them."""
    failures: list[CallbackFailure] = []
    token = set_error_reporter(failures.append)
    try:
        yield failures
    finally:
        reset_error_reporter(token)
