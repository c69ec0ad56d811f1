"""Tests for listener failure isolation and reporting."""

from __future__ import annotations

import logging

import pytest

from evtarget.config import reload_settings
from evtarget.domain.errors import CallbackFailure
from evtarget.domain.events import Event
from evtarget.services.reporting import (
    collect_failures,
    reset_error_reporter,
    set_error_reporter,
)
from evtarget.target import EventTarget


@pytest.fixture(autouse=True)
def _default_settings(monkeypatch):
    monkeypatch.delenv("EVTARGET_FAILURE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("EVTARGET_TRACE_LISTENERS", raising=False)
    reload_settings()
    yield
    reload_settings()


def _raise_value_error(event):
    raise ValueError("bad listener")


def test_failing_listener_does_not_stop_later_ones():
    target = EventTarget()
    calls = []
    target.add("test", lambda event: calls.append("A"))
    target.add("test", _raise_value_error)
    target.add("test", lambda event: calls.append("C"))

    with collect_failures() as failures:
        result = target.dispatch(Event("test", cancelable=True))

    assert calls == ["A", "C"]
    assert result is True
    assert len(failures) == 1

    failure = failures[0]
    assert isinstance(failure, CallbackFailure)
    assert failure.event_type == "test"
    assert isinstance(failure.error, ValueError)
    assert failure.__cause__ is failure.error
    assert failure.listener.callback is _raise_value_error


def test_failure_does_not_prevent_default():
    target = EventTarget()
    target.add("test", _raise_value_error)

    event = Event("test", cancelable=True)
    with collect_failures():
        assert target.dispatch(event) is True
    assert event.default_prevented is False


def test_failure_is_logged_by_default(caplog):
    target = EventTarget()
    target.add("test", _raise_value_error)

    with caplog.at_level(logging.ERROR, logger="evtarget.services.reporting"):
        target.dispatch(Event("test"))

    records = [r for r in caplog.records if r.name == "evtarget.services.reporting"]
    assert len(records) == 1
    assert records[0].levelno == logging.ERROR
    assert "'test'" in records[0].getMessage()
    assert records[0].exc_info[0] is ValueError


def test_failure_log_level_follows_settings(monkeypatch, caplog):
    monkeypatch.setenv("EVTARGET_FAILURE_LOG_LEVEL", "warning")
    reload_settings()

    target = EventTarget()
    target.add("test", _raise_value_error)

    with caplog.at_level(logging.DEBUG, logger="evtarget.services.reporting"):
        target.dispatch(Event("test"))

    assert [r.levelno for r in caplog.records] == [logging.WARNING]


def test_custom_reporter_receives_failures():
    target = EventTarget()
    target.add("test", _raise_value_error)
    received = []

    token = set_error_reporter(received.append)
    try:
        target.dispatch(Event("test"))
    finally:
        reset_error_reporter(token)

    assert [type(f.error) for f in received] == [ValueError]


def test_broken_reporter_is_contained(caplog):
    target = EventTarget()
    calls = []
    target.add("test", _raise_value_error)
    target.add("test", lambda event: calls.append("after"))

    def broken(failure):
        raise RuntimeError("reporter down")

    token = set_error_reporter(broken)
    try:
        with caplog.at_level(logging.ERROR, logger="evtarget.services.reporting"):
            target.dispatch(Event("test"))
    finally:
        reset_error_reporter(token)

    assert calls == ["after"]
    assert any("Error reporter failed" in r.getMessage() for r in caplog.records)


def test_base_exceptions_are_not_swallowed():
    target = EventTarget()

    def interrupt(event):
        raise KeyboardInterrupt

    target.add("test", interrupt)
    event = Event("test")
    with pytest.raises(KeyboardInterrupt):
        target.dispatch(event)
    assert not event.dispatching


def test_failing_handle_event_object_is_reported():
    class Listener:
        def handle_event(self, event):
            raise LookupError("missing")

    target = EventTarget()
    target.add("test", Listener())

    with collect_failures() as failures:
        target.dispatch(Event("test"))

    assert [type(f.error) for f in failures] == [LookupError]
