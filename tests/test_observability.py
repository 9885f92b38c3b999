"""Stage event bus (4 tests)."""

from __future__ import annotations

import logging

from route_copilot.observability import EventBus, emit


def test_subscriber_receives_event():
    bus = EventBus()
    seen = []
    bus.subscribe(seen.append)
    event = bus.emit("zones", "classified", zones=3)
    assert seen == [event]
    assert event.data == {"zones": 3}
    assert event.level == logging.INFO


def test_unsubscribe():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(seen.append)
    unsubscribe()
    bus.emit("zones", "classified")
    assert seen == []


def test_failing_subscriber_does_not_stop_others(caplog):
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("handler bug")

    bus.subscribe(broken)
    bus.subscribe(seen.append)
    with caplog.at_level(logging.WARNING, logger="route_copilot.observability"):
        bus.emit("bends", "detected")
    assert len(seen) == 1
    assert "handler bug" in caplog.text


def test_emit_without_bus_logs(caplog):
    with caplog.at_level(logging.INFO, logger="route_copilot.observability"):
        emit(None, "callouts", "grouped", fast=4)
    assert "[callouts] grouped" in caplog.text
