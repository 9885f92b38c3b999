"""Structured stage events for route analysis.

Each analysis stage emits one :class:`StageEvent` through an :class:`EventBus`.
Events are always written to the standard logger; subscribers (a UI console,
a test, a metrics sink) receive the same event object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageEvent:
    """One diagnostic event emitted by a pipeline stage."""

    stage: str
    """Stage name, e.g. ``"zones"`` or ``"bends"``."""

    message: str
    level: int = logging.INFO
    data: dict = field(default_factory=dict)
    """Structured counters and values for the stage."""


Handler = Callable[[StageEvent], None]


class EventBus:
    """Fan-out of :class:`StageEvent` objects to subscribers and the logger."""

    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register *handler*; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def emit(self, stage: str, message: str, level: int = logging.INFO, **data) -> StageEvent:
        """Log and deliver an event; a failing subscriber never interrupts the stage."""
        event = StageEvent(stage=stage, message=message, level=level, data=data)
        _logger.log(level, "[%s] %s %s", stage, message, data or "")
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as exc:
                _logger.warning("Event handler %r failed: %s", handler, exc)
        return event


def emit(events: EventBus | None, stage: str, message: str, level: int = logging.INFO, **data) -> None:
    """Emit through *events* if given, otherwise just log."""
    if events is not None:
        events.emit(stage, message, level, **data)
    else:
        _logger.log(level, "[%s] %s %s", stage, message, data or "")
