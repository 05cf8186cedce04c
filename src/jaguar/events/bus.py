"""
Publish/subscribe channel for test lifecycle events.

Listeners run synchronously in subscription order before ``emit`` returns.
A listener that raises is logged and skipped; the remaining listeners and
the emitting run continue.
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable

import structlog

from jaguar.errors import JaguarError

logger = structlog.get_logger(__name__)

Listener = Callable[..., Any]


class EventType(StrEnum):
    """Lifecycle events published during a run."""

    SUITE_START = "suite_start"
    SUITE_END = "suite_end"
    TEST_START = "test_start"
    TEST_PASS = "test_pass"
    TEST_FAIL = "test_fail"
    TEST_SKIP = "test_skip"
    RUN_END = "run_end"


_ALIASES = {
    "suiteStart": EventType.SUITE_START,
    "suiteEnd": EventType.SUITE_END,
    "testStart": EventType.TEST_START,
    "testPass": EventType.TEST_PASS,
    "testFail": EventType.TEST_FAIL,
    "testSkip": EventType.TEST_SKIP,
    "runEnd": EventType.RUN_END,
}


def resolve_event_type(name: EventType | str) -> EventType:
    """
    Map an event name onto its EventType.

    Accepts the snake_case values and their camelCase spellings
    (``testPass``).

    Raises:
        JaguarError: If the name is not a known event
    """
    if isinstance(name, EventType):
        return name
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return EventType(name)
    except ValueError:
        valid = ", ".join(e.value for e in EventType)
        raise JaguarError(f"Unknown event '{name}' (valid: {valid})") from None


@dataclass(frozen=True)
class SuiteEvent:
    """Payload for suite_start and suite_end."""

    suite_id: int
    title: str
    path: tuple[str, ...] = ()


@dataclass(frozen=True)
class TestEvent:
    """Payload for test_start, test_pass, test_fail and test_skip."""

    __test__ = False

    test_id: int
    title: str
    full_title: str
    suite_title: str
    tags: tuple[str, ...] = ()
    duration_ms: int | None = None
    error: BaseException | None = None
    attempts: int = 0
    ts: float = field(default_factory=time.monotonic)

    @property
    def error_message(self) -> str | None:
        if self.error is None:
            return None
        return str(self.error) or type(self.error).__name__


@dataclass(frozen=True)
class RunEndEvent:
    """Payload for run_end."""

    total_duration_ms: int
    passed: int = 0
    failed: int = 0
    skipped: int = 0


class EventBus:
    """
    Synchronous fan-out of named events to subscribers.

    Usage:
        bus = EventBus()
        detach = bus.subscribe(EventType.TEST_FAIL, lambda event: ...)
        bus.emit(EventType.TEST_FAIL, event)
        detach()
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._log = logger.bind(component="event_bus")

    def subscribe(self, event_type: EventType | str, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for an event.

        Returns:
            Callable that removes this subscription
        """
        if not callable(listener):
            raise TypeError("listener must be callable")

        name = str(resolve_event_type(event_type))
        self._listeners[name].append(listener)

        def detach() -> None:
            listeners = self._listeners.get(name, [])
            if listener in listeners:
                listeners.remove(listener)

        return detach

    def emit(self, event_type: EventType | str, *payload: Any) -> None:
        """Invoke every listener registered for the event, in order."""
        name = str(resolve_event_type(event_type))
        for listener in list(self._listeners.get(name, ())):
            try:
                listener(*payload)
            except Exception as e:
                self._log.error(
                    "Error in event listener",
                    event_type=name,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                )

    def listener_count(self, event_type: EventType | str) -> int:
        return len(self._listeners.get(str(resolve_event_type(event_type)), ()))

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._listeners.clear()
