"""
Lifecycle event publishing.

Provides:
- EventBus for synchronous publish/subscribe with listener error isolation
- EventType names, camelCase aliases and payload dataclasses
"""

from jaguar.events.bus import (
    EventBus,
    EventType,
    Listener,
    RunEndEvent,
    SuiteEvent,
    TestEvent,
    resolve_event_type,
)

__all__ = [
    "EventBus",
    "EventType",
    "Listener",
    "RunEndEvent",
    "SuiteEvent",
    "TestEvent",
    "resolve_event_type",
]
