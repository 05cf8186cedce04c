"""
Run-scoped state visible to code executing inside a test.

The current test is published through a ContextVar. Each scheduled test runs
in its own asyncio task context, so concurrent tests and consecutive runs
never observe each other's values.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from jaguar.errors import JaguarError

if TYPE_CHECKING:
    from jaguar.storage.snapshot_store import SnapshotStore


@dataclass(frozen=True)
class TestScope:
    """What a running test exposes to matchers and helpers."""

    __test__ = False

    title: str
    full_title: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)
    snapshots: SnapshotStore | None = None


CURRENT_TEST: ContextVar[TestScope | None] = ContextVar("jaguar_current_test", default=None)


@contextmanager
def active_test(scope: TestScope) -> Iterator[TestScope]:
    token = CURRENT_TEST.set(scope)
    try:
        yield scope
    finally:
        CURRENT_TEST.reset(token)


def current_test() -> TestScope:
    """Return the scope of the test currently executing in this context."""
    scope = CURRENT_TEST.get()
    if scope is None:
        raise JaguarError("No test is currently running")
    return scope


def current_test_title() -> str | None:
    scope = CURRENT_TEST.get()
    return scope.title if scope is not None else None
