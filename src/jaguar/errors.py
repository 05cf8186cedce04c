"""
Exception hierarchy for the Jaguar test engine.

Failures raised inside a test body drive the retry loop and surface as
``test_fail`` events; suite-level hook errors propagate out of the run.
"""

from __future__ import annotations

from typing import Any


class JaguarError(Exception):
    """Base exception for engine errors."""


class ExpectationError(AssertionError):
    """Raised by a matcher when an expectation is not met."""

    def __init__(
        self,
        message: str,
        expected: Any = None,
        received: Any = None,
        matcher: str | None = None,
    ) -> None:
        self.message = message
        self.expected = expected
        self.received = received
        self.matcher = matcher
        super().__init__(message)


class SnapshotMismatchError(ExpectationError):
    """Raised when a received value differs from its stored snapshot."""


class UnknownMatcherError(JaguarError, AttributeError):
    """Raised when an expectation uses a matcher that was never registered."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = sorted(available or [])
        hint = f" (registered: {', '.join(self.available)})" if self.available else ""
        super().__init__(f"Unknown matcher '{name}'{hint}")


class TestTimeoutError(JaguarError):
    """Raised when a test attempt exceeds its time budget."""

    __test__ = False

    def __init__(self, timeout_ms: float) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Test timed out after {timeout_ms:g}ms")


class HookError(JaguarError):
    """Raised when a per-test hook fails; the cause is chained."""

    def __init__(self, kind: str, test_title: str, cause: BaseException) -> None:
        self.kind = kind
        self.test_title = test_title
        self.cause = cause
        super().__init__(f"{kind} hook failed for '{test_title}': {cause}")
        self.__cause__ = cause


class TestLoadError(JaguarError):
    """Raised when a test file cannot be imported."""

    __test__ = False
