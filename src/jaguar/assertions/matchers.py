"""
Matcher registry and the ``expect`` assertion API.

A matcher is a function ``(received, *args) -> None`` that raises on
failure. ``expect(value)`` returns an ``Expectation`` whose attributes
resolve to registered matchers with the value bound as first argument.
Unregistered names raise ``UnknownMatcherError``.
"""

from __future__ import annotations

import re
from functools import partial
from typing import Any, Callable, Iterator, Mapping

import structlog

from jaguar.errors import ExpectationError, JaguarError, UnknownMatcherError
from jaguar.runner.context import current_test

logger = structlog.get_logger(__name__)

Matcher = Callable[..., None]

_SCALAR_TYPES = (int, float, complex, str, bytes, bool, type(None))


def to_be(received: Any, expected: Any) -> None:
    """Identity for objects, equality for scalar values."""
    if received is expected:
        return
    if isinstance(expected, _SCALAR_TYPES) and type(received) is type(expected) and received == expected:
        return
    raise ExpectationError(
        f"Expected {received!r} to be {expected!r}",
        expected=expected,
        received=received,
        matcher="to_be",
    )


def to_equal(received: Any, expected: Any) -> None:
    if received != expected:
        raise ExpectationError(
            f"Expected {received!r} to equal {expected!r}",
            expected=expected,
            received=received,
            matcher="to_equal",
        )


def to_be_greater_than(received: Any, expected: Any) -> None:
    if not received > expected:
        raise ExpectationError(
            f"Expected {received!r} to be greater than {expected!r}",
            expected=expected,
            received=received,
            matcher="to_be_greater_than",
        )


def to_be_less_than(received: Any, expected: Any) -> None:
    if not received < expected:
        raise ExpectationError(
            f"Expected {received!r} to be less than {expected!r}",
            expected=expected,
            received=received,
            matcher="to_be_less_than",
        )


def to_match(received: Any, pattern: str | re.Pattern[str]) -> None:
    regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
    if not isinstance(received, str) or regex.search(received) is None:
        raise ExpectationError(
            f"Expected {received!r} to match {regex.pattern!r}",
            expected=regex.pattern,
            received=received,
            matcher="to_match",
        )


def to_contain(received: Any, item: Any) -> None:
    try:
        found = item in received
    except TypeError:
        found = False
    if not found:
        raise ExpectationError(
            f"Expected {received!r} to contain {item!r}",
            expected=item,
            received=received,
            matcher="to_contain",
        )


def to_be_truthy(received: Any) -> None:
    if not received:
        raise ExpectationError(
            f"Expected {received!r} to be truthy",
            received=received,
            matcher="to_be_truthy",
        )


def to_be_none(received: Any) -> None:
    if received is not None:
        raise ExpectationError(
            f"Expected {received!r} to be None",
            received=received,
            matcher="to_be_none",
        )


def to_match_snapshot(received: Any) -> None:
    """Compare with the snapshot stored under the running test's title."""
    scope = current_test()
    if scope.snapshots is None:
        raise JaguarError(f"No snapshot store configured for '{scope.title}'")
    scope.snapshots.match(scope.title, received)


DEFAULT_MATCHERS: dict[str, Matcher] = {
    "to_be": to_be,
    "to_equal": to_equal,
    "to_be_greater_than": to_be_greater_than,
    "to_be_less_than": to_be_less_than,
    "to_match": to_match,
    "to_contain": to_contain,
    "to_be_truthy": to_be_truthy,
    "to_be_none": to_be_none,
    "to_match_snapshot": to_match_snapshot,
}


class MatcherRegistry:
    """
    Lookup table of named matchers.

    Usage:
        registry = MatcherRegistry.with_defaults()

        @registry.register("to_be_even")
        def to_be_even(received):
            if received % 2:
                raise ExpectationError(f"{received} is odd")
    """

    def __init__(self, matchers: Mapping[str, Matcher] | None = None) -> None:
        self._matchers: dict[str, Matcher] = {}
        self._log = logger.bind(component="matcher_registry")
        if matchers:
            self.extend(matchers)

    @classmethod
    def with_defaults(cls) -> MatcherRegistry:
        return cls(DEFAULT_MATCHERS)

    def register(self, name: str, fn: Matcher | None = None) -> Any:
        """Register a matcher; without ``fn`` acts as a decorator."""
        if fn is None:
            def decorator(func: Matcher) -> Matcher:
                self.register(name, func)
                return func

            return decorator

        if not name.isidentifier() or name.startswith("_"):
            raise ValueError(f"Invalid matcher name: {name!r}")
        if not callable(fn):
            raise TypeError(f"Matcher '{name}' must be callable")

        if name in self._matchers:
            self._log.debug("Replacing matcher", matcher=name)
        self._matchers[name] = fn
        return fn

    def extend(self, matchers: Mapping[str, Matcher]) -> None:
        for name, fn in matchers.items():
            self.register(name, fn)

    def get(self, name: str) -> Matcher:
        try:
            return self._matchers[name]
        except KeyError:
            raise UnknownMatcherError(name, list(self._matchers)) from None

    def names(self) -> list[str]:
        return sorted(self._matchers)

    def copy(self) -> MatcherRegistry:
        return type(self)(self._matchers)

    def __contains__(self, name: object) -> bool:
        return name in self._matchers

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._matchers)


class Expectation:
    """A received value awaiting a matcher call."""

    __slots__ = ("_received", "_registry")

    def __init__(self, received: Any, registry: MatcherRegistry) -> None:
        self._received = received
        self._registry = registry

    def __getattr__(self, name: str) -> Callable[..., None]:
        if name.startswith("_"):
            raise AttributeError(name)
        return partial(self._registry.get(name), self._received)

    def __dir__(self) -> list[str]:
        return self._registry.names()

    def __repr__(self) -> str:
        return f"Expectation({self._received!r})"


default_registry = MatcherRegistry.with_defaults()


def expect(received: Any, registry: MatcherRegistry | None = None) -> Expectation:
    """Wrap a value for assertion against registered matchers."""
    return Expectation(received, registry if registry is not None else default_registry)


def extend_expect(matchers: Mapping[str, Matcher]) -> None:
    """Add matchers to the default registry."""
    default_registry.extend(matchers)
