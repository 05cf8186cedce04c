"""
Assertions for test bodies.

Provides:
- MatcherRegistry with explicit registration and unknown-matcher errors
- expect() returning an Expectation bound to a registry
- Built-in matchers including to_match_snapshot
"""

from jaguar.assertions.matchers import (
    DEFAULT_MATCHERS,
    Expectation,
    Matcher,
    MatcherRegistry,
    default_registry,
    expect,
    extend_expect,
)

__all__ = [
    "DEFAULT_MATCHERS",
    "Expectation",
    "Matcher",
    "MatcherRegistry",
    "default_registry",
    "expect",
    "extend_expect",
]
