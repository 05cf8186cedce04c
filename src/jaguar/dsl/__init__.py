"""
Suite-building DSL.

Provides:
- SuiteTree arena of suites and tests addressed by integer ids
- SuiteBuilder with describe/it/each and hook registration
"""

from jaguar.dsl.builder import SuiteBuilder
from jaguar.dsl.models import (
    ROOT_SUITE_TITLE,
    Hook,
    HookSet,
    SuiteNode,
    SuiteTree,
    TestBody,
    TestCase,
    TestOptions,
)

__all__ = [
    # Builder
    "SuiteBuilder",
    # Models
    "ROOT_SUITE_TITLE",
    "Hook",
    "HookSet",
    "SuiteNode",
    "SuiteTree",
    "TestBody",
    "TestCase",
    "TestOptions",
]
