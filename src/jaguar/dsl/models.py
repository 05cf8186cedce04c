"""
Data model for declaratively built test trees.

Suites and tests live in a ``SuiteTree`` arena and are addressed by integer
ids. The tree also owns the per-suite merged hook chain cache, so a tree
reused across runs keeps its chains until ``reset()`` starts a new
generation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from jaguar.runner.hooks import HookChains

Hook = Callable[..., Any]
"""A zero-argument or context-argument callable, sync or async."""

TestBody = Callable[..., Any]

ROOT_SUITE_TITLE = "Root"


class TestOptions(BaseModel):
    """Per-test execution options."""

    __test__ = False

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_ms: float | None = Field(default=None, gt=0)
    retry: int = Field(default=0, ge=0, le=100)
    tags: tuple[str, ...] = ()

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> tuple[str, ...]:
        """Accept a single tag or any iterable of tags."""
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(v)


@dataclass
class HookSet:
    """Lifecycle hooks declared directly on a suite."""

    before_all: list[Hook] = field(default_factory=list)
    after_all: list[Hook] = field(default_factory=list)
    before_each: list[Hook] = field(default_factory=list)
    after_each: list[Hook] = field(default_factory=list)


@dataclass
class SuiteNode:
    """A named grouping of tests and nested suites."""

    id: int
    title: str
    parent_id: int | None = None
    test_ids: list[int] = field(default_factory=list)
    suite_ids: list[int] = field(default_factory=list)
    hooks: HookSet = field(default_factory=HookSet)
    context: dict[str, Any] = field(default_factory=dict)
    only: bool = False
    skip: bool = False


@dataclass(frozen=True)
class TestCase:
    """A single registered test."""

    __test__ = False

    id: int
    suite_id: int
    title: str
    body: TestBody
    options: TestOptions = field(default_factory=TestOptions)
    only: bool = False
    skip: bool = False


class SuiteTree:
    """
    Arena holding every suite and test of one test tree.

    Id 0 is always the root suite of the current generation.
    """

    def __init__(self) -> None:
        self.generation = 0
        self._suites: list[SuiteNode] = []
        self._tests: list[TestCase] = []
        self.hook_cache: dict[int, HookChains] = {}
        self.root_id = self._add_root()

    def _add_root(self) -> int:
        root = SuiteNode(id=len(self._suites), title=ROOT_SUITE_TITLE)
        self._suites.append(root)
        return root.id

    def reset(self) -> None:
        """Discard all suites, tests and cached hook chains."""
        self.generation += 1
        self._suites = []
        self._tests = []
        self.hook_cache = {}
        self.root_id = self._add_root()

    @property
    def root(self) -> SuiteNode:
        return self._suites[self.root_id]

    def add_suite(
        self,
        parent_id: int,
        title: str,
        *,
        only: bool = False,
        skip: bool = False,
        context: dict[str, Any] | None = None,
    ) -> int:
        """Create a child suite and return its id."""
        parent = self.suite(parent_id)
        node = SuiteNode(
            id=len(self._suites),
            title=title,
            parent_id=parent.id,
            context=dict(context or {}),
            only=only,
            skip=skip,
        )
        self._suites.append(node)
        parent.suite_ids.append(node.id)
        return node.id

    def add_test(
        self,
        suite_id: int,
        title: str,
        body: TestBody,
        options: TestOptions | None = None,
        *,
        only: bool = False,
        skip: bool = False,
    ) -> int:
        """Register a test in a suite and return its id."""
        suite = self.suite(suite_id)
        test = TestCase(
            id=len(self._tests),
            suite_id=suite.id,
            title=title,
            body=body,
            options=options or TestOptions(),
            only=only,
            skip=skip,
        )
        self._tests.append(test)
        suite.test_ids.append(test.id)
        return test.id

    def suite(self, suite_id: int) -> SuiteNode:
        if not 0 <= suite_id < len(self._suites):
            raise KeyError(f"Unknown suite id {suite_id}")
        return self._suites[suite_id]

    def test(self, test_id: int) -> TestCase:
        if not 0 <= test_id < len(self._tests):
            raise KeyError(f"Unknown test id {test_id}")
        return self._tests[test_id]

    def tests_of(self, suite_id: int) -> list[TestCase]:
        return [self._tests[i] for i in self.suite(suite_id).test_ids]

    def children_of(self, suite_id: int) -> list[SuiteNode]:
        return [self._suites[i] for i in self.suite(suite_id).suite_ids]

    def path_of(self, suite_id: int) -> list[str]:
        """Titles from the first non-root ancestor down to the suite."""
        titles: list[str] = []
        node: SuiteNode | None = self.suite(suite_id)
        while node is not None and node.parent_id is not None:
            titles.append(node.title)
            node = self._suites[node.parent_id]
        return list(reversed(titles))

    def full_title(self, test_id: int) -> str:
        test = self.test(test_id)
        return " > ".join([*self.path_of(test.suite_id), test.title])

    def iter_tests(self, suite_id: int | None = None) -> Iterator[TestCase]:
        """Yield tests depth-first in declaration order."""
        start = self.root_id if suite_id is None else suite_id
        yield from self.tests_of(start)
        for child in self.children_of(start):
            yield from self.iter_tests(child.id)

    @property
    def suite_count(self) -> int:
        return len(self._suites)

    @property
    def test_count(self) -> int:
        return len(self._tests)
