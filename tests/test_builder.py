"""
Unit tests for the suite-building API and the suite tree.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from jaguar.dsl.builder import SuiteBuilder
from jaguar.dsl.models import ROOT_SUITE_TITLE, SuiteTree, TestOptions
from jaguar.errors import JaguarError


class TestSuiteTree:
    """Tests for SuiteTree."""

    def test_starts_with_root(self, tree: SuiteTree) -> None:
        """Test a fresh tree holds only the root suite."""
        assert tree.root.title == ROOT_SUITE_TITLE
        assert tree.suite_count == 1
        assert tree.test_count == 0

    def test_paths_and_full_titles(self, tree: SuiteTree) -> None:
        """Test full titles join suite titles below the root."""
        outer = tree.add_suite(tree.root_id, "Math")
        inner = tree.add_suite(outer, "add")
        test_id = tree.add_test(inner, "sums", lambda: None)

        assert tree.path_of(inner) == ["Math", "add"]
        assert tree.full_title(test_id) == "Math > add > sums"

    def test_iter_tests_is_depth_first(self, tree: SuiteTree) -> None:
        """Test iteration visits a suite's tests before its children."""
        child = tree.add_suite(tree.root_id, "child")
        tree.add_test(child, "nested", lambda: None)
        tree.add_test(tree.root_id, "top", lambda: None)

        assert [t.title for t in tree.iter_tests()] == ["top", "nested"]

    def test_unknown_ids_raise(self, tree: SuiteTree) -> None:
        """Test out-of-range ids are rejected."""
        with pytest.raises(KeyError):
            tree.suite(5)
        with pytest.raises(KeyError):
            tree.test(-1)

    def test_reset_starts_new_generation(self, tree: SuiteTree) -> None:
        """Test reset discards nodes and bumps the generation."""
        tree.add_suite(tree.root_id, "child")
        generation = tree.generation

        tree.reset()

        assert tree.generation == generation + 1
        assert tree.suite_count == 1
        assert tree.children_of(tree.root_id) == []


class TestTestOptions:
    """Tests for TestOptions validation."""

    def test_tags_normalized(self) -> None:
        """Test a single tag string becomes a tuple."""
        assert TestOptions(tags="smoke").tags == ("smoke",)
        assert TestOptions(tags=["a", "b"]).tags == ("a", "b")

    def test_invalid_values_rejected(self) -> None:
        """Test timeout must be positive and retry non-negative."""
        with pytest.raises(ValidationError):
            TestOptions(timeout_ms=0)
        with pytest.raises(ValidationError):
            TestOptions(retry=-1)


class TestSuiteBuilder:
    """Tests for SuiteBuilder."""

    def test_describe_nests_suites(self, builder: SuiteBuilder) -> None:
        """Test describe callbacks register children under the current suite."""
        def outer() -> None:
            builder.it("first", lambda: None)
            builder.describe("inner", lambda: builder.it("second", lambda: None))

        outer_id = builder.describe("outer", outer)

        tree = builder.tree
        assert [s.title for s in tree.children_of(outer_id)] == ["inner"]
        assert [tree.full_title(t.id) for t in tree.iter_tests()] == [
            "outer > first",
            "outer > inner > second",
        ]
        assert builder.current_suite_id == tree.root_id

    def test_decorator_form(self, builder: SuiteBuilder) -> None:
        """Test describe and it work as decorators and return the function."""
        @builder.describe("suite")
        def suite() -> None:
            @builder.it("case", retry=2, tags=["fast"])
            def case() -> None:
                pass

        test_case = next(builder.tree.iter_tests())
        assert test_case.title == "case"
        assert test_case.options.retry == 2
        assert test_case.options.tags == ("fast",)
        assert callable(suite)

    def test_only_and_skip_flags(self, builder: SuiteBuilder) -> None:
        """Test .only and .skip variants set flags on suites and tests."""
        focused = builder.describe.only("focused", lambda: None)
        skipped = builder.describe.skip("skipped", lambda: None)
        test_only = builder.it.only("t1", lambda: None)
        test_skip = builder.test.skip("t2", lambda: None)

        tree = builder.tree
        assert tree.suite(focused).only and not tree.suite(focused).skip
        assert tree.suite(skipped).skip
        assert tree.test(test_only).only
        assert tree.test(test_skip).skip

    def test_async_describe_rejected(self, builder: SuiteBuilder) -> None:
        """Test describe callbacks must be synchronous."""
        async def body() -> None:
            pass

        with pytest.raises(JaguarError, match="must be synchronous"):
            builder.describe("async", body)

        assert builder.current_suite_id == builder.tree.root_id

    def test_non_callable_body_rejected(self, builder: SuiteBuilder) -> None:
        """Test test bodies must be callable."""
        with pytest.raises(TypeError):
            builder.it("bad", 42)  # type: ignore[arg-type]

    def test_each_registers_one_test_per_case(self, builder: SuiteBuilder) -> None:
        """Test each([2, 3, 4]) titles cases and binds each value."""
        received: list[int] = []

        builder.each([2, 3, 4])("is positive", lambda n: received.append(n))

        tests = list(builder.tree.iter_tests())
        assert [t.title for t in tests] == [
            "is positive [case 0]",
            "is positive [case 1]",
            "is positive [case 2]",
        ]
        for t in tests:
            t.body()
        assert received == [2, 3, 4]

    def test_each_as_decorator(self, builder: SuiteBuilder) -> None:
        """Test each registration works as a decorator with options."""
        @builder.each(["a"])("letter", timeout_ms=100)
        def check(letter: str) -> None:
            pass

        test_case = next(builder.tree.iter_tests())
        assert test_case.title == "letter [case 0]"
        assert test_case.options.timeout_ms == 100

    def test_hooks_register_on_current_suite(self, builder: SuiteBuilder) -> None:
        """Test hook functions attach to the enclosing suite."""
        def setup() -> None:
            pass

        def suite() -> None:
            builder.before_all(setup)
            builder.before_each(setup)
            builder.after_each(setup)
            builder.after_all(setup)

        suite_id = builder.describe("suite", suite)

        hooks = builder.tree.suite(suite_id).hooks
        assert hooks.before_all == [setup]
        assert hooks.before_each == [setup]
        assert hooks.after_each == [setup]
        assert hooks.after_all == [setup]
        assert builder.tree.root.hooks.before_each == []

    def test_reset(self, builder: SuiteBuilder) -> None:
        """Test reset clears registered suites."""
        builder.describe("suite", lambda: builder.it("x", lambda: None))

        builder.reset()

        assert builder.tree.test_count == 0
        assert builder.current_suite_id == builder.tree.root_id
