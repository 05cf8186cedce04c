"""
Unit tests for hook composition and invocation.
"""

from __future__ import annotations

from typing import Any

import pytest

from jaguar.dsl.builder import SuiteBuilder
from jaguar.dsl.models import SuiteTree
from jaguar.runner.hooks import accepts_context, call_with_context, merge_hooks, run_hooks


def _noop() -> None:
    return None


class TestMergeHooks:
    """Tests for merge_hooks."""

    def test_before_runs_ancestors_first_after_runs_own_first(self, tree: SuiteTree) -> None:
        """Test chain ordering relative to inherited hooks."""
        a, b, c, d = (lambda: None), (lambda: None), (lambda: None), (lambda: None)
        suite_id = tree.add_suite(tree.root_id, "child")
        tree.suite(suite_id).hooks.before_each.append(b)
        tree.suite(suite_id).hooks.after_each.append(d)

        chains = merge_hooks(tree, suite_id, [a], [c])

        assert chains.before == (a, b)
        assert chains.after == (d, c)

    def test_merge_is_idempotent(self, tree: SuiteTree) -> None:
        """Test repeated merges return the same cached chains."""
        suite_id = tree.add_suite(tree.root_id, "child")
        tree.suite(suite_id).hooks.before_each.append(_noop)

        first = merge_hooks(tree, suite_id, [], [])
        second = merge_hooks(tree, suite_id, [], [])

        assert first is second
        assert first.before == (_noop,)

    def test_cache_ignores_later_hook_registration(self, tree: SuiteTree) -> None:
        """Test chains stay as first computed until the tree is reset."""
        suite_id = tree.add_suite(tree.root_id, "child")
        first = merge_hooks(tree, suite_id)

        tree.suite(suite_id).hooks.before_each.append(_noop)

        assert merge_hooks(tree, suite_id) is first
        assert merge_hooks(tree, suite_id).before == ()

    def test_reset_drops_cache(self, tree: SuiteTree) -> None:
        """Test tree reset clears cached chains."""
        merge_hooks(tree, tree.root_id)
        assert tree.hook_cache

        tree.reset()

        assert tree.hook_cache == {}

    def test_nested_suites_compose_through_builder(self, builder: SuiteBuilder) -> None:
        """Test three levels of nesting produce A, B, C order."""
        order: list[str] = []
        ids: dict[str, int] = {}

        def outer() -> None:
            ids["outer"] = builder.current_suite_id
            builder.before_each(lambda: order.append("A"))

            def middle() -> None:
                ids["middle"] = builder.current_suite_id
                builder.before_each(lambda: order.append("B"))

                def inner() -> None:
                    ids["inner"] = builder.current_suite_id
                    builder.before_each(lambda: order.append("C"))

                builder.describe("inner", inner)

            builder.describe("middle", middle)

        builder.describe("outer", outer)

        tree = builder.tree
        outer_chains = merge_hooks(tree, ids["outer"])
        middle_chains = merge_hooks(tree, ids["middle"], outer_chains.before, outer_chains.after)
        inner_chains = merge_hooks(tree, ids["inner"], middle_chains.before, middle_chains.after)
        for hook in inner_chains.before:
            hook()

        assert order == ["A", "B", "C"]


class TestHookInvocation:
    """Tests for calling hooks with or without the run context."""

    def test_accepts_context(self) -> None:
        """Test signature inspection for context parameters."""
        assert accepts_context(lambda ctx: None)
        assert accepts_context(lambda *args: None)
        assert not accepts_context(lambda: None)
        assert not accepts_context(lambda *, key=None: None)

    @pytest.mark.asyncio
    async def test_call_with_context_passes_context(self) -> None:
        """Test hooks taking an argument receive the context."""
        context: dict[str, Any] = {}

        await call_with_context(lambda ctx: ctx.update(seen=True), context)

        assert context == {"seen": True}

    @pytest.mark.asyncio
    async def test_call_with_context_awaits_coroutines(self) -> None:
        """Test async hooks are awaited."""
        calls: list[str] = []

        async def hook() -> str:
            calls.append("ran")
            return "done"

        assert await call_with_context(hook, {}) == "done"
        assert calls == ["ran"]

    @pytest.mark.asyncio
    async def test_run_hooks_stops_at_first_failure(self) -> None:
        """Test a failing hook propagates and later hooks do not run."""
        calls: list[str] = []

        def failing() -> None:
            raise ValueError("hook broke")

        with pytest.raises(ValueError, match="hook broke"):
            await run_hooks([lambda: calls.append("first"), failing, lambda: calls.append("last")], {})

        assert calls == ["first"]
