"""
Suite tree walker.

Traverses a suite tree depth-first:
- suite-level before_all/after_all hooks run sequentially
- a suite's eligible tests run as one bounded-concurrency batch
- child suites start only after the parent's batch completes, one at a time
- every outcome is published on the event bus as it happens
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from functools import partial
from typing import Any, Sequence

import structlog

from jaguar.concurrency.scheduler import TaskFailure, run_concurrent
from jaguar.config import RunConfig
from jaguar.dsl.models import Hook, SuiteNode, SuiteTree, TestCase
from jaguar.errors import HookError
from jaguar.events.bus import EventBus, EventType, RunEndEvent, SuiteEvent, TestEvent
from jaguar.runner.attempt import run_test
from jaguar.runner.context import TestScope, active_test
from jaguar.runner.hooks import HookChains, merge_hooks, run_hooks
from jaguar.storage.snapshot_store import SnapshotStore

logger = structlog.get_logger(__name__)


class TestStatus(StrEnum):
    """Final status of a test in a run."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TestResult:
    """Result of one test in a run."""

    __test__ = False

    test_id: int
    title: str
    full_title: str
    status: TestStatus
    duration_ms: int = 0
    attempts: int = 0
    error: str | None = None


@dataclass
class RunSummary:
    """Aggregated results of a run."""

    duration_ms: int = 0
    results: list[TestResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.status == TestStatus.PASSED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == TestStatus.FAILED)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == TestStatus.SKIPPED)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def is_success(self) -> bool:
        """Check if no executed test failed."""
        return self.failed == 0


class SuiteRunner:
    """
    Executes a suite tree and publishes lifecycle events.

    The config is fixed when the runner is created, which the harness does
    when a run starts.

    Usage:
        runner = SuiteRunner(tree, bus, config)
        summary = await runner.run()
    """

    def __init__(
        self,
        tree: SuiteTree,
        bus: EventBus,
        config: RunConfig,
        snapshots: SnapshotStore | None = None,
    ) -> None:
        self._tree = tree
        self._bus = bus
        self._config = config
        self._snapshots = snapshots or SnapshotStore(
            config.snapshot_dir,
            disabled=config.disable_snapshots,
        )
        self._grep = config.grep_pattern
        self._summary = RunSummary()
        self._log = logger.bind(component="suite_runner")

    async def run(self) -> RunSummary:
        """
        Run the whole tree from its root.

        Raises:
            Exception: Whatever a before_all/after_all hook raised
        """
        self._summary = RunSummary()
        started = time.monotonic()

        self._log.info(
            "Starting run",
            tests=self._tree.test_count,
            concurrency=self._config.concurrency,
            grep=self._config.grep,
        )

        await self.run_suite(self._tree.root_id, {}, (), ())

        self._summary.duration_ms = int((time.monotonic() - started) * 1000)
        self._bus.emit(
            EventType.RUN_END,
            RunEndEvent(
                total_duration_ms=self._summary.duration_ms,
                passed=self._summary.passed,
                failed=self._summary.failed,
                skipped=self._summary.skipped,
            ),
        )

        self._log.info(
            "Run completed",
            passed=self._summary.passed,
            failed=self._summary.failed,
            skipped=self._summary.skipped,
            duration_ms=self._summary.duration_ms,
        )
        return self._summary

    async def run_suite(
        self,
        suite_id: int,
        parent_context: dict[str, Any],
        inherited_before: Sequence[Hook],
        inherited_after: Sequence[Hook],
    ) -> None:
        suite = self._tree.suite(suite_id)
        if suite.skip:
            self._log.debug("Suite skipped", suite=suite.title)
            return

        context = {**parent_context, **suite.context}
        suite_event = SuiteEvent(
            suite_id=suite.id,
            title=suite.title,
            path=tuple(self._tree.path_of(suite.id)),
        )
        self._bus.emit(EventType.SUITE_START, suite_event)

        await run_hooks(suite.hooks.before_all, context)

        chains = merge_hooks(self._tree, suite.id, inherited_before, inherited_after)

        eligible = self._select_tests(suite)
        tasks = [partial(self._execute_test, test, context, chains) for test in eligible]
        outcomes = await run_concurrent(tasks, self._config.concurrency)

        for test, outcome in zip(eligible, outcomes):
            if isinstance(outcome, TaskFailure):
                # Raised outside the guarded hook sections
                self._log.error("Test task crashed", test=test.title, error=str(outcome.error))
                self._finish(test, passed=False, duration_ms=0, error=outcome.error)

        for child in self._select_suites(suite):
            await self.run_suite(child.id, context, chains.before, chains.after)

        await run_hooks(suite.hooks.after_all, context)

        self._bus.emit(EventType.SUITE_END, suite_event)

    def _select_tests(self, suite: SuiteNode) -> list[TestCase]:
        """Apply only/grep filters; skipped survivors are reported, not run."""
        tests = self._tree.tests_of(suite.id)
        has_only = any(test.only for test in tests)

        eligible: list[TestCase] = []
        for test in tests:
            if has_only:
                if not test.only:
                    continue
            elif self._grep is not None and not self._grep.search(test.title):
                continue

            if test.skip:
                self._record(test, TestStatus.SKIPPED)
                self._bus.emit(EventType.TEST_SKIP, self._event(test))
                continue

            eligible.append(test)
        return eligible

    def _select_suites(self, suite: SuiteNode) -> list[SuiteNode]:
        children = self._tree.children_of(suite.id)
        if any(child.only for child in children):
            return [child for child in children if child.only]
        return children

    async def _execute_test(
        self,
        test: TestCase,
        context: dict[str, Any],
        chains: HookChains,
    ) -> TestResult:
        self._bus.emit(EventType.TEST_START, self._event(test))

        scope = TestScope(
            title=test.title,
            full_title=self._tree.full_title(test.id),
            tags=test.options.tags,
            snapshots=self._snapshots,
        )
        started = time.monotonic()

        with active_test(scope):
            try:
                await run_hooks(chains.before, context)
            except Exception as e:
                duration_ms = int((time.monotonic() - started) * 1000)
                self._log.warning("before_each hook failed", test=test.title, error=str(e))
                return self._finish(
                    test,
                    passed=False,
                    duration_ms=duration_ms,
                    error=HookError("before_each", test.title, e),
                )

            outcome = await run_test(test, context, self._config.default_timeout_ms)

            error: Exception | None = outcome.error
            try:
                await run_hooks(chains.after, context)
            except Exception as e:
                self._log.warning("after_each hook failed", test=test.title, error=str(e))
                if outcome.passed:
                    error = HookError("after_each", test.title, e)

        return self._finish(
            test,
            passed=error is None,
            duration_ms=outcome.duration_ms,
            error=error,
            attempts=outcome.attempts,
        )

    def _finish(
        self,
        test: TestCase,
        *,
        passed: bool,
        duration_ms: int,
        error: Exception | None = None,
        attempts: int = 0,
    ) -> TestResult:
        result = self._record(
            test,
            TestStatus.PASSED if passed else TestStatus.FAILED,
            duration_ms=duration_ms,
            error=error,
            attempts=attempts,
        )
        event = self._event(test, duration_ms=duration_ms, error=error, attempts=attempts)
        self._bus.emit(EventType.TEST_PASS if passed else EventType.TEST_FAIL, event)
        return result

    def _record(
        self,
        test: TestCase,
        status: TestStatus,
        *,
        duration_ms: int = 0,
        error: BaseException | None = None,
        attempts: int = 0,
    ) -> TestResult:
        result = TestResult(
            test_id=test.id,
            title=test.title,
            full_title=self._tree.full_title(test.id),
            status=status,
            duration_ms=duration_ms,
            attempts=attempts,
            error=(str(error) or type(error).__name__) if error is not None else None,
        )
        self._summary.results.append(result)
        return result

    def _event(
        self,
        test: TestCase,
        *,
        duration_ms: int | None = None,
        error: BaseException | None = None,
        attempts: int = 0,
    ) -> TestEvent:
        return TestEvent(
            test_id=test.id,
            title=test.title,
            full_title=self._tree.full_title(test.id),
            suite_title=self._tree.suite(test.suite_id).title,
            tags=test.options.tags,
            duration_ms=duration_ms,
            error=error,
            attempts=attempts,
        )
