"""
Test harness binding the suite tree, event bus, matchers and config.

A process-wide default harness backs the module-level API
(``jaguar.describe``, ``jaguar.it``, ``jaguar.expect``, ``jaguar.run_tests``).
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping

import structlog
from rich.console import Console

from jaguar.assertions.matchers import Expectation, Matcher, MatcherRegistry, default_registry
from jaguar.config import RunConfig, get_config
from jaguar.dsl.builder import SuiteBuilder
from jaguar.dsl.models import Hook, SuiteTree
from jaguar.events.bus import EventBus, EventType, Listener, resolve_event_type
from jaguar.reporting.reporters import Reporter, create_reporter
from jaguar.runner.hooks import run_hooks
from jaguar.runner.suite_runner import RunSummary, SuiteRunner
from jaguar.storage.snapshot_store import SnapshotStore

logger = structlog.get_logger(__name__)


class Jaguar:
    """
    A self-contained test harness.

    Usage:
        jg = Jaguar()

        @jg.describe("Math")
        def _():
            jg.it("adds", lambda: jg.expect(1 + 1).to_be(2))

        summary = jg.run_sync()
    """

    def __init__(
        self,
        config: RunConfig | None = None,
        matchers: MatcherRegistry | None = None,
        console: Console | None = None,
    ) -> None:
        self.tree = SuiteTree()
        self.builder = SuiteBuilder(self.tree)
        self.bus = EventBus()
        self.matchers = matchers if matchers is not None else MatcherRegistry.with_defaults()
        self._config = config
        self._console = console
        self._global_before: list[Hook] = []
        self._global_after: list[Hook] = []
        self._collecting = False
        self._collected_listeners: list[Callable[[], None]] = []
        self._log = logger.bind(component="harness")

        self.describe = self.builder.describe
        self.it = self.builder.it
        self.test = self.builder.test
        self.each = self.builder.each
        self.before_all = self.builder.before_all
        self.after_all = self.builder.after_all
        self.before_each = self.builder.before_each
        self.after_each = self.builder.after_each

    @property
    def config(self) -> RunConfig:
        """Harness config, or the process-wide default when none is set."""
        return self._config if self._config is not None else get_config()

    def set_config(self, config: RunConfig | None = None, **overrides: Any) -> RunConfig:
        base = config if config is not None else self.config
        self._config = base.with_overrides(**overrides) if overrides else base
        return self._config

    def clear_config(self) -> None:
        """Drop the harness config so runs read the process-wide one."""
        self._config = None

    def expect(self, received: Any) -> Expectation:
        return Expectation(received, self.matchers)

    def extend_expect(self, matchers: Mapping[str, Matcher]) -> None:
        self.matchers.extend(matchers)

    def on_test_event(self, event_type: EventType | str, listener: Listener) -> Callable[[], None]:
        """
        Subscribe a plugin listener; returns a callable that unsubscribes it.

        Listeners added while test files are being collected belong to those
        files and are removed by ``reset``.
        """
        detach = self.bus.subscribe(resolve_event_type(event_type), listener)
        if self._collecting:
            self._collected_listeners.append(detach)
        return detach

    def set_global_before(self, fn: Hook) -> Hook:
        """Register a hook that runs once before the whole run."""
        self._global_before.append(fn)
        return fn

    def set_global_after(self, fn: Hook) -> Hook:
        """Register a hook that runs once after the whole run."""
        self._global_after.append(fn)
        return fn

    def reset(self) -> None:
        """Discard registered suites, tests and listeners added by test files."""
        self.builder.reset()
        self._global_before.clear()
        self._global_after.clear()
        for detach in self._collected_listeners:
            detach()
        self._collected_listeners.clear()

    @property
    def collecting(self) -> bool:
        return self._collecting

    @contextmanager
    def collect(self) -> Iterator[Jaguar]:
        """Suppress ``run_tests`` calls while test files are being imported."""
        previous = self._collecting
        self._collecting = True
        try:
            yield self
        finally:
            self._collecting = previous

    async def run(self, reporter: Reporter | bool = True) -> RunSummary:
        """
        Execute every registered test.

        Args:
            reporter: Reporter to attach, True for one built from the config,
                False for none

        Returns:
            RunSummary of the run

        Raises:
            Exception: Whatever a global or suite-level hook raised
        """
        config = self.config
        if reporter is True:
            reporter = create_reporter(config.reporter, self._console)

        detach = reporter.attach(self.bus) if isinstance(reporter, Reporter) else None
        snapshots = SnapshotStore(config.snapshot_dir, disabled=config.disable_snapshots)
        runner = SuiteRunner(self.tree, self.bus, config, snapshots)
        context: dict[str, Any] = {}

        try:
            await run_hooks(self._global_before, context)
            summary = await runner.run()
            await run_hooks(self._global_after, context)
        finally:
            if detach is not None:
                detach()

        return summary

    def run_sync(self, reporter: Reporter | bool = True) -> RunSummary:
        return asyncio.run(self.run(reporter))

    def run_tests(self, reporter: Reporter | bool = True) -> RunSummary | None:
        """
        Run synchronously unless test files are being collected.

        Returns:
            RunSummary, or None when the call was suppressed
        """
        if self._collecting:
            self._log.debug("run_tests ignored during collection")
            return None
        return self.run_sync(reporter)


_default_harness = Jaguar(matchers=default_registry)


def get_harness() -> Jaguar:
    """Return the process-wide default harness."""
    return _default_harness


describe = _default_harness.describe
it = _default_harness.it
test = _default_harness.test
each = _default_harness.each
before_all = _default_harness.before_all
after_all = _default_harness.after_all
before_each = _default_harness.before_each
after_each = _default_harness.after_each
expect = _default_harness.expect
extend_expect = _default_harness.extend_expect
on_test_event = _default_harness.on_test_event
set_global_before = _default_harness.set_global_before
set_global_after = _default_harness.set_global_after
run_tests = _default_harness.run_tests
