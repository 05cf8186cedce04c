"""
Run reporters.

Reporters subscribe to pass/fail/skip/run_end events on an event bus,
accumulate counts and per-test records, and render when the run ends.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any, Callable, TextIO

import structlog
from rich.console import Console
from rich.markup import escape

from jaguar.config import ReporterMode
from jaguar.events.bus import EventBus, EventType, RunEndEvent, TestEvent

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TestRecord:
    """One reported test outcome."""

    __test__ = False

    title: str
    full_title: str
    status: str
    duration_ms: int | None = None
    error: str | None = None
    attempts: int = 0


class Reporter:
    """
    Base reporter that only accumulates results.

    Subclasses override ``render``.
    """

    def __init__(self) -> None:
        self.passed = 0
        self.failed = 0
        self.skipped = 0
        self.records: list[TestRecord] = []
        self._log = logger.bind(component=type(self).__name__)

    def attach(self, bus: EventBus) -> Callable[[], None]:
        """
        Subscribe to a bus.

        Returns:
            Callable that removes every subscription made here
        """
        detachers = [
            bus.subscribe(EventType.TEST_PASS, self.on_test_pass),
            bus.subscribe(EventType.TEST_FAIL, self.on_test_fail),
            bus.subscribe(EventType.TEST_SKIP, self.on_test_skip),
            bus.subscribe(EventType.RUN_END, self.on_run_end),
        ]

        def detach() -> None:
            for fn in detachers:
                fn()

        return detach

    def on_test_pass(self, event: TestEvent) -> None:
        self.passed += 1
        self.records.append(self._record(event, "passed"))

    def on_test_fail(self, event: TestEvent) -> None:
        self.failed += 1
        self.records.append(self._record(event, "failed"))

    def on_test_skip(self, event: TestEvent) -> None:
        self.skipped += 1
        self.records.append(self._record(event, "skipped"))

    def on_run_end(self, event: RunEndEvent) -> None:
        self.report(event.total_duration_ms)

    def report(self, total_duration_ms: int) -> None:
        self._log.debug(
            "Run reported",
            passed=self.passed,
            failed=self.failed,
            skipped=self.skipped,
            duration_ms=total_duration_ms,
        )
        self.render(total_duration_ms)

    def render(self, total_duration_ms: int) -> None:
        """Output the accumulated results; the base class outputs nothing."""

    def summary_line(self, total_duration_ms: int) -> str:
        return (
            f"Total: {total_duration_ms}ms | Passed: {self.passed} | "
            f"Failed: {self.failed} | Skipped: {self.skipped}"
        )

    @staticmethod
    def _record(event: TestEvent, status: str) -> TestRecord:
        return TestRecord(
            title=event.title,
            full_title=event.full_title,
            status=status,
            duration_ms=event.duration_ms,
            error=event.error_message,
            attempts=event.attempts,
        )


class VerboseReporter(Reporter):
    """Lists every test with its outcome, then a summary line."""

    def __init__(self, console: Console | None = None) -> None:
        super().__init__()
        self.console = console or Console()

    def render(self, total_duration_ms: int) -> None:
        self.console.print()
        self.console.rule("Test Results")
        for record in self.records:
            title = escape(record.full_title)
            if record.status == "passed":
                self.console.print(f"[green]PASS[/green] {title} ({record.duration_ms}ms)")
            elif record.status == "failed":
                self.console.print(
                    f"[red]FAIL[/red] {title} ({record.duration_ms}ms) => "
                    f"{escape(record.error or '')}"
                )
            else:
                self.console.print(f"[yellow]SKIP[/yellow] {title}")

        color = "red" if self.failed else "green"
        self.console.print()
        self.console.print(f"[{color}]{self.summary_line(total_duration_ms)}[/{color}]")


class MinimalReporter(Reporter):
    """Prints only the summary line."""

    def __init__(self, console: Console | None = None) -> None:
        super().__init__()
        self.console = console or Console()

    def summary_line(self, total_duration_ms: int) -> str:
        return f"Total Duration: {super().summary_line(total_duration_ms).removeprefix('Total: ')}"

    def render(self, total_duration_ms: int) -> None:
        self.console.print(self.summary_line(total_duration_ms), highlight=False)


class JsonReporter(Reporter):
    """Writes one JSON document with the summary and every test record."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream

    def to_dict(self, total_duration_ms: int) -> dict[str, Any]:
        return {
            "duration_ms": total_duration_ms,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "tests": [
                {
                    "title": r.title,
                    "full_title": r.full_title,
                    "status": r.status,
                    "duration_ms": r.duration_ms,
                    "attempts": r.attempts,
                    "error": r.error,
                }
                for r in self.records
            ],
        }

    def render(self, total_duration_ms: int) -> None:
        stream = self.stream or sys.stdout
        stream.write(json.dumps(self.to_dict(total_duration_ms), indent=2))
        stream.write("\n")
        stream.flush()


def create_reporter(mode: ReporterMode | str, console: Console | None = None) -> Reporter:
    """Build the reporter for a configured output mode."""
    mode = ReporterMode(mode)
    if mode == ReporterMode.MINIMAL:
        return MinimalReporter(console)
    if mode == ReporterMode.JSON:
        return JsonReporter(console.file if console is not None else None)
    return VerboseReporter(console)
