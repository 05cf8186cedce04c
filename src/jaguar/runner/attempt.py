"""
Single-test execution with timeout and retry.

Each attempt invokes the test body; with a time budget the body runs in its
own task raced against a timer. A body that loses the race is not
cancelled, its eventual result is consumed and ignored. Failures are retried
immediately until the retry budget is exhausted.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import structlog

from jaguar.dsl.models import TestBody, TestCase
from jaguar.errors import TestTimeoutError
from jaguar.runner.hooks import call_with_context

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AttemptOutcome:
    """Terminal outcome of running one test."""

    passed: bool
    duration_ms: int
    error: Exception | None = None
    attempts: int = 1


def _discard_late_result(task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        return
    error = task.exception()
    logger.debug(
        "Ignoring late completion of timed-out test body",
        failed=error is not None,
        error=str(error) if error is not None else None,
    )


async def _run_body(body: TestBody, context: dict[str, Any], timeout_ms: float | None) -> None:
    if timeout_ms is None:
        await call_with_context(body, context)
        return

    task = asyncio.ensure_future(call_with_context(body, context))
    done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)

    if task in done:
        task.result()
        return

    task.add_done_callback(_discard_late_result)
    raise TestTimeoutError(timeout_ms)


async def run_test(
    test: TestCase,
    context: dict[str, Any],
    default_timeout_ms: float | None = None,
) -> AttemptOutcome:
    """
    Run a test body until it passes or its attempts are exhausted.

    Args:
        test: Test to execute
        context: Run context passed to bodies that accept an argument
        default_timeout_ms: Budget used when the test sets none

    Returns:
        AttemptOutcome with wall-clock duration across all attempts and,
        on failure, the last attempt's error
    """
    timeout_ms = test.options.timeout_ms or default_timeout_ms
    max_attempts = 1 + test.options.retry
    started = time.monotonic()
    last_error: Exception | None = None
    attempts = 0

    while attempts < max_attempts:
        attempts += 1
        try:
            await _run_body(test.body, context, timeout_ms)
        except Exception as e:
            last_error = e
            if attempts < max_attempts:
                logger.info(
                    "Test attempt failed, retrying",
                    test=test.title,
                    attempt=attempts,
                    max_attempts=max_attempts,
                    error=str(e),
                )
            continue

        return AttemptOutcome(
            passed=True,
            duration_ms=_elapsed_ms(started),
            attempts=attempts,
        )

    return AttemptOutcome(
        passed=False,
        duration_ms=_elapsed_ms(started),
        error=last_error,
        attempts=attempts,
    )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
