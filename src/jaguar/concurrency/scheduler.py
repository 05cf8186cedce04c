"""
Bounded-concurrency task scheduler.

Runs zero-argument async tasks with at most ``limit`` in flight. Workers
claim task indices from a shared counter, so tasks start in queue order;
results are index-aligned with the input regardless of completion order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

import structlog

logger = structlog.get_logger(__name__)

Task = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class TaskFailure:
    """Result slot for a task that raised."""

    error: Exception


async def run_concurrent(tasks: Sequence[Task], limit: int) -> list[Any]:
    """
    Run tasks with bounded concurrency.

    Args:
        tasks: Zero-argument callables returning awaitables
        limit: Maximum number of tasks in flight; values below 1 mean 1

    Returns:
        One result per task, in input order. A task that raised is
        represented by a TaskFailure instead of aborting the batch.
    """
    if not tasks:
        return []

    limit = max(1, limit)
    results: list[Any] = [None] * len(tasks)
    next_index = 0

    async def worker(worker_id: int) -> None:
        nonlocal next_index
        while next_index < len(tasks):
            # Claim and advance before the first await so no two workers share an index
            current = next_index
            next_index += 1
            try:
                results[current] = await tasks[current]()
            except Exception as e:
                logger.warning(
                    "Scheduled task raised",
                    index=current,
                    worker=worker_id,
                    error=str(e),
                )
                results[current] = TaskFailure(e)

    worker_count = min(limit, len(tasks))
    workers = [asyncio.create_task(worker(i)) for i in range(worker_count)]

    try:
        await asyncio.gather(*workers)
    except asyncio.CancelledError:
        for task in workers:
            task.cancel()
        raise

    return results
