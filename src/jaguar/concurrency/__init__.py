"""
Concurrency module for bounded parallel test execution.

Provides:
- run_concurrent for index-aligned, failure-isolated task batches
"""

from jaguar.concurrency.scheduler import Task, TaskFailure, run_concurrent

__all__ = [
    "Task",
    "TaskFailure",
    "run_concurrent",
]
