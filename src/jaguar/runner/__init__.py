"""
Test execution.

Executes suite trees with:
- Merged per-test hook chains cached per suite
- Per-test timeout and immediate retry
- Only/skip/grep filtering
- Lifecycle events published as outcomes occur
"""

from jaguar.runner.attempt import AttemptOutcome, run_test
from jaguar.runner.context import (
    CURRENT_TEST,
    TestScope,
    active_test,
    current_test,
    current_test_title,
)
from jaguar.runner.hooks import (
    HookChains,
    accepts_context,
    call_with_context,
    merge_hooks,
    run_hooks,
)
from jaguar.runner.suite_runner import (
    RunSummary,
    SuiteRunner,
    TestResult,
    TestStatus,
)

__all__ = [
    # Attempt runner
    "AttemptOutcome",
    "run_test",
    # Current test
    "CURRENT_TEST",
    "TestScope",
    "active_test",
    "current_test",
    "current_test_title",
    # Hooks
    "HookChains",
    "accepts_context",
    "call_with_context",
    "merge_hooks",
    "run_hooks",
    # Suite runner
    "RunSummary",
    "SuiteRunner",
    "TestResult",
    "TestStatus",
]
