"""
Jaguar test runner.

Concurrent test orchestration with nested suites, composed lifecycle hooks,
per-test timeouts and retries, snapshot assertions and a lifecycle event bus.
"""

__version__ = "1.0.0"

from jaguar.assertions import Expectation, MatcherRegistry
from jaguar.concurrency import TaskFailure, run_concurrent
from jaguar.config import (
    ReporterMode,
    RunConfig,
    get_config,
    load_run_config,
    reset_config,
    set_config,
)
from jaguar.dsl import SuiteBuilder, SuiteTree, TestOptions
from jaguar.errors import (
    ExpectationError,
    HookError,
    JaguarError,
    SnapshotMismatchError,
    TestLoadError,
    TestTimeoutError,
    UnknownMatcherError,
)
from jaguar.events import EventBus, EventType, RunEndEvent, SuiteEvent, TestEvent
from jaguar.harness import (
    Jaguar,
    after_all,
    after_each,
    before_all,
    before_each,
    describe,
    each,
    expect,
    extend_expect,
    get_harness,
    it,
    on_test_event,
    run_tests,
    set_global_after,
    set_global_before,
    test,
)
from jaguar.reporting import JsonReporter, MinimalReporter, Reporter, VerboseReporter, create_reporter
from jaguar.runner import RunSummary, SuiteRunner, TestResult, TestStatus, current_test_title
from jaguar.storage import SnapshotStore

__all__ = [
    # Suite building
    "after_all",
    "after_each",
    "before_all",
    "before_each",
    "describe",
    "each",
    "expect",
    "extend_expect",
    "it",
    "on_test_event",
    "run_tests",
    "set_global_after",
    "set_global_before",
    "test",
    # Core
    "Expectation",
    "EventBus",
    "EventType",
    "Jaguar",
    "MatcherRegistry",
    "RunEndEvent",
    "RunSummary",
    "SnapshotStore",
    "SuiteBuilder",
    "SuiteEvent",
    "SuiteRunner",
    "SuiteTree",
    "TaskFailure",
    "TestEvent",
    "TestOptions",
    "TestResult",
    "TestStatus",
    "current_test_title",
    "get_harness",
    "run_concurrent",
    "__version__",
    # Configuration
    "ReporterMode",
    "RunConfig",
    "get_config",
    "load_run_config",
    "reset_config",
    "set_config",
    # Reporting
    "JsonReporter",
    "MinimalReporter",
    "Reporter",
    "VerboseReporter",
    "create_reporter",
    # Errors
    "ExpectationError",
    "HookError",
    "JaguarError",
    "SnapshotMismatchError",
    "TestLoadError",
    "TestTimeoutError",
    "UnknownMatcherError",
]
