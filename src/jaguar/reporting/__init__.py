"""
Result reporting.

Reporters consume bus events and render once the run ends:
- VerboseReporter: every test plus a summary (rich)
- MinimalReporter: summary line only (rich)
- JsonReporter: machine-readable document
"""

from jaguar.reporting.reporters import (
    JsonReporter,
    MinimalReporter,
    Reporter,
    TestRecord,
    VerboseReporter,
    create_reporter,
)

__all__ = [
    "JsonReporter",
    "MinimalReporter",
    "Reporter",
    "TestRecord",
    "VerboseReporter",
    "create_reporter",
]
