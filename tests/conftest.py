"""Pytest fixtures for Jaguar tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from jaguar.config import RunConfig, reset_config
from jaguar.dsl.builder import SuiteBuilder
from jaguar.dsl.models import SuiteTree
from jaguar.events.bus import EventBus, EventType
from jaguar.harness import Jaguar, get_harness


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from JAGUAR_* variables and the process-wide config."""
    for key in list(os.environ):
        if key.startswith("JAGUAR_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def tree() -> SuiteTree:
    return SuiteTree()


@pytest.fixture
def builder(tree: SuiteTree) -> SuiteBuilder:
    return SuiteBuilder(tree)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def run_config(temp_dir: Path) -> RunConfig:
    """Run config writing snapshots into the temporary directory."""
    return RunConfig(snapshot_dir=temp_dir / "__snapshots__", concurrency=4)


@pytest.fixture
def harness(run_config: RunConfig) -> Jaguar:
    """Fresh harness independent from the module-level one."""
    return Jaguar(config=run_config)


@pytest.fixture
def default_harness(run_config: RunConfig) -> Generator[Jaguar, None, None]:
    """The module-level harness, reset around the test."""
    jg = get_harness()
    jg.reset()
    previous = jg._config
    jg.set_config(run_config)
    yield jg
    jg.reset()
    jg._config = previous


@pytest.fixture
def events(bus: EventBus) -> list[tuple[str, object]]:
    """Record every event published on the bus as (event_type, payload)."""
    recorded: list[tuple[str, object]] = []
    for event_type in EventType:
        bus.subscribe(
            event_type,
            lambda *payload, name=str(event_type): recorded.append(
                (name, payload[0] if payload else None)
            ),
        )
    return recorded
