"""
Test file discovery and loading.

Test files are ordinary Python modules that register suites into the
default harness at import time.
"""

from __future__ import annotations

import hashlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Iterable

import structlog

from jaguar.errors import TestLoadError
from jaguar.harness import Jaguar, get_harness

logger = structlog.get_logger(__name__)

TEST_FILE_PATTERNS = ("test_*.py", "*_test.py")


def is_test_file(path: Path) -> bool:
    return path.suffix == ".py" and any(path.match(pattern) for pattern in TEST_FILE_PATTERNS)


def discover_test_files(paths: Iterable[str | Path]) -> list[Path]:
    """
    Expand files and directories into a sorted, de-duplicated file list.

    Files given explicitly are kept whatever their name; directories are
    searched recursively for ``test_*.py`` and ``*_test.py``.

    Raises:
        TestLoadError: If a path does not exist
    """
    found: dict[Path, None] = {}

    for entry in paths:
        path = Path(entry)
        if not path.exists():
            raise TestLoadError(f"Path not found: {path}")

        if path.is_file():
            found[path.resolve()] = None
            continue

        for file_path in sorted(path.rglob("*.py")):
            relative = file_path.relative_to(path)
            if any(part.startswith(".") or part == "__pycache__" for part in relative.parts):
                continue
            if is_test_file(file_path):
                found[file_path.resolve()] = None

    return list(found)


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    return f"jaguar_test_{path.stem}_{digest}"


def load_test_file(path: str | Path, harness: Jaguar | None = None) -> ModuleType:
    """
    Import a test file so its suites register into the harness.

    ``run_tests()`` calls inside the file are suppressed while it loads.

    Raises:
        TestLoadError: If the file cannot be imported
    """
    path = Path(path).resolve()
    harness = harness or get_harness()
    name = _module_name(path)

    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise TestLoadError(f"Cannot load test file: {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        with harness.collect():
            spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(name, None)
        logger.error("Failed to load test file", path=str(path), error=str(e))
        raise TestLoadError(f"Failed to load {path}: {e}") from e

    logger.debug("Loaded test file", path=str(path), module=name)
    return module


def load_test_files(paths: Iterable[str | Path], harness: Jaguar | None = None) -> list[Path]:
    """Discover and import every test file under the given paths."""
    files = discover_test_files(paths)
    for file_path in files:
        load_test_file(file_path, harness)
    return files
