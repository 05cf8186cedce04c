"""
Polling file watcher for watch mode.

Tracks modification times of ``.py`` files under a set of paths and
reports which files were added, removed or modified since the last scan.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable

import structlog

logger = structlog.get_logger(__name__)


class FileWatcher:
    """
    Detects changes to Python files by polling.

    Usage:
        watcher = FileWatcher(["tests"])
        changed = await watcher.wait_for_change()
    """

    def __init__(self, paths: Iterable[str | Path], interval_seconds: float = 0.5) -> None:
        self._paths = [Path(p) for p in paths]
        self._interval = interval_seconds
        self._mtimes = self.snapshot()
        self._log = logger.bind(component="file_watcher")

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def snapshot(self) -> dict[Path, float]:
        """Current modification time of every watched file."""
        mtimes: dict[Path, float] = {}
        for root in self._paths:
            if root.is_file():
                candidates: Iterable[Path] = [root]
            elif root.is_dir():
                candidates = root.rglob("*.py")
            else:
                continue

            for path in candidates:
                try:
                    mtimes[path] = path.stat().st_mtime
                except FileNotFoundError:
                    continue
        return mtimes

    def changed_files(self) -> list[Path]:
        """Rescan and return files changed since the previous scan."""
        current = self.snapshot()
        previous = self._mtimes
        self._mtimes = current

        changed = {path for path, mtime in current.items() if previous.get(path) != mtime}
        changed.update(path for path in previous if path not in current)
        return sorted(changed)

    async def wait_for_change(self) -> list[Path]:
        """Poll until at least one file changes."""
        while True:
            await asyncio.sleep(self._interval)
            changed = self.changed_files()
            if changed:
                self._log.info("File change detected", files=[str(p) for p in changed])
                return changed
