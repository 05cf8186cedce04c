"""
Snapshot storage for ``to_match_snapshot``.

Snapshots are plain text files named after the test title, with runs of
whitespace replaced by underscores. The first match for a key writes the
received value; later matches compare against the stored text.
"""

from __future__ import annotations

import re
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog

from jaguar.errors import SnapshotMismatchError

logger = structlog.get_logger(__name__)

SNAPSHOT_SUFFIX = ".snap"

_WHITESPACE_RE = re.compile(r"\s+")


class SnapshotStatus(StrEnum):
    """What a snapshot comparison did."""

    WRITTEN = "written"
    MATCHED = "matched"
    DISABLED = "disabled"


class SnapshotStore:
    """
    Keyed read-or-write-once file store.

    The directory is created on first write.
    """

    def __init__(self, directory: str | Path, disabled: bool = False) -> None:
        self._directory = Path(directory)
        self._disabled = disabled
        self._log = logger.bind(component="snapshot_store")

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def disabled(self) -> bool:
        return self._disabled

    @staticmethod
    def key_for(title: str) -> str:
        return _WHITESPACE_RE.sub("_", title)

    def path_for(self, title: str) -> Path:
        return self._directory / f"{self.key_for(title)}{SNAPSHOT_SUFFIX}"

    def read(self, title: str) -> str | None:
        path = self.path_for(title)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def match(self, title: str, received: Any) -> SnapshotStatus:
        """
        Compare a value with the stored snapshot for a title.

        Returns:
            WRITTEN when no snapshot existed, MATCHED when it was equal,
            DISABLED when snapshots are turned off

        Raises:
            SnapshotMismatchError: If the stored snapshot differs
        """
        if self._disabled:
            return SnapshotStatus.DISABLED

        received_text = str(received)
        stored = self.read(title)

        if stored is None:
            path = self.path_for(title)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(received_text, encoding="utf-8")
            self._log.info("Snapshot written", title=title, path=str(path))
            return SnapshotStatus.WRITTEN

        if stored != received_text:
            raise SnapshotMismatchError(
                f"Snapshot mismatch.\nExpected:\n{stored}\n\nReceived:\n{received_text}",
                expected=stored,
                received=received_text,
                matcher="to_match_snapshot",
            )

        return SnapshotStatus.MATCHED

    def delete(self, title: str) -> bool:
        """Remove the snapshot for a title; returns whether one existed."""
        path = self.path_for(title)
        if not path.exists():
            return False
        path.unlink()
        return True
