"""
Snapshot storage.
"""

from jaguar.storage.snapshot_store import SNAPSHOT_SUFFIX, SnapshotStatus, SnapshotStore

__all__ = [
    "SNAPSHOT_SUFFIX",
    "SnapshotStatus",
    "SnapshotStore",
]
