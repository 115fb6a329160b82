"""Serialization and snapshot persistence."""
from __future__ import annotations

from orionkg.storage.snapshot_store import GraphSnapshotStore, SnapshotInfo

__all__ = [
    "GraphSnapshotStore",
    "SnapshotInfo",
]
