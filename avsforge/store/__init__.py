"""Persistent records: the current manifest, the service config, snapshots.

Each store owns one record on disk and is the only code that touches it.
Writes go through a temporary file and an atomic rename so a crash never
leaves a half-written record behind.
"""
from __future__ import annotations

from avsforge.store.atomic import write_atomic
from avsforge.store.config import ConfigStore, JsonConfigStore, MemoryConfigStore
from avsforge.store.manifest import ManifestStore
from avsforge.store.snapshot import SnapshotManager

__all__ = [
    "ConfigStore",
    "JsonConfigStore",
    "ManifestStore",
    "MemoryConfigStore",
    "SnapshotManager",
    "write_atomic",
]
