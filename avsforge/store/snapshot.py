"""Snapshots and rollback of the current manifest.

Snapshots are byte copies of the manifest record, keyed by version tag and
never rewritten. Rollback is a pure state restore: it replaces the current
manifest with a snapshot's bytes and does nothing else. It does not
re-resolve, redeploy, or touch addresses already written to config.
"""
from __future__ import annotations

from pathlib import Path

from avsforge.config import VERSION_PATTERN
from avsforge.console import logger
from avsforge.errors import (
    ManifestNotFoundError,
    PersistenceError,
    SnapshotExistsError,
    SnapshotNotFoundError,
    ValidationError,
)
from avsforge.store.atomic import write_atomic
from avsforge.store.manifest import ManifestStore


class SnapshotManager:
    """Versions the manifest held by a `ManifestStore`."""

    def __init__(self, manifests: ManifestStore, directory: Path) -> None:
        self.manifests = manifests
        self.directory = directory

    def path_for(self, version: str) -> Path:
        return self.directory / f"manifest_{version}.json"

    def snapshot(self, version: str) -> Path:
        """Save an immutable copy of the current manifest as `version`.

        Raises:
            ValidationError: `version` is not a usable tag.
            ManifestNotFoundError: there is no current manifest.
            SnapshotExistsError: `version` was already recorded.
        """
        if not VERSION_PATTERN.match(version):
            raise ValidationError(
                {"version": f"invalid version tag {version!r}; use letters, digits, '.', '_' or '-'"},
                message=f"invalid snapshot version tag {version!r}. "
                "Fix: use only letters, digits, '.', '_' or '-'.",
            )
        path = self.path_for(version)
        if not self.manifests.exists():
            raise ManifestNotFoundError("manifest not found; nothing to snapshot.")
        if path.exists():
            raise SnapshotExistsError(version)
        write_atomic(path, self.manifests.read_bytes())
        logger.info(f"Saved deployment snapshot as version {version}")
        return path

    def rollback(self, version: str) -> None:
        """Replace the current manifest with snapshot `version`.

        Raises:
            SnapshotNotFoundError: `version` was never recorded.
        """
        # A tag snapshot() would refuse can never have been recorded.
        if not VERSION_PATTERN.match(version):
            raise SnapshotNotFoundError(version)
        path = self.path_for(version)
        if not path.is_file():
            raise SnapshotNotFoundError(version)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"failed to read snapshot {path}: {e}") from e
        self.manifests.write_bytes(data)
        logger.info(f"Rolled back deployment manifest to version {version}")

    def versions(self) -> list[str]:
        """Recorded version tags, sorted."""
        if not self.directory.is_dir():
            return []
        return sorted(
            p.stem.removeprefix("manifest_")
            for p in self.directory.glob("manifest_*.json")
        )
