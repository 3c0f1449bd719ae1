"""
manifest provides the file-backed record of the current manifest.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pydantic

from avsforge.config.manifest import Manifest
from avsforge.errors import ManifestNotFoundError, PersistenceError
from avsforge.store.atomic import write_atomic

logger = logging.getLogger(__name__)


class ManifestStore:
    """Holds exactly one "current" manifest at `path`."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Manifest:
        """Read and validate the current manifest.

        Raises:
            ManifestNotFoundError: there is no current manifest.
            PersistenceError: the record exists but cannot be read or parsed.
        """
        data = self.read_bytes()
        try:
            return Manifest.model_validate(json.loads(data))
        except (json.JSONDecodeError, pydantic.ValidationError) as e:
            raise PersistenceError(f"manifest at {self.path} is corrupt: {e}") from e

    def save(self, manifest: Manifest) -> None:
        """Make `manifest` the current manifest."""
        self.write_bytes(manifest.to_json().encode("utf-8"))
        logger.debug("Wrote manifest with %d artifact(s) to %s", len(manifest.artifacts), self.path)

    def read_bytes(self) -> bytes:
        if not self.exists():
            raise ManifestNotFoundError()
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"failed to read {self.path}: {e}") from e

    def write_bytes(self, data: bytes) -> None:
        write_atomic(self.path, data)
