"""
atomic provides all-or-nothing file replacement for persisted records.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

from avsforge.errors import PersistenceError


def write_atomic(path: Path, data: bytes) -> None:
    """Replace `path` with `data`, all or nothing.

    Raises:
        PersistenceError: the directory or file could not be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise PersistenceError(f"failed to write {path}: {e}") from e
