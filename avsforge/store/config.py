"""Service config stores: where deployed addresses are written back.

The config record is shared, mutable state. Every read-modify-write goes
through `transaction()`, which holds the store's lock for its whole
duration, so two artifacts resolving to the same node can never lose each
other's update.
"""
from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import pydantic

from avsforge.config.design import ServiceConfig
from avsforge.errors import PersistenceError
from avsforge.store.atomic import write_atomic

logger = logging.getLogger(__name__)


class ConfigStore(ABC):
    """Single-writer access to the service config record."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @abstractmethod
    def get(self) -> ServiceConfig:
        """Return a fresh copy of the current config."""

    @abstractmethod
    def put(self, config: ServiceConfig) -> None:
        """Replace the stored config."""

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ServiceConfig]:
        """Yield the config under the write lock; persist it on clean exit."""
        async with self._lock:
            config = self.get()
            yield config
            self.put(config)

    async def replace(self, config: ServiceConfig) -> None:
        """Overwrite the whole record under the write lock."""
        async with self._lock:
            self.put(config)

    async def update(self, node_id: str, address: str) -> bool:
        """Set one node's contract address. Returns False if no such node."""
        async with self.transaction() as config:
            node = next((n for n in config.nodes if n.id == node_id), None)
            if node is None:
                return False
            node.integration.contract_address = address
            return True


class JsonConfigStore(ConfigStore):
    """Config record kept as a JSON file."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path

    def get(self) -> ServiceConfig:
        if not self.path.is_file():
            raise PersistenceError(f"config file not found at {self.path}")
        try:
            return ServiceConfig.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, pydantic.ValidationError) as e:
            raise PersistenceError(f"failed to read config at {self.path}: {e}") from e

    def put(self, config: ServiceConfig) -> None:
        write_atomic(self.path, (json.dumps(config.dump(), indent=2) + "\n").encode("utf-8"))
        logger.debug("Wrote config with %d node(s) to %s", len(config.nodes), self.path)


class MemoryConfigStore(ConfigStore):
    """Config record held in memory (dry runs and tests)."""

    def __init__(self, config: ServiceConfig) -> None:
        super().__init__()
        self._config = config.model_copy(deep=True)

    def get(self) -> ServiceConfig:
        return self._config.model_copy(deep=True)

    def put(self, config: ServiceConfig) -> None:
        self._config = config.model_copy(deep=True)
