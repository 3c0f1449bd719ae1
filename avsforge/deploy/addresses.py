"""Address write-back: recording where contracts landed.

Artifact ids default to node ids but can legitimately diverge (a manifest
edited by hand, an artifact named after its role). Reconciliation is an
explicit two-stage lookup:

1. exact match on node id,
2. otherwise, match node type against the artifact id lower-cased with
   separator characters stripped (`Governance` and `govern_ance` match
   type governance, `governance-contract` does not). Every node of that
   type receives the address.

When neither stage matches, the address is still reported but the config is
left alone and a `ConfigUpdateWarning` is recorded.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field

from avsforge.compiler.lower import is_onchain_type
from avsforge.config import is_address
from avsforge.config.design import Node, ServiceConfig
from avsforge.errors import ConfigUpdateWarning, PersistenceError
from avsforge.store.config import ConfigStore

_SEPARATORS = re.compile(r"[-_.\s]")
_PLACEHOLDER = re.compile(r"\$\{([A-Z0-9_]+)_CONTRACT_ADDRESS\}")


class MatchStrategy(str, enum.Enum):
    NODE_ID = "node_id"
    NODE_TYPE = "node_type"


def type_key(value: str) -> str:
    """Normalize an artifact id or node type for the fallback comparison."""
    return _SEPARATORS.sub("", value).lower()


@dataclass(slots=True)
class WriteBack:
    """Which nodes received an address, and how they were found."""

    address: str
    strategy: MatchStrategy | None = None
    node_ids: list[str] = field(default_factory=list)
    warning: ConfigUpdateWarning | None = None

    @property
    def updated(self) -> bool:
        return bool(self.node_ids)


class AddressBook:
    """Reads and writes contract addresses in the service config."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    def match(self, config: ServiceConfig, artifact_id: str) -> tuple[MatchStrategy | None, list[Node]]:
        by_id = [n for n in config.nodes if n.id == artifact_id]
        if by_id:
            return MatchStrategy.NODE_ID, by_id
        key = type_key(artifact_id)
        by_type = [n for n in config.nodes if type_key(n.type.value) == key]
        if by_type:
            return MatchStrategy.NODE_TYPE, by_type
        return None, []

    async def write_back(self, artifact_id: str, address: str) -> WriteBack:
        """Record `address` for the node(s) matching `artifact_id`.

        Never raises for a missing match or an unwritable config; both become
        a warning on the returned `WriteBack`.
        """
        result = WriteBack(address=address)
        if not is_address(address):
            result.warning = ConfigUpdateWarning(
                f"refusing to record invalid address {address!r} for {artifact_id}"
            )
            return result
        try:
            async with self.store.transaction() as config:
                strategy, nodes = self.match(config, artifact_id)
                for node in nodes:
                    node.integration.contract_address = address
                result.strategy = strategy
                result.node_ids = [n.id for n in nodes]
        except PersistenceError as e:
            result.node_ids = []
            result.warning = ConfigUpdateWarning(f"could not update config for {artifact_id}: {e}")
            return result

        if not result.updated:
            result.warning = ConfigUpdateWarning(
                f"could not find node with id {artifact_id!r} or matching type in config"
            )
        return result

    async def seed_placeholders(self, overwrite: bool = False) -> dict[str, str]:
        """Give every on-chain node a syntactically valid placeholder address.

        The address for the node at config position i is `0x` followed by
        i + 1 in hex, zero-padded to 40 digits. Nodes that already carry an
        address keep it unless `overwrite` is set. Returns node id → address
        for the nodes that were changed.
        """
        seeded: dict[str, str] = {}
        async with self.store.transaction() as config:
            for index, node in enumerate(config.nodes):
                if not is_onchain_type(node.type):
                    continue
                if node.integration.contract_address and not overwrite:
                    continue
                address = "0x" + format(index + 1, "x").zfill(40)
                node.integration.contract_address = address
                seeded[node.id] = address
        return seeded

    def addresses(self) -> dict[str, str]:
        """Node type → address, for every node that has one."""
        return self.store.get().addresses()

    def render(self, template: str) -> str:
        """Substitute `${<TYPE>_CONTRACT_ADDRESS}` placeholders in a service manifest.

        Unknown placeholders are left untouched so the cluster rejects them
        loudly instead of receiving an empty address.
        """
        if not _PLACEHOLDER.search(template):
            return template
        known = {k.upper(): v for k, v in self.addresses().items()}

        def _replace(match: re.Match[str]) -> str:
            return known.get(match.group(1), match.group(0))

        return _PLACEHOLDER.sub(_replace, template)
