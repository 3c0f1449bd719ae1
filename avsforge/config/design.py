"""Design: the operator's description of a distributed service.

A design is a graph of typed nodes (governance, attestation, messaging,
compute...) plus connections between them. It is loaded from JSON or YAML,
supports `${var}` substitution through a top-level `vars` section, and is
normalized into the IR before any artifact is compiled from it.
"""
from __future__ import annotations

import enum
import json
from pathlib import Path

import yaml
from pydantic import ConfigDict, Field

from avsforge.config import Config, Identifier
from avsforge.config.resolve import expand_vars, normalize_type_names


class NodeType(str, enum.Enum):
    """Kinds of service components a design can contain."""

    GOVERNANCE = "governance"
    ATTESTATION = "attestation"
    REGISTRY = "registry"
    P2P = "p2p"
    AI = "ai"
    TANGLE = "tangle"
    COMPUTE = "compute"
    ORACLE = "oracle"
    STORAGE = "storage"
    VALIDATOR = "validator"


class Integration(Config):
    """Which provider backs a node, and where its contract lives once deployed."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    provider: str = "native"
    contract_address: str | None = Field(default=None, alias="contractAddress")


class Node(Config):
    """A single component of the service graph."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Identifier
    type: NodeType
    properties: dict[str, object] = Field(default_factory=dict)
    integration: Integration = Field(default_factory=Integration)
    dependencies: list[str] = Field(default_factory=list)


class Connection(Config):
    """A directed link: `source` depends on `target`."""

    source: Identifier
    target: Identifier
    channel: str = "default"
    parameters: dict[str, object] = Field(default_factory=dict)


class Design(Config):
    """A service design, and (once normalized) its IR.

    The IR has the same shape as the design; normalization only adds
    guarantees: defaults merged, dependencies derived from connections.
    """

    network_id: str = Field(alias="networkId")
    environment: str
    global_defaults: dict[str, object] = Field(default_factory=dict, alias="globalDefaults")
    nodes: list[Node]
    connections: list[Connection] = Field(default_factory=list)

    def node(self, node_id: str) -> Node | None:
        """Return the node with the given id, if any."""
        return next((n for n in self.nodes if n.id == node_id), None)

    @classmethod
    def load_payload(cls, path: Path) -> dict[str, object]:
        """Read a JSON or YAML design into a raw payload.

        Applies `vars` substitution and shorthand type normalization, but no
        schema validation: that is the normalizer's job.
        """
        text = path.read_text(encoding="utf-8")
        match path.suffix.lower():
            case ".json":
                payload = json.loads(text)
            case ".yml" | ".yaml":
                payload = yaml.safe_load(text)
            case s:
                raise ValueError(f"Unsupported format '{s}'")

        if payload is None:
            raise ValueError("Design payload is empty.")
        if not isinstance(payload, dict):
            raise ValueError(f"Design payload must be a dict, got {type(payload)!r}")

        vars_payload = payload.pop("vars", None)
        if vars_payload is not None:
            if not isinstance(vars_payload, dict):
                raise ValueError(
                    f"Design vars must be a dict, got {type(vars_payload)!r}"
                )
            payload = expand_vars(payload, vars_payload)

        return normalize_type_names(payload)  # type: ignore[return-value]

    @classmethod
    def from_path(cls, path: Path) -> "Design":
        """Load and validate a design without normalizing it."""
        return cls.model_validate(cls.load_payload(path))


class ServiceConfig(Config):
    """The persisted config record: the node list addresses are written into.

    Other top-level keys (network id, connections...) are preserved verbatim.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    nodes: list[Node]

    def addresses(self) -> dict[str, str]:
        """Map node type to deployed contract address."""
        return {
            n.type.value: n.integration.contract_address
            for n in self.nodes
            if n.integration.contract_address
        }
