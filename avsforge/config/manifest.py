"""Manifest: the deployable form of a design.

One artifact per IR node, each tagged at compile time as either an on-chain
contract or an off-chain cluster service. The manifest is the unit of
versioning: it is persisted as the "current" manifest, snapshotted, and
rolled back as a whole.
"""
from __future__ import annotations

import enum
import json
from pathlib import Path
from typing import Annotated, Literal, TypeAlias

import yaml
from pydantic import Field

from avsforge.config import Config, Identifier


class ArtifactClass(str, enum.Enum):
    """Where an artifact is deployed to."""

    ONCHAIN = "onchain"
    OFFCHAIN = "offchain"


class _ArtifactBase(Config):
    id: Identifier
    artifact_class: str = Field(alias="class")
    source_locator: str = Field(alias="sourceLocator")
    deploy_params: dict[str, object] = Field(default_factory=dict, alias="deployParams")
    dependencies: list[str] = Field(default_factory=list)


class OnchainArtifact(_ArtifactBase):
    """A contract: compiled, signed and submitted to the chain.

    `deploy_params` values are passed as constructor arguments, in order.
    """

    artifact_class: Literal["onchain"] = Field(default="onchain", alias="class")

    @property
    def kind(self) -> ArtifactClass:
        return ArtifactClass.ONCHAIN


class OffchainArtifact(_ArtifactBase):
    """A service manifest applied to the cluster control plane."""

    artifact_class: Literal["offchain"] = Field(default="offchain", alias="class")

    @property
    def kind(self) -> ArtifactClass:
        return ArtifactClass.OFFCHAIN


# The `class` tag picks the variant; a record without one is rejected
Artifact: TypeAlias = Annotated[
    OnchainArtifact | OffchainArtifact, Field(discriminator="artifact_class")
]


class Manifest(Config):
    """Artifacts for one network and environment, in declaration order."""

    network_id: str = Field(alias="networkId")
    environment: str
    artifacts: list[Artifact] = Field(default_factory=list)

    def artifact(self, artifact_id: str) -> Artifact | None:
        """Return the artifact with the given id, if any."""
        return next((a for a in self.artifacts if a.id == artifact_id), None)

    def to_json(self) -> str:
        """Render the persisted record (stable key order, 2-space indent)."""
        return json.dumps(self.dump(), indent=2) + "\n"

    @classmethod
    def from_path(cls, path: Path) -> "Manifest":
        """Load and validate a manifest from a JSON or YAML file."""
        text = path.read_text(encoding="utf-8")
        match path.suffix.lower():
            case ".json":
                payload = json.loads(text)
            case ".yml" | ".yaml":
                payload = yaml.safe_load(text)
            case s:
                raise ValueError(f"Unsupported format '{s}'")

        if not isinstance(payload, dict):
            raise ValueError(f"Manifest payload must be a dict, got {type(payload)!r}")
        return cls.model_validate(payload)
