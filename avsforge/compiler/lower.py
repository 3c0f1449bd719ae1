"""Lowering pass: map IR nodes to deployable artifacts.

Each node type has a recipe that decides, once and for all, whether its
artifact goes on-chain or off-chain, where its payload comes from, and which
node properties become deploy parameters. Properties a recipe does not
declare are dropped here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from avsforge.config.design import Design, Node, NodeType
from avsforge.config.manifest import (
    Artifact,
    ArtifactClass,
    Manifest,
    OffchainArtifact,
    OnchainArtifact,
)

if TYPE_CHECKING:
    from avsforge.store.manifest import ManifestStore


@dataclass(frozen=True, slots=True)
class ArtifactRecipe:
    """How one node type becomes an artifact.

    `params` maps deploy parameter names to the node property they read.
    Order matters for on-chain artifacts: it is the constructor argument order.
    """

    kind: ArtifactClass
    source: str | None = None
    params: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    def source_locator(self, node: Node) -> str:
        if self.source is not None:
            return self.source
        return f"generated/{node.type.value}/{node.id}.yaml"

    def deploy_params(self, node: Node) -> dict[str, object]:
        return {
            name: node.properties[prop]
            for name, prop in self.params
            if prop in node.properties
        }


OFFCHAIN_RECIPE = ArtifactRecipe(
    kind=ArtifactClass.OFFCHAIN,
    params=(("replicas", "replicas"), ("image", "image")),
)

RECIPES: dict[NodeType, ArtifactRecipe] = {
    NodeType.GOVERNANCE: ArtifactRecipe(
        kind=ArtifactClass.ONCHAIN,
        source="contracts/Governance.sol",
        params=(("threshold", "votingThreshold"), ("delay", "stakingRequirement")),
    ),
    NodeType.REGISTRY: ArtifactRecipe(
        kind=ArtifactClass.ONCHAIN,
        source="contracts/Registry.sol",
        params=(("quorum", "quorum"),),
    ),
    NodeType.ATTESTATION: ArtifactRecipe(
        kind=ArtifactClass.ONCHAIN,
        source="contracts/Attestation.sol",
        params=(("minAttestations", "minAttestations"),),
    ),
}


def recipe_for(node_type: NodeType) -> ArtifactRecipe:
    """Return the recipe for a node type (off-chain unless listed)."""
    return RECIPES.get(node_type, OFFCHAIN_RECIPE)


def is_onchain_type(node_type: NodeType) -> bool:
    return recipe_for(node_type).kind == ArtifactClass.ONCHAIN


class ManifestCompiler:
    """Compiles IR into a manifest and records it as the current one."""

    def __init__(self, store: "ManifestStore | None" = None) -> None:
        self.store = store

    def compile(self, ir: Design) -> Manifest:
        """Lower the IR and persist it (when a store is attached).

        Raises:
            PersistenceError: the manifest could not be written.
        """
        manifest = self.lower(ir)
        if self.store is not None:
            self.store.save(manifest)
        return manifest

    def lower(self, ir: Design) -> Manifest:
        """Pure IR → manifest mapping; one artifact per node, in node order."""
        return Manifest(
            network_id=ir.network_id,
            environment=ir.environment,
            artifacts=[self.lower_node(n) for n in ir.nodes],
        )

    def lower_node(self, node: Node) -> Artifact:
        recipe = recipe_for(node.type)
        common = {
            "id": node.id,
            "source_locator": recipe.source_locator(node),
            "deploy_params": recipe.deploy_params(node),
            "dependencies": list(node.dependencies),
        }
        match recipe.kind:
            case ArtifactClass.ONCHAIN:
                return OnchainArtifact(**common)
            case ArtifactClass.OFFCHAIN:
                return OffchainArtifact(**common)
