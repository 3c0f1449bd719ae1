"""Deployment: executing a resolved order against the chain and the cluster.

Usage:
    executor = build_executor(settings, workspace, AddressBook(store))
    report = await executor.execute(order, network_id="holesky", environment="staging")
"""
from __future__ import annotations

from avsforge.config.settings import Backend, DeploySettings, Workspace
from avsforge.deploy.addresses import AddressBook, MatchStrategy, WriteBack
from avsforge.deploy.backends import (
    ApplyResult,
    ChainClient,
    ClusterApplier,
    CompiledContract,
    DeployTransaction,
    SourceCompiler,
    SourceReader,
)
from avsforge.deploy.executor import Executor
from avsforge.deploy.external import KubectlApplier, SolcCompiler, UnconfiguredChain
from avsforge.deploy.report import ArtifactResult, ArtifactStatus, DeploymentReport
from avsforge.deploy.simulated import SimulatedChain, SimulatedCluster, SimulatedCompiler

__all__ = [
    "AddressBook",
    "ApplyResult",
    "ArtifactResult",
    "ArtifactStatus",
    "ChainClient",
    "ClusterApplier",
    "CompiledContract",
    "DeployTransaction",
    "DeploymentReport",
    "Executor",
    "MatchStrategy",
    "SourceCompiler",
    "SourceReader",
    "WriteBack",
    "build_executor",
]


def build_executor(
    settings: DeploySettings,
    workspace: Workspace,
    addresses: AddressBook,
    *,
    chain: ChainClient | None = None,
) -> Executor:
    """Wire collaborators for the configured backend.

    The simulated backend runs everything in-process and stubs sources that
    have not been generated yet. The external backend shells out to solc and
    kubectl; on-chain deployment needs a caller-supplied `chain`.
    """
    match settings.backend:
        case Backend.SIMULATED:
            return Executor(
                compiler=SimulatedCompiler(),
                chain=chain
                or SimulatedChain(settings.deployer_account, private_key=settings.deployer_private_key),
                cluster=SimulatedCluster(),
                addresses=addresses,
                sources=SourceReader(workspace.root, stub_missing=True),
                render_dir=workspace.dist / "rendered",
                sender=settings.deployer_account,
                timeout_s=settings.call_timeout_s,
            )
        case Backend.EXTERNAL:
            return Executor(
                compiler=SolcCompiler(),
                chain=chain
                or UnconfiguredChain(settings.provider_url, settings.deployer_private_key),
                cluster=KubectlApplier(settings.kube_context),
                addresses=addresses,
                sources=SourceReader(workspace.root),
                render_dir=workspace.dist / "rendered",
                sender=settings.deployer_account,
                timeout_s=settings.call_timeout_s,
            )
        case _:
            raise ValueError(f"Unsupported backend: {settings.backend!r}")
