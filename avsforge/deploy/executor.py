"""Deployment executor: walk the resolved order and deploy each artifact.

Artifacts are processed strictly in resolver order, one at a time, and every
collaborator call is awaited before the next artifact starts, whatever its
class. An artifact's failure is recorded and the run moves on; artifacts
downstream of a failure are skipped, never attempted.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import TypeVar

from avsforge.config import is_address
from avsforge.config.manifest import Artifact, OffchainArtifact, OnchainArtifact
from avsforge.console import logger
from avsforge.deploy.addresses import AddressBook
from avsforge.deploy.backends import (
    ChainClient,
    ClusterApplier,
    DeployTransaction,
    SourceCompiler,
    SourceReader,
)
from avsforge.deploy.report import ArtifactResult, DeploymentReport
from avsforge.errors import (
    ApplyError,
    CompilationError,
    ForgeError,
    PersistenceError,
    TransactionError,
)
from avsforge.store.atomic import write_atomic

T = TypeVar("T")


class Executor:
    """Deploys an ordered list of artifacts through the collaborators.

    `timeout_s` bounds every individual collaborator call; a call that runs
    over becomes that artifact's failure instead of hanging the run.
    """

    def __init__(
        self,
        *,
        compiler: SourceCompiler,
        chain: ChainClient,
        cluster: ClusterApplier,
        addresses: AddressBook,
        sources: SourceReader,
        render_dir: Path | None = None,
        sender: str | None = None,
        timeout_s: float = 120.0,
    ) -> None:
        self.compiler = compiler
        self.chain = chain
        self.cluster = cluster
        self.addresses = addresses
        self.sources = sources
        self.render_dir = render_dir
        self.sender = sender
        self.timeout_s = timeout_s

    async def execute(
        self,
        ordered: Sequence[Artifact],
        *,
        network_id: str = "",
        environment: str = "",
        cancel: asyncio.Event | None = None,
    ) -> DeploymentReport:
        """Deploy `ordered` (dependencies first) and report every artifact.

        Setting `cancel` stops the run between artifacts; the artifact in
        flight finishes and the rest are reported as cancelled.
        """
        report = DeploymentReport(network_id=network_id, environment=environment)
        succeeded: set[str] = set()
        total = len(ordered)

        for i, artifact in enumerate(ordered):
            if cancel is not None and cancel.is_set():
                result = ArtifactResult.cancelled(artifact)
            elif blocked := [d for d in artifact.dependencies if d not in succeeded]:
                result = ArtifactResult.skipped(artifact, blocked)
            else:
                logger.step(i + 1, total, f"deploying {artifact.kind.value} artifact {artifact.id}")
                result = await self.deploy(artifact)

            if result.succeeded:
                succeeded.add(artifact.id)
            logger.artifact_result(result)
            report.add(result)

        report.finished_at = datetime.now(timezone.utc)
        return report

    async def deploy(self, artifact: Artifact) -> ArtifactResult:
        """Deploy a single artifact; errors become a failed result."""
        try:
            match artifact:
                case OnchainArtifact():
                    return await self.deploy_onchain(artifact)
                case OffchainArtifact():
                    return await self.deploy_offchain(artifact)
        except (CompilationError, TransactionError, ApplyError) as e:
            return ArtifactResult.failed(artifact, e)
        raise TypeError(f"Unsupported artifact: {type(artifact)!r}")

    async def deploy_onchain(self, artifact: OnchainArtifact) -> ArtifactResult:
        source = self.sources.read(artifact.source_locator)
        contract = await self._call(
            CompilationError,
            self.compiler.compile(source, name=artifact.id),
            f"compiling {artifact.source_locator}",
        )
        tx = DeployTransaction(
            sender=self.sender,
            contract=contract,
            constructor_args=tuple(artifact.deploy_params.values()),
        )
        gas = await self._call(TransactionError, self.chain.estimate_gas(tx), "estimating gas")
        address = await self._call(
            TransactionError,
            self.chain.deploy_signed(replace(tx, gas=gas)),
            f"deploying {artifact.id}",
        )
        if not is_address(address):
            raise TransactionError(f"chain returned invalid address {address!r} for {artifact.id}")

        # The contract is on-chain from here on; nothing below may fail the artifact.
        written = await self.addresses.write_back(artifact.id, address)
        warnings: list[str] = []
        if written.warning is not None:
            warnings.append(str(written.warning))
        return ArtifactResult.deployed(artifact, address, warnings)

    async def deploy_offchain(self, artifact: OffchainArtifact) -> ArtifactResult:
        warnings: list[str] = []
        target = self.render(artifact, warnings)
        outcome = await self._call(
            ApplyError, self.cluster.apply(target), f"applying {artifact.source_locator}"
        )
        if not outcome.ok:
            raise ApplyError(outcome.stderr.strip() or f"cluster rejected {artifact.source_locator}")
        if outcome.stderr.strip():
            warnings.append(f"cluster stderr: {outcome.stderr.strip()}")
        return ArtifactResult.applied(artifact, outcome.state or "applied", warnings)

    def render(self, artifact: OffchainArtifact, warnings: list[str]) -> Path:
        """Fill contract addresses into the service manifest, if it has placeholders.

        Returns the file to apply: the rendered copy when anything was
        substituted, the original locator otherwise.
        """
        path = self.sources.path(artifact.source_locator)
        if self.render_dir is None or not path.is_file():
            return path
        try:
            template = path.read_text(encoding="utf-8")
            rendered = self.addresses.render(template)
        except (OSError, PersistenceError) as e:
            warnings.append(f"could not render contract addresses: {e}")
            return path
        if rendered == template:
            return path
        target = self.render_dir / f"{artifact.id}{path.suffix or '.yaml'}"
        try:
            write_atomic(target, rendered.encode("utf-8"))
        except PersistenceError as e:
            raise ApplyError(str(e)) from e
        return target

    async def _call(self, error: type[ForgeError], call: Awaitable[T], what: str) -> T:
        """Await one collaborator call under the timeout, mapping its failures to `error`."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_s)
        except asyncio.TimeoutError as e:
            raise error(f"{what} timed out after {self.timeout_s:g}s") from e
        except ForgeError:
            raise
        except Exception as e:
            raise error(f"{what} failed: {type(e).__name__}: {e}") from e
