"""Orchestrator: the library surface tying compiler, stores and executor together.

Every operation the CLI offers is a method here, so callers embedding
avsforge never have to wire the pieces themselves.
"""
from __future__ import annotations

import asyncio
import json
from pathlib import Path

from avsforge.compiler import Compiler, PreviewReport, SchemaValidator
from avsforge.config.design import Design, ServiceConfig
from avsforge.config.manifest import Manifest
from avsforge.config.settings import DeploySettings, Workspace
from avsforge.console import logger
from avsforge.deploy import AddressBook, ChainClient, DeploymentReport, Executor, build_executor
from avsforge.errors import DeploymentInProgressError
from avsforge.store import ConfigStore, JsonConfigStore, ManifestStore, SnapshotManager, write_atomic


class Orchestrator:
    """Runs design → manifest → ordered deployment for one workspace.

    Holds a run lock for the duration of a deployment; generate, snapshot
    and rollback refuse to run while it is held, so the manifest never
    changes under a running deployment.
    """

    def __init__(
        self,
        workspace: Workspace,
        settings: DeploySettings | None = None,
        *,
        config_store: ConfigStore | None = None,
        chain: ChainClient | None = None,
        executor: Executor | None = None,
        validator: SchemaValidator | None = None,
    ) -> None:
        self.workspace = workspace
        self.settings = settings or DeploySettings()
        self.manifests = ManifestStore(workspace.manifest_path)
        self.config = config_store or JsonConfigStore(workspace.config_path)
        self.addresses = AddressBook(self.config)
        self.compiler = Compiler(self.manifests, validator)
        self.snapshots = SnapshotManager(self.manifests, workspace.versions_dir)
        self.executor = executor or build_executor(
            self.settings, workspace, self.addresses, chain=chain
        )
        self._run_lock = asyncio.Lock()

    @property
    def deploying(self) -> bool:
        return self._run_lock.locked()

    # ─────────────────────────────────────────────────────────────────────
    # Design → manifest
    # ─────────────────────────────────────────────────────────────────────

    def load_design(self, path: Path) -> Design:
        """Read a design file and normalize it into the IR."""
        return self.normalize(Design.load_payload(path))

    def normalize(self, payload: object) -> Design:
        return self.compiler.normalizer.normalize(payload)

    async def save_design(self, ir: Design) -> None:
        """Write the IR as the service config record (nodes and all)."""
        await self.config.replace(ServiceConfig.model_validate(ir.dump()))
        logger.path(str(self.workspace.config_path), "config")

    async def generate_manifest(
        self, ir: Design, deploy_after: bool = False
    ) -> tuple[Manifest, DeploymentReport | None]:
        """Compile the IR into the current manifest, optionally deploying it.

        The manifest is written even if it cannot be ordered; the preview is
        where such problems are shown. Deployment still refuses it.

        Raises:
            DeploymentInProgressError: a deployment is running.
        """
        self._ensure_idle("generate a manifest")
        manifest = self.compiler.lowerer.compile(ir)
        logger.success(f"Generated manifest with {len(manifest.artifacts)} artifact(s)")
        logger.path(str(self.manifests.path), "manifest")
        if not deploy_after:
            return manifest, None
        return manifest, await self.deploy(manifest)

    def resolve_preview(self, manifest: Manifest | None = None) -> PreviewReport:
        """Order the manifest for review and write the preview record.

        Structural problems and missing integration variables are reported
        as warnings instead of raised.

        Raises:
            ManifestNotFoundError: no manifest given and none is current.
        """
        if manifest is None:
            manifest = self.manifests.load()
        report = self.compiler.planner.preview(
            manifest, extra_warnings=self.settings.missing_integrations
        )
        data = json.dumps(report.to_dict(), indent=2) + "\n"
        write_atomic(self.workspace.preview_path, data.encode("utf-8"))
        return report

    # ─────────────────────────────────────────────────────────────────────
    # Deployment
    # ─────────────────────────────────────────────────────────────────────

    async def deploy(
        self,
        manifest: Manifest | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> DeploymentReport:
        """Resolve and deploy a manifest (the current one by default).

        Raises:
            ManifestNotFoundError: no manifest given and none is current.
            CyclicDependencyError, MissingDependencyError: the manifest cannot
                be ordered; nothing was attempted.
            DeploymentInProgressError: another deployment is running.
        """
        if self.deploying:
            raise DeploymentInProgressError("a deployment is already running")
        async with self._run_lock:
            if manifest is None:
                manifest = self.manifests.load()
            order = self.compiler.resolver.resolve(manifest)
            logger.header("Deploy", f"{manifest.network_id} / {manifest.environment}")
            report = await self.executor.execute(
                order,
                network_id=manifest.network_id,
                environment=manifest.environment,
                cancel=cancel,
            )
        logger.report_summary(report)
        return report

    # ─────────────────────────────────────────────────────────────────────
    # Versions and addresses
    # ─────────────────────────────────────────────────────────────────────

    def snapshot(self, version: str) -> Path:
        self._ensure_idle("snapshot")
        return self.snapshots.snapshot(version)

    def rollback(self, version: str) -> None:
        self._ensure_idle("rollback")
        self.snapshots.rollback(version)

    async def seed_placeholder_addresses(self, overwrite: bool = False) -> dict[str, str]:
        seeded = await self.addresses.seed_placeholders(overwrite)
        if seeded:
            logger.success(f"Seeded {len(seeded)} placeholder address(es)")
        else:
            logger.info("No placeholder addresses needed")
        return seeded

    def deployed_addresses(self) -> dict[str, str]:
        return self.addresses.addresses()

    def _ensure_idle(self, operation: str) -> None:
        if self.deploying:
            raise DeploymentInProgressError(
                f"cannot {operation} while a deployment is running. Fix: wait for it to finish."
            )
