"""
orchestrator_test provides end-to-end tests over a workspace on disk.
"""
from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from avsforge.config import is_address
from avsforge.config.manifest import Manifest, OffchainArtifact
from avsforge.config.settings import DeploySettings, Workspace
from avsforge.deploy import ArtifactStatus, DeployTransaction
from avsforge.deploy.simulated import SimulatedChain
from avsforge.errors import (
    CyclicDependencyError,
    DeploymentInProgressError,
    ManifestNotFoundError,
    MissingDependencyError,
)
from avsforge.orchestrator import Orchestrator


def _payload(cyclic: bool = False) -> dict[str, object]:
    connections = [{"source": "relay", "target": "gov"}]
    if cyclic:
        connections.append({"source": "gov", "target": "relay"})
    return {
        "networkId": "holesky",
        "environment": "staging",
        "nodes": [
            {
                "id": "gov",
                "type": "governance",
                "properties": {"votingThreshold": 70, "stakingRequirement": 1500},
            },
            {"id": "relay", "type": "p2p", "properties": {"replicas": 2}},
        ],
        "connections": connections,
    }


class OrchestratorTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.workspace = Workspace(Path(self._tmp.name))
        self.chain = SimulatedChain(salt="test")
        self.orch = Orchestrator(
            self.workspace,
            DeploySettings(missing_integrations=["P2P_PROTOCOL"]),
            chain=self.chain,
        )

    async def asyncTearDown(self) -> None:
        self._tmp.cleanup()

    async def test_generate_and_deploy_writes_address_to_config(self) -> None:
        ir = self.orch.normalize(_payload())
        await self.orch.save_design(ir)
        manifest, report = await self.orch.generate_manifest(ir, deploy_after=True)

        self.assertTrue(self.workspace.manifest_path.is_file())
        self.assertEqual(len(manifest.artifacts), 2)
        assert report is not None
        self.assertTrue(report.ok)
        self.assertEqual([r.artifact_id for r in report.results], ["gov", "relay"])

        record = json.loads(self.workspace.config_path.read_text(encoding="utf-8"))
        gov = record["nodes"][0]
        self.assertEqual(gov["id"], "gov")
        self.assertTrue(is_address(gov["integration"]["contractAddress"]))
        self.assertEqual(gov["integration"]["contractAddress"], report.result("gov").address)  # type: ignore[union-attr]
        self.assertEqual(self.orch.deployed_addresses(), {"governance": report.result("gov").address})  # type: ignore[union-attr]

    async def test_generate_without_deploy(self) -> None:
        _, report = await self.orch.generate_manifest(self.orch.normalize(_payload()))
        self.assertIsNone(report)
        self.assertEqual(self.chain.nonce, 0)

    async def test_cycle_aborts_before_any_attempt(self) -> None:
        ir = self.orch.normalize(_payload(cyclic=True))
        await self.orch.save_design(ir)
        before = self.workspace.config_path.read_bytes()
        await self.orch.generate_manifest(ir)

        with self.assertRaises(CyclicDependencyError):
            await self.orch.deploy()
        self.assertEqual(self.chain.nonce, 0)
        self.assertEqual(self.chain.contracts, {})
        self.assertEqual(self.workspace.config_path.read_bytes(), before)
        self.assertFalse(self.orch.deploying)

    async def test_missing_dependency_aborts(self) -> None:
        manifest = Manifest(
            network_id="n",
            environment="e",
            artifacts=[
                OffchainArtifact(
                    id="api", source_locator="generated/compute/api.yaml", dependencies=["db"]
                )
            ],
        )
        with self.assertRaises(MissingDependencyError):
            await self.orch.deploy(manifest)

    async def test_deploy_without_manifest(self) -> None:
        with self.assertRaises(ManifestNotFoundError):
            await self.orch.deploy()

    async def test_preview_reports_and_persists(self) -> None:
        await self.orch.generate_manifest(self.orch.normalize(_payload()))
        preview = self.orch.resolve_preview()
        self.assertTrue(preview.resolvable)
        self.assertEqual([a.id for a in preview.order], ["gov", "relay"])
        self.assertEqual(preview.warnings, ["missing environment variable: P2P_PROTOCOL"])

        record = json.loads(self.workspace.preview_path.read_text(encoding="utf-8"))
        self.assertEqual([a["id"] for a in record["resolvedDeploymentOrder"]], ["gov", "relay"])

    async def test_preview_shows_cycle_as_warning(self) -> None:
        await self.orch.generate_manifest(self.orch.normalize(_payload(cyclic=True)))
        preview = self.orch.resolve_preview()
        self.assertFalse(preview.resolvable)
        self.assertTrue(any("cyclic dependency" in w for w in preview.warnings))

    async def test_snapshot_and_rollback_leave_config_alone(self) -> None:
        ir = self.orch.normalize(_payload())
        await self.orch.save_design(ir)
        await self.orch.generate_manifest(ir)
        original = self.workspace.manifest_path.read_bytes()
        self.orch.snapshot("v1")

        await self.orch.deploy()
        config_after_deploy = self.workspace.config_path.read_bytes()

        payload = _payload()
        payload["nodes"][0]["properties"]["votingThreshold"] = 90  # type: ignore[index]
        await self.orch.generate_manifest(self.orch.normalize(payload))
        self.assertNotEqual(self.workspace.manifest_path.read_bytes(), original)

        self.orch.rollback("v1")
        self.assertEqual(self.workspace.manifest_path.read_bytes(), original)
        self.assertEqual(self.workspace.config_path.read_bytes(), config_after_deploy)

    async def test_snapshot_refused_while_deploying(self) -> None:
        orch = self.orch
        await orch.save_design(orch.normalize(_payload()))
        await orch.generate_manifest(orch.normalize(_payload()))
        refused: list[Exception] = []

        class _SnoopingChain(SimulatedChain):
            async def deploy_signed(self, tx: DeployTransaction) -> str:
                for call in (lambda: orch.snapshot("mid"), lambda: orch.rollback("mid")):
                    try:
                        call()
                    except DeploymentInProgressError as e:
                        refused.append(e)
                return await super().deploy_signed(tx)

        orch.executor.chain = _SnoopingChain()
        report = await orch.deploy()
        self.assertTrue(report.ok)
        self.assertEqual(len(refused), 2)
        self.assertEqual(orch.snapshots.versions(), [])

    async def test_generate_refused_while_deploying(self) -> None:
        orch = self.orch
        ir = orch.normalize(_payload())
        await orch.save_design(ir)
        await orch.generate_manifest(ir)
        before = self.workspace.manifest_path.read_bytes()
        changed = _payload()
        changed["nodes"][0]["properties"]["votingThreshold"] = 90  # type: ignore[index]
        refused: list[Exception] = []

        class _RegeneratingChain(SimulatedChain):
            async def deploy_signed(self, tx: DeployTransaction) -> str:
                try:
                    await orch.generate_manifest(orch.normalize(changed))
                except DeploymentInProgressError as e:
                    refused.append(e)
                return await super().deploy_signed(tx)

        orch.executor.chain = _RegeneratingChain()
        report = await orch.deploy()
        self.assertTrue(report.ok)
        self.assertEqual(len(refused), 1)
        self.assertEqual(self.workspace.manifest_path.read_bytes(), before)

    async def test_concurrent_deploy_refused(self) -> None:
        orch = self.orch
        await orch.save_design(orch.normalize(_payload()))
        await orch.generate_manifest(orch.normalize(_payload()))
        refused: list[Exception] = []

        class _ReentrantChain(SimulatedChain):
            async def deploy_signed(self, tx: DeployTransaction) -> str:
                try:
                    await orch.deploy()
                except DeploymentInProgressError as e:
                    refused.append(e)
                return await super().deploy_signed(tx)

        orch.executor.chain = _ReentrantChain()
        await orch.deploy()
        self.assertEqual(len(refused), 1)

    async def test_redeploy_changes_onchain_only(self) -> None:
        ir = self.orch.normalize(_payload())
        await self.orch.save_design(ir)
        _, first = await self.orch.generate_manifest(ir, deploy_after=True)
        second = await self.orch.deploy()
        assert first is not None
        self.assertNotEqual(first.result("gov").address, second.result("gov").address)  # type: ignore[union-attr]
        self.assertEqual(
            first.result("relay").applied_state,  # type: ignore[union-attr]
            second.result("relay").applied_state,  # type: ignore[union-attr]
        )
        self.assertEqual(second.result("relay").status, ArtifactStatus.APPLIED)  # type: ignore[union-attr]

    async def test_seed_placeholder_addresses(self) -> None:
        await self.orch.save_design(self.orch.normalize(_payload()))
        seeded = await self.orch.seed_placeholder_addresses()
        self.assertEqual(seeded, {"gov": "0x" + "1".zfill(40)})
        self.assertEqual(await self.orch.seed_placeholder_addresses(), {})
        self.assertEqual(self.orch.deployed_addresses(), {"governance": "0x" + "1".zfill(40)})


if __name__ == "__main__":
    unittest.main()
