"""
snapshot_test provides tests for manifest snapshots and rollback.
"""
from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from avsforge.config.manifest import Manifest, OnchainArtifact
from avsforge.errors import (
    ManifestNotFoundError,
    PersistenceError,
    SnapshotExistsError,
    SnapshotNotFoundError,
    ValidationError,
)
from avsforge.store import ManifestStore, SnapshotManager


def _manifest(threshold: int) -> Manifest:
    return Manifest(
        network_id="holesky",
        environment="staging",
        artifacts=[
            OnchainArtifact(
                id="gov",
                source_locator="contracts/Governance.sol",
                deploy_params={"threshold": threshold},
            )
        ],
    )


class SnapshotTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.store = ManifestStore(root / "dist" / "manifest.json")
        self.snapshots = SnapshotManager(self.store, root / "dist" / "versions")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_snapshot_mutate_rollback_is_byte_identical(self) -> None:
        self.store.save(_manifest(70))
        original = self.store.path.read_bytes()

        path = self.snapshots.snapshot("v1")
        self.assertEqual(path.name, "manifest_v1.json")
        self.assertEqual(path.read_bytes(), original)

        self.store.save(_manifest(90))
        self.assertNotEqual(self.store.path.read_bytes(), original)

        self.snapshots.rollback("v1")
        self.assertEqual(self.store.path.read_bytes(), original)
        self.assertEqual(self.store.load().artifacts[0].deploy_params, {"threshold": 70})

    def test_rollback_keeps_snapshot(self) -> None:
        self.store.save(_manifest(70))
        path = self.snapshots.snapshot("v1")
        self.snapshots.rollback("v1")
        self.assertTrue(path.is_file())
        self.assertEqual(self.snapshots.versions(), ["v1"])

    def test_rollback_preserves_unparsed_bytes(self) -> None:
        # Hand-edited record with different whitespace; restored verbatim.
        self.store.write_bytes(b'{"networkId":"n","environment":"e","artifacts":[]}')
        self.snapshots.snapshot("raw")
        self.store.save(_manifest(1))
        self.snapshots.rollback("raw")
        self.assertEqual(
            self.store.path.read_bytes(), b'{"networkId":"n","environment":"e","artifacts":[]}'
        )

    def test_snapshot_without_manifest(self) -> None:
        with self.assertRaises(ManifestNotFoundError):
            self.snapshots.snapshot("v1")

    def test_snapshots_are_immutable(self) -> None:
        self.store.save(_manifest(70))
        self.snapshots.snapshot("v1")
        self.store.save(_manifest(90))
        with self.assertRaises(SnapshotExistsError):
            self.snapshots.snapshot("v1")
        self.snapshots.rollback("v1")
        self.assertEqual(self.store.load().artifacts[0].deploy_params, {"threshold": 70})

    def test_rollback_unknown_version(self) -> None:
        self.store.save(_manifest(70))
        before = self.store.path.read_bytes()
        with self.assertRaises(SnapshotNotFoundError) as ctx:
            self.snapshots.rollback("v9")
        self.assertEqual(ctx.exception.version, "v9")
        self.assertEqual(self.store.path.read_bytes(), before)

    def test_invalid_version_tag(self) -> None:
        self.store.save(_manifest(70))
        for tag in ["", "../escape", "v 1", "a/b"]:
            with self.assertRaises(ValidationError, msg=tag) as ctx:
                self.snapshots.snapshot(tag)
            self.assertIn("version", ctx.exception.fields)
            self.assertNotIn("design", str(ctx.exception))

    def test_rollback_to_malformed_tag_is_not_found(self) -> None:
        self.store.save(_manifest(70))
        before = self.store.path.read_bytes()
        for tag in ["v 1", "../manifest", ""]:
            with self.assertRaises(SnapshotNotFoundError, msg=tag) as ctx:
                self.snapshots.rollback(tag)
            self.assertEqual(ctx.exception.version, tag)
        self.assertEqual(self.store.path.read_bytes(), before)

    def test_versions_sorted(self) -> None:
        self.store.save(_manifest(70))
        for tag in ["v2", "v1", "v10"]:
            self.snapshots.snapshot(tag)
        self.assertEqual(self.snapshots.versions(), ["v1", "v10", "v2"])


class ManifestStoreTest(unittest.TestCase):
    def test_load_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ManifestNotFoundError):
                ManifestStore(Path(tmp) / "manifest.json").load()

    def test_load_corrupt(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "manifest.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(PersistenceError):
                ManifestStore(path).load()

    def test_load_untagged_artifact(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "manifest.json"
            path.write_text(
                json.dumps(
                    {
                        "networkId": "n",
                        "environment": "e",
                        "artifacts": [{"id": "relay", "sourceLocator": "generated/p2p/relay.yaml"}],
                    }
                ),
                encoding="utf-8",
            )
            with self.assertRaises(PersistenceError):
                ManifestStore(path).load()


if __name__ == "__main__":
    unittest.main()
