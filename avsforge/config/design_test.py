"""
design_test provides tests for JSON/YAML design loading and the config record.
"""
from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from avsforge.config.design import Design, NodeType, ServiceConfig
from avsforge.config.manifest import Manifest, OffchainArtifact, OnchainArtifact


class DesignTest(unittest.TestCase):
    def test_load_yaml_design_with_vars(self) -> None:
        """
        test loading a YAML design with vars and shorthand types.
        """
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "design.yml"
            path.write_text(
                "\n".join(
                    [
                        "vars:",
                        "  threshold: 70",
                        "networkId: holesky",
                        "environment: staging",
                        "nodes:",
                        "  - id: gov",
                        "    type: Gov",
                        "    properties:",
                        "      votingThreshold: ${threshold}",
                        "  - id: relay",
                        "    type: messaging",
                        "connections:",
                        "  - source: relay",
                        "    target: gov",
                    ]
                ),
                encoding="utf-8",
            )

            design = Design.from_path(path)
            self.assertEqual(design.network_id, "holesky")
            self.assertEqual(design.nodes[0].type, NodeType.GOVERNANCE)
            self.assertEqual(design.nodes[0].properties["votingThreshold"], 70)
            self.assertEqual(design.nodes[1].type, NodeType.P2P)
            self.assertEqual(design.connections[0].channel, "default")

    def test_load_json_design(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "design.json"
            path.write_text(
                json.dumps(
                    {
                        "networkId": "mainnet",
                        "environment": "prod",
                        "nodes": [{"id": "reg", "type": "registry"}],
                    }
                ),
                encoding="utf-8",
            )
            design = Design.from_path(path)
            self.assertEqual(design.node("reg").type, NodeType.REGISTRY)  # type: ignore[union-attr]
            self.assertIsNone(design.node("missing"))

    def test_unsupported_suffix_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "design.toml"
            path.write_text("x = 1", encoding="utf-8")
            with self.assertRaises(ValueError):
                Design.from_path(path)

    def test_unknown_node_type_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Design.model_validate(
                {"networkId": "n", "environment": "e", "nodes": [{"id": "x", "type": "quantum"}]}
            )


class ServiceConfigTest(unittest.TestCase):
    def test_addresses_and_extra_keys_survive(self) -> None:
        config = ServiceConfig.model_validate(
            {
                "networkId": "holesky",
                "nodes": [
                    {
                        "id": "gov",
                        "type": "governance",
                        "integration": {"provider": "native", "contractAddress": "0x" + "1" * 40},
                    },
                    {"id": "relay", "type": "p2p"},
                ],
            }
        )
        self.assertEqual(config.addresses(), {"governance": "0x" + "1" * 40})
        dumped = config.dump()
        self.assertEqual(dumped["networkId"], "holesky")
        self.assertNotIn("contractAddress", dumped["nodes"][1]["integration"])  # type: ignore[index]


class ManifestTest(unittest.TestCase):
    def test_artifact_variant_from_class_tag(self) -> None:
        manifest = Manifest.model_validate(
            {
                "networkId": "n",
                "environment": "e",
                "artifacts": [
                    {"id": "gov", "class": "onchain", "sourceLocator": "contracts/Governance.sol"},
                    {"id": "relay", "class": "offchain", "sourceLocator": "generated/p2p/relay.yaml"},
                ],
            }
        )
        self.assertIsInstance(manifest.artifacts[0], OnchainArtifact)
        self.assertIsInstance(manifest.artifacts[1], OffchainArtifact)

    def test_artifact_without_class_tag_rejected(self) -> None:
        for tag in [{}, {"class": "satellite"}]:
            artifact = {"id": "relay", "sourceLocator": "generated/p2p/relay.yaml", **tag}
            with self.assertRaises(ValidationError, msg=str(tag)):
                Manifest.model_validate({"networkId": "n", "environment": "e", "artifacts": [artifact]})

    def test_persisted_keys(self) -> None:
        manifest = Manifest(
            network_id="n",
            environment="e",
            artifacts=[OnchainArtifact(id="gov", source_locator="contracts/Governance.sol")],
        )
        record = json.loads(manifest.to_json())
        self.assertEqual(set(record), {"networkId", "environment", "artifacts"})
        self.assertEqual(
            list(record["artifacts"][0]),
            ["id", "class", "sourceLocator", "deployParams", "dependencies"],
        )
        self.assertTrue(manifest.to_json().endswith("}\n"))


if __name__ == "__main__":
    unittest.main()
