"""
addresses_test provides tests for address write-back and placeholder seeding.
"""
from __future__ import annotations

import unittest

from avsforge.config.design import ServiceConfig
from avsforge.deploy.addresses import AddressBook, MatchStrategy, type_key
from avsforge.errors import ConfigUpdateWarning, PersistenceError
from avsforge.store import MemoryConfigStore

ADDRESS = "0x" + "c0ffee".ljust(40, "0")


def _store() -> MemoryConfigStore:
    return MemoryConfigStore(
        ServiceConfig.model_validate(
            {
                "nodes": [
                    {"id": "dao", "type": "governance"},
                    {"id": "relay", "type": "p2p"},
                    {"id": "reg-a", "type": "registry"},
                    {"id": "reg-b", "type": "registry"},
                    {
                        "id": "att",
                        "type": "attestation",
                        "integration": {"contractAddress": "0x" + "9" * 40},
                    },
                ]
            }
        )
    )


class _BrokenStore(MemoryConfigStore):
    def put(self, config: ServiceConfig) -> None:
        raise PersistenceError("disk full")


class WriteBackTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = _store()
        self.book = AddressBook(self.store)

    async def test_exact_id_match_wins(self) -> None:
        result = await self.book.write_back("reg-a", ADDRESS)
        self.assertEqual(result.strategy, MatchStrategy.NODE_ID)
        self.assertEqual(result.node_ids, ["reg-a"])
        self.assertIsNone(result.warning)
        config = self.store.get()
        self.assertEqual(config.nodes[2].integration.contract_address, ADDRESS)
        self.assertIsNone(config.nodes[3].integration.contract_address)

    async def test_type_fallback_updates_every_node_of_type(self) -> None:
        result = await self.book.write_back("Reg_istry", ADDRESS)
        self.assertEqual(result.strategy, MatchStrategy.NODE_TYPE)
        self.assertEqual(result.node_ids, ["reg-a", "reg-b"])
        config = self.store.get()
        self.assertEqual(config.nodes[2].integration.contract_address, ADDRESS)
        self.assertEqual(config.nodes[3].integration.contract_address, ADDRESS)

    async def test_type_fallback_matches_governance_by_name(self) -> None:
        result = await self.book.write_back("governance", ADDRESS)
        self.assertEqual(result.node_ids, ["dao"])

    async def test_no_match_is_a_warning_not_an_error(self) -> None:
        result = await self.book.write_back("governance-contract", ADDRESS)
        self.assertFalse(result.updated)
        self.assertIsInstance(result.warning, ConfigUpdateWarning)
        self.assertEqual(self.store.get().addresses(), {"attestation": "0x" + "9" * 40})

    async def test_invalid_address_is_refused(self) -> None:
        result = await self.book.write_back("dao", "0x123")
        self.assertFalse(result.updated)
        self.assertIsInstance(result.warning, ConfigUpdateWarning)

    async def test_unwritable_config_is_a_warning(self) -> None:
        book = AddressBook(_BrokenStore(_store().get()))
        result = await book.write_back("dao", ADDRESS)
        self.assertFalse(result.updated)
        self.assertIn("disk full", str(result.warning))


class SeedTest(unittest.IsolatedAsyncioTestCase):
    async def test_seeds_onchain_nodes_only(self) -> None:
        store = _store()
        seeded = await AddressBook(store).seed_placeholders()
        self.assertEqual(
            seeded,
            {
                "dao": "0x" + "1".zfill(40),
                "reg-a": "0x" + "3".zfill(40),
                "reg-b": "0x" + "4".zfill(40),
            },
        )
        self.assertIsNone(store.get().nodes[1].integration.contract_address)
        self.assertEqual(store.get().nodes[4].integration.contract_address, "0x" + "9" * 40)

    async def test_overwrite(self) -> None:
        store = _store()
        seeded = await AddressBook(store).seed_placeholders(overwrite=True)
        self.assertEqual(seeded["att"], "0x" + "5".zfill(40))

    async def test_seeded_addresses_are_valid_and_hex(self) -> None:
        store = MemoryConfigStore(
            ServiceConfig.model_validate(
                {"nodes": [{"id": f"g{i}", "type": "governance"} for i in range(12)]}
            )
        )
        seeded = await AddressBook(store).seed_placeholders()
        self.assertEqual(seeded["g11"], "0x" + "c".zfill(40))
        self.assertTrue(all(len(a) == 42 for a in seeded.values()))


class RenderTest(unittest.IsolatedAsyncioTestCase):
    async def test_render_known_and_unknown_placeholders(self) -> None:
        store = _store()
        book = AddressBook(store)
        await book.write_back("dao", ADDRESS)
        text = book.render(
            "gov: ${GOVERNANCE_CONTRACT_ADDRESS}\nreg: ${REGISTRY_CONTRACT_ADDRESS}\n"
        )
        self.assertEqual(text, f"gov: {ADDRESS}\nreg: ${{REGISTRY_CONTRACT_ADDRESS}}\n")

    def test_render_without_placeholders_is_identity(self) -> None:
        book = AddressBook(_store())
        self.assertEqual(book.render("kind: Deployment\n"), "kind: Deployment\n")


class TypeKeyTest(unittest.TestCase):
    def test_type_key(self) -> None:
        self.assertEqual(type_key("Gov-Ern_ance. "), "governance")
        self.assertEqual(type_key("p2p"), "p2p")


if __name__ == "__main__":
    unittest.main()
