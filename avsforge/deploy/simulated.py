"""In-process collaborators for dry runs and tests.

They behave like the real thing where it matters to the orchestrator:
every contract deployment gets a fresh address (nonce-derived), and
applying the same service manifest twice reports the same applied state.
"""
from __future__ import annotations

import asyncio
import hashlib
import secrets
from pathlib import Path

from pydantic import SecretStr

from avsforge.deploy.backends import ApplyResult, CompiledContract, DeployTransaction
from avsforge.errors import CompilationError, TransactionError

DEFAULT_SENDER = "0x" + "f" * 40


def _sha256(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class SimulatedCompiler:
    """Derives deterministic bytecode from the source text."""

    async def compile(self, source: str, *, name: str) -> CompiledContract:
        await asyncio.sleep(0)
        if not source.strip():
            raise CompilationError(f"empty source for {name!r}")
        return CompiledContract(
            abi=[{"type": "constructor", "inputs": []}],
            bytecode="0x" + _sha256(source),
            name=name,
        )


class SimulatedChain:
    """A ledger that only creates contracts.

    Addresses are derived from a per-instance salt, sender, nonce and
    bytecode, so the same contract deployed twice lands at two different
    addresses, also across processes. Without an explicit sender, the
    deployer account is derived from the signing key.
    """

    def __init__(
        self,
        sender: str | None = None,
        salt: str | None = None,
        private_key: SecretStr | None = None,
    ) -> None:
        self.private_key = private_key
        if sender is None and private_key is not None:
            sender = "0x" + _sha256(private_key.get_secret_value())[-40:]
        self.sender = sender or DEFAULT_SENDER
        self.salt = salt if salt is not None else secrets.token_hex(8)
        self.nonce = 0
        self.contracts: dict[str, DeployTransaction] = {}

    async def estimate_gas(self, tx: DeployTransaction) -> int:
        await asyncio.sleep(0)
        return 53_000 + 200 * (len(tx.contract.bytecode) // 2) + 5_000 * len(tx.constructor_args)

    async def deploy_signed(self, tx: DeployTransaction) -> str:
        await asyncio.sleep(0)
        if tx.gas is None:
            raise TransactionError("transaction has no gas limit")
        sender = tx.sender or self.sender
        address = "0x" + _sha256(f"{self.salt}:{sender}:{self.nonce}:{tx.contract.bytecode}")[-40:]
        self.nonce += 1
        self.contracts[address] = tx
        return address


class SimulatedCluster:
    """Remembers what was applied, keyed by manifest content."""

    def __init__(self) -> None:
        self.applied: dict[str, str] = {}

    async def apply(self, manifest_file: Path) -> ApplyResult:
        await asyncio.sleep(0)
        if manifest_file.is_file():
            content = manifest_file.read_text(encoding="utf-8")
        else:
            content = str(manifest_file)
        state = f"applied:{_sha256(content)[:12]}"
        self.applied[str(manifest_file)] = state
        return ApplyResult(ok=True, state=state, stdout=f"{manifest_file.name} configured")
