"""Subprocess-backed collaborators: `solc` for contracts, `kubectl` for services.

Both tools are run through asyncio subprocesses so the executor can await
them and bound them with a timeout. If the awaiting task is cancelled the
child process is killed rather than left running.
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from pydantic import SecretStr

from avsforge.deploy.backends import ApplyResult, CompiledContract, DeployTransaction
from avsforge.errors import ApplyError, CompilationError, TransactionError

logger = logging.getLogger(__name__)


async def run_tool(argv: list[str], *, stdin: bytes | None = None) -> tuple[int, str, str]:
    """Run a command and return (returncode, stdout, stderr)."""
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout_b, stderr_b = await proc.communicate(stdin)
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise
    code = proc.returncode if proc.returncode is not None else 1
    if code != 0:
        logger.debug("%s exited with %d", " ".join(argv), code)
    return code, stdout_b.decode("utf-8", "replace"), stderr_b.decode("utf-8", "replace")


class SolcCompiler:
    """Compiles Solidity through `solc --standard-json`."""

    def __init__(self, executable: str = "solc") -> None:
        self.executable = executable

    def standard_input(self, source: str) -> bytes:
        payload = {
            "language": "Solidity",
            "sources": {"Contract.sol": {"content": source}},
            "settings": {"outputSelection": {"*": {"*": ["abi", "evm.bytecode"]}}},
        }
        return json.dumps(payload).encode("utf-8")

    async def compile(self, source: str, *, name: str) -> CompiledContract:
        try:
            code, stdout, stderr = await run_tool(
                [self.executable, "--standard-json"], stdin=self.standard_input(source)
            )
        except FileNotFoundError as e:
            raise CompilationError(f"compiler {self.executable!r} not found") from e
        if code != 0:
            raise CompilationError(f"{self.executable} exited with {code}: {stderr.strip()}")
        return self.parse_output(stdout, name=name)

    def parse_output(self, stdout: str, *, name: str) -> CompiledContract:
        try:
            output = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise CompilationError(f"unreadable compiler output for {name!r}: {e}") from e

        errors = [
            e.get("formattedMessage", e.get("message", ""))
            for e in output.get("errors", [])
            if e.get("severity") == "error"
        ]
        if errors:
            raise CompilationError(f"compilation errors in {name!r}: " + " | ".join(errors))

        contracts = output.get("contracts", {}).get("Contract.sol", {})
        if not contracts:
            raise CompilationError(f"no contract found in source for {name!r}")
        contract_name = next(iter(contracts))
        contract = contracts[contract_name]
        return CompiledContract(
            abi=list(contract.get("abi", [])),
            bytecode="0x" + contract["evm"]["bytecode"]["object"],
            name=contract_name,
        )


class KubectlApplier:
    """Applies service manifests with `kubectl apply -f`."""

    def __init__(self, context: str | None = None, executable: str = "kubectl") -> None:
        self.context = context
        self.executable = executable

    def command(self, manifest_file: Path) -> list[str]:
        argv = [self.executable]
        if self.context:
            argv += ["--context", self.context]
        return [*argv, "apply", "-f", str(manifest_file)]

    async def apply(self, manifest_file: Path) -> ApplyResult:
        try:
            code, stdout, stderr = await run_tool(self.command(manifest_file))
        except FileNotFoundError as e:
            raise ApplyError(f"{self.executable!r} not found") from e
        if code != 0:
            raise ApplyError(f"applying {manifest_file} failed: {stderr.strip() or f'exit {code}'}")
        return ApplyResult(ok=True, state=stdout.strip() or "applied", stdout=stdout, stderr=stderr)


class UnconfiguredChain:
    """Stands in when no chain client was supplied; every call fails cleanly.

    Holds the endpoint and signing key it was given so the failure says
    which of them a real client would still need.
    """

    def __init__(self, provider_url: str | None = None, private_key: SecretStr | None = None) -> None:
        self.provider_url = provider_url
        self.private_key = private_key

    async def estimate_gas(self, tx: DeployTransaction) -> int:
        signer = "signing key set" if self.private_key is not None else "DEPLOYER_PRIVATE_KEY unset"
        raise TransactionError(
            f"no chain client configured for {self.provider_url or 'PROVIDER_URL (unset)'} "
            f"({signer}). "
            "Fix: pass a ChainClient to the orchestrator or use AVSFORGE_BACKEND=simulated."
        )

    async def deploy_signed(self, tx: DeployTransaction) -> str:
        return str(await self.estimate_gas(tx))
