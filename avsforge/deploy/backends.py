"""Collaborator protocols: the compiler, the chain and the cluster.

The executor decides what to deploy and in which order; these collaborators
do the actual work. Each call is potentially long-running I/O and is awaited
individually (and bounded by a timeout) by the executor.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from avsforge.errors import CompilationError


@dataclass(frozen=True, slots=True)
class CompiledContract:
    """Compiler output for one contract source."""

    abi: list[dict[str, object]]
    bytecode: str
    name: str = "Contract"


@dataclass(frozen=True, slots=True)
class DeployTransaction:
    """A contract-creation transaction, before signing."""

    sender: str | None
    contract: CompiledContract
    constructor_args: tuple[object, ...] = ()
    gas: int | None = None


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """What the cluster control plane said about one apply."""

    ok: bool
    state: str = ""
    stdout: str = ""
    stderr: str = ""


class SourceCompiler(Protocol):
    async def compile(self, source: str, *, name: str) -> CompiledContract:
        """Compile contract source, raising CompilationError on rejection."""
        ...


class ChainClient(Protocol):
    async def estimate_gas(self, tx: DeployTransaction) -> int:
        ...

    async def deploy_signed(self, tx: DeployTransaction) -> str:
        """Sign and submit `tx`; return the created contract's address.

        Raises TransactionError on signing or submission failure.
        """
        ...


class ClusterApplier(Protocol):
    async def apply(self, manifest_file: Path) -> ApplyResult:
        ...


@dataclass(slots=True)
class SourceReader:
    """Reads artifact payloads from source locators under a root directory.

    With `stub_missing`, a locator that does not exist on disk yields a
    placeholder source instead of an error (dry runs against designs whose
    code has not been generated yet).
    """

    root: Path
    stub_missing: bool = False
    stubs: dict[str, str] = field(default_factory=dict)

    def path(self, locator: str) -> Path:
        return self.root / locator

    def read(self, locator: str) -> str:
        path = self.path(locator)
        if not path.is_file():
            if self.stub_missing:
                return self.stubs.setdefault(locator, f"// generated placeholder for {locator}\n")
            raise CompilationError(f"source not found for locator {locator!r} at {path}")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise CompilationError(f"failed to read source {path}: {e}") from e
