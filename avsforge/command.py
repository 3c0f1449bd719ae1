"""Typed CLI command payloads.

Each command type represents a distinct user intent. The CLI parses arguments
into these typed objects, which are then dispatched to the orchestrator.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class NormalizeCommand:
    """Normalize a design and show the IR; optionally store it as the config."""

    design: Path
    save_config: bool


@dataclass(frozen=True, slots=True)
class GenerateCommand:
    """Compile a design into the current manifest, optionally deploying it."""

    design: Path
    deploy: bool


@dataclass(frozen=True, slots=True)
class PreviewCommand:
    """Resolve the current manifest and report the order without deploying.

    Useful for reviewing a plan before anything touches the chain.
    """

    print_plan: bool


@dataclass(frozen=True, slots=True)
class DeployCommand:
    """Deploy the current manifest."""


@dataclass(frozen=True, slots=True)
class SnapshotCommand:
    version: str


@dataclass(frozen=True, slots=True)
class RollbackCommand:
    version: str


@dataclass(frozen=True, slots=True)
class SeedAddressesCommand:
    """Fill on-chain config nodes with placeholder addresses."""

    overwrite: bool


@dataclass(frozen=True, slots=True)
class AddressesCommand:
    """Show the contract addresses recorded in the config."""


Command = (
    NormalizeCommand
    | GenerateCommand
    | PreviewCommand
    | DeployCommand
    | SnapshotCommand
    | RollbackCommand
    | SeedAddressesCommand
    | AddressesCommand
)


@dataclass(frozen=True, slots=True)
class Invocation:
    """A parsed command line: which workspace, and what to do in it."""

    workspace: Path
    command: Command
