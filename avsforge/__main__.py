"""
__main__ provides the console-script entrypoint for the avsforge package.
"""
from __future__ import annotations

import asyncio
import os
import sys
import traceback

from avsforge.cli import CLI
from avsforge.command import (
    AddressesCommand,
    Command,
    DeployCommand,
    GenerateCommand,
    NormalizeCommand,
    PreviewCommand,
    RollbackCommand,
    SeedAddressesCommand,
    SnapshotCommand,
)
from avsforge.config.settings import DeploySettings, Workspace
from avsforge.console import logger
from avsforge.errors import ForgeError
from avsforge.orchestrator import Orchestrator


async def run(orchestrator: Orchestrator, command: Command) -> int:
    """Execute one command; returns the process exit code."""
    match command:
        case NormalizeCommand() as c:
            ir = orchestrator.load_design(c.design)
            logger.json(ir.dump())
            if c.save_config:
                await orchestrator.save_design(ir)
                logger.success("Saved normalized design as config")
            return 0
        case GenerateCommand() as c:
            ir = orchestrator.load_design(c.design)
            _, report = await orchestrator.generate_manifest(ir, deploy_after=c.deploy)
            return 0 if report is None or report.ok else 1
        case PreviewCommand() as c:
            preview = orchestrator.resolve_preview()
            if c.print_plan:
                print(orchestrator.compiler.planner.format(preview))
            for warning in preview.warnings:
                logger.warning(warning)
            logger.path(str(orchestrator.workspace.preview_path), "preview")
            return 0 if preview.resolvable else 1
        case DeployCommand():
            report = await orchestrator.deploy()
            return 0 if report.ok else 1
        case SnapshotCommand() as c:
            logger.path(str(orchestrator.snapshot(c.version)), "snapshot")
            return 0
        case RollbackCommand() as c:
            orchestrator.rollback(c.version)
            return 0
        case SeedAddressesCommand() as c:
            seeded = await orchestrator.seed_placeholder_addresses(c.overwrite)
            if seeded:
                logger.key_value(seeded, title="placeholder addresses")
            return 0
        case AddressesCommand():
            addresses = orchestrator.deployed_addresses()
            if addresses:
                logger.key_value(addresses, title="contract addresses")
            else:
                logger.info("No contract addresses recorded")
            return 0
        case _:
            raise ValueError(f"Invalid command payload: {type(command)!r}")


def main(argv: list[str] | None = None) -> None:
    """
    main is the entrypoint for the `avsforge` console script.
    """
    try:
        invocation = CLI().parse_invocation(argv)
        settings = DeploySettings.from_env(os.environ)
        orchestrator = Orchestrator(Workspace(invocation.workspace), settings)
        code = asyncio.run(run(orchestrator, invocation.command))
    except SystemExit as e:
        code = int(e.code) if isinstance(e.code, int) else 1
        if code == 0:
            raise
        sys.exit(code)
    except ForgeError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        print(f"details: {e!r}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"unexpected error: {type(e).__name__}: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)
    if code != 0:
        sys.exit(code)


if __name__ == "__main__":
    main()
