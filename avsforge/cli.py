"""Command-line interface for avsforge.

Commands:
- normalize: Validate a design and show the IR (optionally store it as config)
- generate: Compile a design into the current manifest (optionally deploy it)
- preview: Resolve the current manifest and show the deployment order
- deploy: Deploy the current manifest
- snapshot / rollback: Version the current manifest
- seed-addresses: Give on-chain config nodes placeholder addresses
- addresses: Show recorded contract addresses
"""
from __future__ import annotations

import argparse
from pathlib import Path

from avsforge.command import (
    AddressesCommand,
    Command,
    DeployCommand,
    GenerateCommand,
    Invocation,
    NormalizeCommand,
    PreviewCommand,
    RollbackCommand,
    SeedAddressesCommand,
    SnapshotCommand,
)


class _Args(argparse.Namespace):
    """Typed namespace for CLI arguments."""

    command: str | None = None
    workspace: Path = Path(".")
    design: Path | None = None
    save_config: bool = False
    deploy: bool = False
    print_plan: bool = False
    version_tag: str | None = None
    overwrite: bool = False


class CLI(argparse.ArgumentParser):
    """Subcommand CLI over the orchestrator's operations."""

    def __init__(self) -> None:
        super().__init__(
            prog="avsforge",
            description="avsforge - compile service designs into ordered deployments.",
        )

        _ = self.add_argument(
            "--version",
            action="version",
            version="%(prog)s 0.1.0",
            help="Show the version and exit.",
        )
        _ = self.add_argument(
            "--workspace",
            type=Path,
            default=Path("."),
            help=" ".join(
                [
                    "Workspace root holding dist/ (manifest, snapshots, preview)",
                    "and config/config.json. Defaults to the current directory.",
                ]
            ),
        )

        subparsers = self.add_subparsers(
            dest="command",
            parser_class=argparse.ArgumentParser,
        )

        normalize_parser = subparsers.add_parser(
            "normalize",
            help="Validate a design, merge defaults and derive dependencies.",
        )
        self._add_design(normalize_parser)
        _ = normalize_parser.add_argument(
            "--save-config",
            action="store_true",
            default=False,
            dest="save_config",
            help="Write the normalized design as config/config.json.",
        )

        generate_parser = subparsers.add_parser(
            "generate",
            help="Compile a design into the current deployment manifest.",
        )
        self._add_design(generate_parser)
        _ = generate_parser.add_argument(
            "--deploy",
            action="store_true",
            default=False,
            help="Deploy the manifest right after generating it.",
        )

        preview_parser = subparsers.add_parser(
            "preview",
            help="Resolve the deployment order without deploying.",
        )
        _ = preview_parser.add_argument(
            "--print-plan",
            action="store_true",
            default=False,
            dest="print_plan",
            help="Print the ordered plan with deploy parameters.",
        )

        _ = subparsers.add_parser("deploy", help="Deploy the current manifest.")

        snapshot_parser = subparsers.add_parser(
            "snapshot",
            help="Save the current manifest under a version tag.",
        )
        self._add_version(snapshot_parser)

        rollback_parser = subparsers.add_parser(
            "rollback",
            help="Restore the current manifest from a version tag.",
        )
        self._add_version(rollback_parser)

        seed_parser = subparsers.add_parser(
            "seed-addresses",
            help="Give on-chain config nodes placeholder contract addresses.",
        )
        _ = seed_parser.add_argument(
            "--overwrite",
            action="store_true",
            default=False,
            help="Replace addresses that are already set.",
        )

        _ = subparsers.add_parser("addresses", help="Show recorded contract addresses.")

    def _add_design(self, parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "design",
            type=Path,
            help="Design path (.json, .yml, or .yaml).",
        )

    def _add_version(self, parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "version_tag",
            metavar="version",
            help="Version tag (letters, digits, '.', '_' or '-').",
        )

    def parse_command(self, argv: list[str] | None = None) -> Command:
        """Parse CLI arguments into a typed command payload."""
        return self.parse_invocation(argv).command

    def parse_invocation(self, argv: list[str] | None = None) -> Invocation:
        """Parse CLI arguments into a command plus the workspace it runs in."""
        args = self.parse_args(argv, namespace=_Args())
        return Invocation(workspace=args.workspace, command=self._command(args))

    def _command(self, args: _Args) -> Command:
        match args.command:
            case "normalize":
                if args.design is None:
                    raise ValueError("normalize requires a design path.")
                return NormalizeCommand(design=args.design, save_config=bool(args.save_config))
            case "generate":
                if args.design is None:
                    raise ValueError("generate requires a design path.")
                return GenerateCommand(design=args.design, deploy=bool(args.deploy))
            case "preview":
                return PreviewCommand(print_plan=bool(args.print_plan))
            case "deploy":
                return DeployCommand()
            case "snapshot":
                if args.version_tag is None:
                    raise ValueError("snapshot requires a version tag.")
                return SnapshotCommand(version=args.version_tag)
            case "rollback":
                if args.version_tag is None:
                    raise ValueError("rollback requires a version tag.")
                return RollbackCommand(version=args.version_tag)
            case "seed-addresses":
                return SeedAddressesCommand(overwrite=bool(args.overwrite))
            case "addresses":
                return AddressesCommand()
            case None:
                self.error("a command is required (see --help)")
            case _:
                raise ValueError(f"Invalid command: {args.command}")
