"""Command-line interface for bertbridge.

Commands:
- convert: load a checkpoint into a BERT classifier and save it
- expand: print the concrete name mapping a schema produces
"""
from __future__ import annotations

import argparse
from pathlib import Path

from bertbridge.command import Command, ConvertCommand, ExpandCommand
from bertbridge.config.manifest import ConvertManifest


class _Args(argparse.Namespace):
    """Typed namespace for CLI arguments."""

    command: str | None = None
    manifest: Path | None = None
    schema: Path | None = None
    layers: int = 12
    prefix: str = "bert"


class CLI(argparse.ArgumentParser):
    """Subcommand parser for conversion and schema inspection."""

    def __init__(self) -> None:
        super().__init__(
            prog="bertbridge",
            description="bertbridge - translate BERT checkpoints into torch encoders.",
        )

        _ = self.add_argument(
            "--version",
            action="version",
            version="%(prog)s 0.1.0",
            help="Show the version and exit.",
        )

        subparsers = self.add_subparsers(
            dest="command",
            parser_class=argparse.ArgumentParser,
        )

        convert_parser = subparsers.add_parser(
            "convert",
            help="Convert a checkpoint as described by a manifest.",
        )
        _ = convert_parser.add_argument(
            "manifest",
            type=Path,
            help="Manifest path (.json, .yml, or .yaml).",
        )

        expand_parser = subparsers.add_parser(
            "expand",
            help="Print the concrete entries a schema expands to.",
        )
        _ = expand_parser.add_argument(
            "--schema",
            type=Path,
            default=None,
            help="Schema file (.json, .yml, or .yaml). Defaults to the built-in BERT schema.",
        )
        _ = expand_parser.add_argument(
            "--layers",
            type=int,
            default=12,
            help="Number of repeated encoder layers.",
        )
        _ = expand_parser.add_argument(
            "--prefix",
            type=str,
            default="bert",
            help="Checkpoint name prefix joined onto every source name.",
        )

    def parse_command(self, argv: list[str] | None = None) -> Command:
        """Parse argv into a typed command payload."""
        args = self.parse_args(argv, namespace=_Args())

        match args.command:
            case "convert":
                assert args.manifest is not None
                return ConvertCommand(manifest=ConvertManifest.from_path(args.manifest))
            case "expand":
                return ExpandCommand(schema=args.schema, layers=args.layers, prefix=args.prefix)
            case _:
                self.error("a command is required (convert or expand)")
