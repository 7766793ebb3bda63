"""Typed CLI command payloads.

Each command type represents a distinct user intent. The CLI parses arguments
into these typed objects, which are then dispatched to the appropriate handler.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bertbridge.config.manifest import ConvertManifest


@dataclass(frozen=True, slots=True)
class ConvertCommand:
    """Request to convert a checkpoint as described by a manifest."""

    manifest: ConvertManifest


@dataclass(frozen=True, slots=True)
class ExpandCommand:
    """Request to print a schema's concrete entries for a layer count.

    Useful for reviewing a schema against a checkpoint listing before running
    a conversion.
    """

    schema: Path | None
    layers: int
    prefix: str


Command = ConvertCommand | ExpandCommand
