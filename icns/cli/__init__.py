"""Command line interface for icns."""

from icns.cli.main import cli, main

__all__ = ["cli", "main"]
