"""Command-line interface for tabfmt."""

from tabfmt.cli.main import cli

__all__ = ["cli"]
