"""CLI subcommands."""

from pkpass_cli.commands import generate, verify

__all__ = ["generate", "verify"]
