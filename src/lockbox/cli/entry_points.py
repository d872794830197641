"""CLI entry points for Lockbox."""

from lockbox.cli import cli


def entrypoint() -> None:
    """Entry point for CLI."""
    cli(prog_name="lockbox")
