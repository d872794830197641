"""Command-line interface for Lockbox."""

from .cli import cli, main

__all__ = ["cli", "main"]
