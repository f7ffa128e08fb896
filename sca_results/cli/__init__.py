"""Command line interface for sca-results."""

from .main import cli, main

__all__ = ["cli", "main"]
