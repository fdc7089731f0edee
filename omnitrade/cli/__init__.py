"""CLI commands for OmniTrade.

This package provides the command-line interface for OmniTrade,
including price alerts, notification channels and the background daemon.
"""

from omnitrade.cli.main import cli, main

__all__ = ["cli", "main"]
