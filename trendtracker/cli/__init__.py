"""CLI commands for Trend Tracker.

This package provides the command-line interface: running the scheduler,
triggering individual jobs and managing instruments.
"""

from trendtracker.cli.main import cli, main

__all__ = ["cli", "main"]
