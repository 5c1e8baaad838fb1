"""CLI commands for stockledger.

This package provides the command-line interface for recording
trades and reporting on the portfolio.
"""

from stockledger.cli.main import cli, main

__all__ = ["cli", "main"]
