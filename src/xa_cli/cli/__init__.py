"""
CLI module for the xa_cli package.

Provides the xa command, its prompt management flows and interactive mode.
"""

from xa_cli.cli.main import main, run

__all__ = [
    "main",
    "run",
]
