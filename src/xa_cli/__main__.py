"""Allow running as python -m xa_cli."""

from xa_cli.cli.main import run

run()
