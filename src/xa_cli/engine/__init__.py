"""
Completion engine: HTTP client, stream consumption and the invocation pipeline.
"""

from xa_cli.engine.client import CompletionClient, CompletionStream
from xa_cli.engine.orchestrator import Orchestrator, Outcome, Stage
from xa_cli.engine.stream import CancelToken, consume

__all__ = [
    "CompletionClient",
    "CompletionStream",
    "CancelToken",
    "consume",
    "Orchestrator",
    "Outcome",
    "Stage",
]
