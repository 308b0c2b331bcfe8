"""
xa_cli - Execute Anything via LLM

Maps a command name plus free-text input to a filled prompt template, sends
it to an OpenAI-compatible chat/completions endpoint, and renders the
(optionally streamed) response.

Example usage:
    from xa_cli import CompletionClient, ConfigManager, Orchestrator, PromptStore

    config = ConfigManager().config
    registry = PromptStore().load()

    with CompletionClient.from_config(config) as client:
        outcome = Orchestrator(registry, client, output, model=config.model).run("trans", "Bonjour")
"""

import logging

__version__ = "0.1.0"

# Core exports
from xa_cli.core import (
    Command,
    ExitCode,
    InvocationResult,
    Match,
    MatchKind,
    PromptRegistry,
    XaError,
    render,
    resolve,
)
from xa_cli.config import Config, ConfigManager, PromptStore
from xa_cli.engine import CancelToken, CompletionClient, Orchestrator, consume

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version
    "__version__",
    # Core
    "Command",
    "Match",
    "MatchKind",
    "PromptRegistry",
    "InvocationResult",
    "ExitCode",
    "XaError",
    "resolve",
    "render",
    # Config
    "Config",
    "ConfigManager",
    "PromptStore",
    # Engine
    "CompletionClient",
    "CancelToken",
    "consume",
    "Orchestrator",
]
