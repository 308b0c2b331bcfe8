"""
Core command resolution, template rendering and data models.
"""

from xa_cli.core.datamodels import (
    Command,
    InvocationResult,
    Match,
    MatchKind,
    PromptArg,
    ResolvedInvocation,
    StreamStatus,
)
from xa_cli.core.exceptions import (
    AuthError,
    CompletionError,
    ConfigError,
    ExitCode,
    MalformedResponseError,
    MissingPlaceholderError,
    NetworkError,
    PromptStoreError,
    RateLimitedError,
    ServerError,
    TemplateError,
    XaError,
)
from xa_cli.core.registry import PromptRegistry, default_commands
from xa_cli.core.resolver import resolve
from xa_cli.core.template import PLACEHOLDER, render

__all__ = [
    "Command",
    "PromptArg",
    "Match",
    "MatchKind",
    "ResolvedInvocation",
    "InvocationResult",
    "StreamStatus",
    "PromptRegistry",
    "default_commands",
    "resolve",
    "render",
    "PLACEHOLDER",
    "ExitCode",
    "XaError",
    "ConfigError",
    "PromptStoreError",
    "TemplateError",
    "MissingPlaceholderError",
    "CompletionError",
    "AuthError",
    "RateLimitedError",
    "ServerError",
    "NetworkError",
    "MalformedResponseError",
]
