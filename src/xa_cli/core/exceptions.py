"""
Exception classes and exit codes for xa.
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes, one per failure kind."""

    OK = 0
    ERROR = 1
    USAGE = 2
    NO_MATCH = 3
    AMBIGUOUS = 4
    MISSING_PLACEHOLDER = 5
    NOT_CONFIGURED = 6
    AUTH = 10
    RATE_LIMITED = 11
    SERVER = 12
    NETWORK = 13
    MALFORMED_RESPONSE = 14
    TRUNCATED = 20
    CANCELLED = 130


class XaError(Exception):
    """Base exception for xa errors."""

    exit_code: ExitCode = ExitCode.ERROR


class ConfigError(XaError):
    """Configuration missing or invalid."""

    exit_code = ExitCode.NOT_CONFIGURED


class PromptStoreError(XaError):
    """Prompt file could not be read or written."""


class TemplateError(XaError):
    """Template could not be rendered."""


class MissingPlaceholderError(TemplateError):
    """Template has no {input} placeholder, so the input would be dropped."""

    exit_code = ExitCode.MISSING_PLACEHOLDER


class CompletionError(XaError):
    """Completion request failed."""


class AuthError(CompletionError):
    """Credential rejected (401/403)."""

    exit_code = ExitCode.AUTH


class RateLimitedError(CompletionError):
    """Too many requests (429)."""

    exit_code = ExitCode.RATE_LIMITED

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class ServerError(CompletionError):
    """Endpoint answered with an error status."""

    exit_code = ExitCode.SERVER

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(CompletionError):
    """Connection failed, was reset, or went idle for too long."""

    exit_code = ExitCode.NETWORK


class MalformedResponseError(CompletionError):
    """Response body could not be turned into text."""

    exit_code = ExitCode.MALFORMED_RESPONSE
