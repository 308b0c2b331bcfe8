"""
Data models for commands, resolution outcomes and invocation results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from xa_cli.core.exceptions import XaError


class PromptArg(BaseModel):
    """Named template argument with a default value."""
    name: str
    default_value: str
    description: str | None = None


class Command(BaseModel):
    """A user-defined prompt command."""
    name: str = Field(exclude=True, default="")
    template: str
    description: str | None = None
    args: list[PromptArg] | None = None

    def get_description(self) -> str:
        return self.description or "Custom prompt command"

    def arg_defaults(self) -> dict[str, str]:
        """Map of declared argument names to their default values."""
        return {arg.name: arg.default_value for arg in self.args or []}


class MatchKind(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "no_match"


@dataclass
class Match:
    """Outcome of resolving a typed command token."""

    kind: MatchKind
    key: str | None = None
    candidates: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind in (MatchKind.EXACT, MatchKind.FUZZY)


@dataclass
class ResolvedInvocation:
    """A command bound to its input and the prompt built from them."""

    command: Command
    input: str
    rendered_prompt: str


class StreamStatus(str, Enum):
    COMPLETE = "complete"
    TRUNCATED = "truncated"
    CANCELLED = "cancelled"


@dataclass
class InvocationResult:
    """Text produced by one completion call."""

    full_text: str
    elapsed: float
    used_streaming: bool
    status: StreamStatus = StreamStatus.COMPLETE
    error: XaError | None = None

    @property
    def partial(self) -> bool:
        return self.status is not StreamStatus.COMPLETE
