"""
Per-invocation pipeline: resolve, render, request, stream.

State machine:
    idle -> resolving -> rendering -> requesting -> streaming -> done
with an exit to failed from any state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping, Protocol

from xa_cli.core.datamodels import (
    InvocationResult,
    Match,
    MatchKind,
    ResolvedInvocation,
    StreamStatus,
)
from xa_cli.core.exceptions import CompletionError, ExitCode, MissingPlaceholderError, XaError
from xa_cli.core.template import render
from xa_cli.engine.stream import CancelToken, consume
from xa_cli.log import log_exception

if TYPE_CHECKING:
    from xa_cli.core.registry import PromptRegistry

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RENDERING = "rendering"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


class ChunkSource(Protocol):
    """Anything that can turn a prompt into text chunks."""

    def complete(self, prompt: str, model: str, stream: bool = True) -> Iterable[str]:
        ...


class OutputSink(Protocol):
    """Where an invocation's text and messages go."""

    def begin(self, streaming: bool) -> None:
        ...

    def write_chunk(self, chunk: str) -> None:
        ...

    def finish(self, result: InvocationResult) -> None:
        ...

    def error(self, message: str) -> None:
        """Report a failure, stopping any live rendering first."""
        ...

    def close(self) -> None:
        ...


@dataclass
class Outcome:
    """How an invocation ended."""

    stage: Stage
    exit_code: ExitCode
    failed_at: Stage | None = None
    match: Match | None = None
    invocation: ResolvedInvocation | None = None
    result: InvocationResult | None = None
    error: XaError | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code is ExitCode.OK


def describe_match_failure(token: str, match: Match) -> str:
    """User-facing message for NoMatch and Ambiguous outcomes."""
    if match.kind is MatchKind.AMBIGUOUS:
        return f"Ambiguous command '{token}'. Did you mean one of: {', '.join(match.candidates)}?"
    return f"Command '{token}' not found. Use 'xa --ls' to see available commands."


class Orchestrator:
    """Runs one command invocation through the pipeline.

    Usage:
        orchestrator = Orchestrator(registry, client, output, model="gpt-4o-mini")
        outcome = orchestrator.run("trans", "Bonjour")
        sys.exit(outcome.exit_code)
    """

    def __init__(
        self,
        registry: "PromptRegistry",
        client: ChunkSource,
        output: OutputSink,
        model: str,
        cancel_token: CancelToken | None = None,
    ):
        self.registry = registry
        self.client = client
        self.output = output
        self.model = model
        self.cancel_token = cancel_token
        self.stage = Stage.IDLE
        self.match: Match | None = None

    def _enter(self, stage: Stage) -> None:
        logger.debug(f"{self.stage.value} -> {stage.value}")
        self.stage = stage

    def _fail(self, exit_code: ExitCode, message: str, **kwargs) -> Outcome:
        failed_at = self.stage
        self._enter(Stage.FAILED)
        self.output.error(message)
        return Outcome(Stage.FAILED, exit_code, failed_at=failed_at, message=message, **kwargs)

    def prepare(
        self,
        token: str,
        input_text: str,
        args: Mapping[str, str] | None = None,
    ) -> ResolvedInvocation | Outcome:
        """Resolve the command and render its prompt.

        Returns:
            ResolvedInvocation, or a failed Outcome
        """
        self._enter(Stage.RESOLVING)
        match = self.match = self.registry.resolve(token)
        if not match.ok:
            return self._fail(
                ExitCode.AMBIGUOUS if match.kind is MatchKind.AMBIGUOUS else ExitCode.NO_MATCH,
                describe_match_failure(token, match),
                match=match,
            )
        command = self.registry.get(match.key)
        if match.kind is MatchKind.FUZZY:
            logger.info(f"Resolved '{token}' to '{match.key}'")

        self._enter(Stage.RENDERING)
        values = {**command.arg_defaults(), **(args or {})}
        try:
            prompt = render(command.template, input_text, values)
        except MissingPlaceholderError as e:
            return self._fail(
                e.exit_code,
                f"Command '{command.name}' cannot take input: {e}. "
                "Edit its template to include {input}.",
                match=match,
                error=e,
            )
        return ResolvedInvocation(command=command, input=input_text, rendered_prompt=prompt)

    def run(
        self,
        token: str,
        input_text: str,
        stream: bool = True,
        args: Mapping[str, str] | None = None,
    ) -> Outcome:
        """Run one invocation end to end.

        Args:
            token: Command name as typed (exact or abbreviated)
            input_text: Text substituted for {input}
            stream: Request incremental output
            args: Values for the command's named template arguments

        Returns:
            Outcome with the final stage, exit code and result
        """
        prepared = self.prepare(token, input_text, args)
        if isinstance(prepared, Outcome):
            return prepared
        invocation = prepared

        self._enter(Stage.REQUESTING)
        self.output.begin(stream)
        try:
            chunks = self.client.complete(invocation.rendered_prompt, self.model, stream=stream)

            def on_chunk(chunk: str) -> None:
                if self.stage is Stage.REQUESTING:
                    self._enter(Stage.STREAMING)
                self.output.write_chunk(chunk)

            try:
                result = consume(chunks, on_chunk, self.cancel_token)
            except CompletionError as e:
                message = log_exception(e, context="Request failed")
                return self._fail(e.exit_code, message, match=self.match, invocation=invocation, error=e)

            if self.stage is Stage.REQUESTING:
                self._enter(Stage.STREAMING)
            self.output.finish(result)
        finally:
            self.output.close()

        self._enter(Stage.DONE)
        outcome = Outcome(Stage.DONE, ExitCode.OK, match=self.match, invocation=invocation, result=result)
        if result.status is StreamStatus.TRUNCATED:
            outcome.exit_code = ExitCode.TRUNCATED
            outcome.error = result.error
            outcome.message = log_exception(result.error, context="Response truncated")
            self.output.error(outcome.message)
        elif result.status is StreamStatus.CANCELLED:
            outcome.exit_code = ExitCode.CANCELLED
            outcome.message = "Cancelled."
        return outcome
