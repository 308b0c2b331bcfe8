#!/usr/bin/env python3
"""
Tests for the invocation pipeline.
"""

import pytest

from xa_cli.core import Command, MatchKind, PromptRegistry, StreamStatus, default_commands
from xa_cli.core.exceptions import AuthError, ExitCode, NetworkError
from xa_cli.engine import CancelToken, Orchestrator, Stage


# ============================================================================
# Fakes
# ============================================================================

class FakeClient:
    """Chunk source that records prompts and replays canned chunks."""

    def __init__(self, chunks=("Hello", " world"), error=None, error_after=None):
        self.chunks = list(chunks)
        self.error = error
        self.error_after = error_after
        self.calls = []

    def complete(self, prompt, model, stream=True):
        self.calls.append((prompt, model, stream))
        return self._generate(stream)

    def _generate(self, stream):
        chunks = self.chunks if stream else ["".join(self.chunks)]
        for i, chunk in enumerate(chunks):
            if self.error is not None and self.error_after == i:
                raise self.error
            yield chunk
        if self.error is not None and self.error_after is None:
            raise self.error


class RecordingOutput:
    """Output sink that records every call."""

    def __init__(self):
        self.events = []
        self.chunks = []
        self.errors = []
        self.result = None

    def begin(self, streaming):
        self.events.append(("begin", streaming))

    def write_chunk(self, chunk):
        self.chunks.append(chunk)

    def finish(self, result):
        self.events.append(("finish", result.status))
        self.result = result

    def error(self, message):
        self.events.append(("error",))
        self.errors.append(message)

    def close(self):
        self.events.append(("close",))


@pytest.fixture
def registry():
    reg = PromptRegistry(default_commands())
    reg.add("echo", Command(template="{input}"))
    reg.add("broken", Command(template="No input slot here"))
    return reg


@pytest.fixture
def output():
    return RecordingOutput()


def make(registry, client, output, **kwargs):
    return Orchestrator(registry, client, output, model="test-model", **kwargs)


# ============================================================================
# Success Tests
# ============================================================================

class TestRunSuccess:
    """Tests for invocations that complete."""

    def test_streamed_result(self, registry, output):
        """Test chunks reach the output and the text is accumulated."""
        client = FakeClient()
        outcome = make(registry, client, output).run("echo", "Why?")
        assert outcome.ok
        assert outcome.stage is Stage.DONE
        assert outcome.result.full_text == "Hello world"
        assert output.chunks == ["Hello", " world"]
        assert ("begin", True) in output.events
        assert client.calls == [("Why?", "test-model", True)]

    def test_ask_prompt_wraps_input(self, registry, output):
        """Test the built-in ask template surrounds the input."""
        client = FakeClient()
        make(registry, client, output).run("ask", "Why?")
        expected = default_commands()["ask"].template.replace("{input}", "Why?")
        assert client.calls[0][0] == expected

    def test_batch_result(self, registry, output):
        """Test batch mode delivers the whole text as one chunk."""
        client = FakeClient()
        outcome = make(registry, client, output).run("echo", "Why?", stream=False)
        assert outcome.result.full_text == "Hello world"
        assert output.chunks == ["Hello world"]
        assert client.calls[0][2] is False

    def test_fuzzy_token_renders_resolved_template(self, registry, output):
        """Test an abbreviated token runs the command it resolves to."""
        client = FakeClient()
        outcome = make(registry, client, output).run("trans", "Bonjour")
        assert outcome.match.kind is MatchKind.FUZZY
        assert outcome.match.key == "translate"
        assert outcome.invocation.command.name == "translate"
        prompt = client.calls[0][0]
        assert "Bonjour" in prompt
        assert outcome.invocation.rendered_prompt == prompt

    def test_exact_match_recorded(self, registry, output):
        """Test a successful outcome carries the resolved match."""
        outcome = make(registry, FakeClient(), output).run("echo", "x")
        assert outcome.match.kind is MatchKind.EXACT
        assert outcome.match.key == "echo"

    def test_default_args_applied(self, registry, output):
        """Test declared argument defaults fill their placeholders."""
        client = FakeClient()
        make(registry, client, output).run("translate", "Hi")
        assert "zh" in client.calls[0][0]

    def test_explicit_args_override_defaults(self, registry, output):
        """Test values passed on the command line win over defaults."""
        registry.add("greet", Command(template="Greet in {lang}: {input}"))
        client = FakeClient()
        make(registry, client, output).run("greet", "Bob", args={"lang": "fr"})
        assert client.calls[0][0] == "Greet in fr: Bob"

    def test_output_closed(self, registry, output):
        """Test the output is closed once the result is finished."""
        make(registry, FakeClient(), output).run("echo", "x")
        assert output.events[-1] == ("close",)


# ============================================================================
# Resolution and Rendering Failures
# ============================================================================

class TestPrepareFailures:
    """Tests for failures before any request is sent."""

    def test_no_match(self, registry, output):
        """Test an unknown token fails at resolution without a request."""
        client = FakeClient()
        outcome = make(registry, client, output).run("zzz", "x")
        assert outcome.exit_code == ExitCode.NO_MATCH
        assert outcome.failed_at is Stage.RESOLVING
        assert client.calls == []
        assert "not found" in output.errors[0]

    def test_ambiguous(self, registry, output):
        """Test a one-letter token lists its candidates instead of running."""
        client = FakeClient()
        outcome = make(registry, client, output).run("r", "x")
        assert outcome.exit_code == ExitCode.AMBIGUOUS
        assert outcome.match.candidates == ["rewrite"]
        assert "rewrite" in output.errors[0]
        assert client.calls == []

    def test_missing_placeholder(self, registry, output):
        """Test a template without {input} fails at rendering."""
        client = FakeClient()
        outcome = make(registry, client, output).run("broken", "x")
        assert outcome.exit_code == ExitCode.MISSING_PLACEHOLDER
        assert outcome.failed_at is Stage.RENDERING
        assert client.calls == []
        assert "{input}" in output.errors[0]

    def test_prepare_returns_invocation(self, registry, output):
        """Test prepare() binds the command, input and rendered prompt."""
        prepared = make(registry, FakeClient(), output).prepare("polish", "draft")
        assert prepared.command.name == "polish"
        assert prepared.input == "draft"
        assert "draft" in prepared.rendered_prompt


# ============================================================================
# Request Failures
# ============================================================================

class TestRequestFailures:
    """Tests for failures once the request is under way."""

    def test_error_before_output(self, registry, output):
        """Test a request that fails before any text maps to its exit code."""
        client = FakeClient(error=AuthError("bad key"), error_after=0)
        outcome = make(registry, client, output).run("echo", "x")
        assert outcome.exit_code == ExitCode.AUTH
        assert outcome.failed_at is Stage.REQUESTING
        assert outcome.match.key == "echo"
        assert isinstance(outcome.error, AuthError)
        assert output.chunks == []
        assert "bad key" in output.errors[0]

    def test_error_reported_once(self, registry, output):
        """Test a failed request reports one error and closes the output after it."""
        client = FakeClient(error=AuthError("bad key"), error_after=0)
        make(registry, client, output).run("echo", "x")
        assert output.events.count(("error",)) == 1
        assert output.events[-2:] == [("error",), ("close",)]

    def test_error_mid_stream_truncates(self, registry, output):
        """Test a failure after some chunks keeps the partial text."""
        client = FakeClient(chunks=["a", "b", "c"], error=NetworkError("reset"), error_after=2)
        outcome = make(registry, client, output).run("echo", "x")
        assert outcome.exit_code == ExitCode.TRUNCATED
        assert outcome.stage is Stage.DONE
        assert outcome.result.full_text == "ab"
        assert outcome.result.status is StreamStatus.TRUNCATED
        assert isinstance(outcome.error, NetworkError)
        assert output.result.partial
        assert "reset" in output.errors[0]

    def test_cancelled(self, registry, output):
        """Test a cancelled token ends the invocation with the cancel exit code."""
        token = CancelToken()
        token.cancel()
        outcome = make(registry, FakeClient(), output, cancel_token=token).run("echo", "x")
        assert outcome.exit_code == ExitCode.CANCELLED
        assert outcome.result.status is StreamStatus.CANCELLED

    def test_ctrl_c_cancels(self, registry, output):
        """Test Ctrl-C during the stream ends the invocation as cancelled."""

        class InterruptedClient(FakeClient):
            def _generate(self, stream):
                yield "partial"
                raise KeyboardInterrupt

        outcome = make(registry, InterruptedClient(), output).run("echo", "x")
        assert outcome.exit_code == ExitCode.CANCELLED
        assert outcome.result.full_text == "partial"
