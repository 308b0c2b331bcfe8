"""
Interactive mode for the ask command (xa ask).

Every line is sent as an independent single-turn request; nothing is
carried over between lines.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory

from xa_cli.config.config import CONFIG_DIR
from xa_cli.core.exceptions import ExitCode
from xa_cli.engine.orchestrator import Orchestrator, Stage

if TYPE_CHECKING:
    from xa_cli.cli.output import ConsoleOutput
    from xa_cli.core.registry import PromptRegistry
    from xa_cli.engine.orchestrator import ChunkSource

# History file path
HISTORY_FILE = CONFIG_DIR / "ask_history"

EXIT_WORDS = ("exit", "quit")


def _default_reader() -> Callable[[], str]:
    HISTORY_FILE.parent.mkdir(parents=True, exist_ok=True)
    session: PromptSession = PromptSession(history=FileHistory(str(HISTORY_FILE)))
    return lambda: session.prompt("> ")


def run_interactive(
    registry: "PromptRegistry",
    client: "ChunkSource",
    output: "ConsoleOutput",
    model: str,
    command: str = "ask",
    stream: bool = True,
    read_line: Callable[[], str] | None = None,
) -> ExitCode:
    """Read lines until exit, sending each through the given command.

    Args:
        registry: Prompt registry holding ``command``
        client: Completion source
        output: Console output sink
        model: Model identifier
        command: Command every line is run through
        stream: Request incremental output
        read_line: Returns the next line; raises EOFError at end of input

    Returns:
        Exit code of the session
    """
    read_line = read_line or _default_reader()
    print(
        "Starting interactive mode. Type your message and press Enter. "
        "Type 'exit' or 'quit' to end, or press Ctrl+D to exit."
    )
    print()

    while True:
        try:
            line = read_line().strip()
        except EOFError:
            break
        except KeyboardInterrupt:
            # Ctrl+C at the prompt clears the line
            continue

        if not line:
            continue
        if line.lower() in EXIT_WORDS:
            break

        orchestrator = Orchestrator(registry, client, output, model)
        outcome = orchestrator.run(command, line, stream=stream)
        if outcome.stage is Stage.FAILED and outcome.failed_at in (Stage.RESOLVING, Stage.RENDERING):
            # Resolution and rendering fail the same way for every line
            return outcome.exit_code
        print()

    print("Goodbye!")
    return ExitCode.OK
