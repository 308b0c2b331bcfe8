"""
Terminal output: Markdown rendering, clipboard and the status line.
"""

from __future__ import annotations

import logging
from datetime import datetime

import pyperclip
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.markup import escape

from xa_cli.core.datamodels import InvocationResult

logger = logging.getLogger(__name__)


def copy_to_clipboard(text: str) -> bool:
    """Copy text to the system clipboard. Returns False if unavailable."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.warning(f"Could not copy to clipboard: {e}")
        return False
    return True


def status_line(result: InvocationResult, copied: bool, now: datetime | None = None) -> str:
    """Summary printed after a result: clipboard, word count, time, duration."""
    now = now or datetime.now()
    words = len(result.full_text.split())
    if result.partial:
        head = f"⚠ incomplete ({result.status.value})"
    elif copied:
        head = "✓ result has been copied to clipboard"
    else:
        head = "✓ done"
    return f"{head} · tokens: {words} · {now:%H:%M:%S} · {result.elapsed:.2f}s"


class ConsoleOutput:
    """Renders an invocation to the terminal.

    - streaming on a terminal: live Markdown re-rendered per chunk
    - streaming to a pipe: raw chunks as they arrive
    - batch: a spinner while waiting, then the whole text at once
    """

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
        copy: bool = True,
        show_status: bool = True,
    ):
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self.copy = copy
        self.show_status = show_status
        self._text = ""
        self._live: Live | None = None
        self._spinner = None
        self._streaming = False

    @property
    def markdown(self) -> bool:
        return self.console.is_terminal

    def begin(self, streaming: bool) -> None:
        self._text = ""
        self._streaming = streaming
        if streaming and self.markdown:
            self._live = Live(
                Markdown(""),
                console=self.console,
                refresh_per_second=8,
                vertical_overflow="visible",
            )
            self._live.start()
        elif not streaming and self.markdown:
            self._spinner = self.err_console.status("Processing...")
            self._spinner.start()

    def write_chunk(self, chunk: str) -> None:
        self._stop_spinner()
        self._text += chunk
        if self._live is not None:
            self._live.update(Markdown(self._text))
        elif self._streaming:
            self.console.file.write(chunk)
            self.console.file.flush()

    def finish(self, result: InvocationResult) -> None:
        self._stop_spinner()
        if self._live is not None:
            self._live.update(Markdown(result.full_text))
            self._live.stop()
            self._live = None
        elif self._streaming:
            self.console.file.write("\n")
            self.console.file.flush()
        elif self.markdown:
            self.console.print(Markdown(result.full_text))
        else:
            self.console.file.write(result.full_text + "\n")
            self.console.file.flush()

        copied = False
        if self.copy and not result.partial and result.full_text.strip():
            copied = copy_to_clipboard(result.full_text)
        if self.show_status:
            self.err_console.print(f"\n[bright_black]{escape(status_line(result, copied))}[/bright_black]")

    def error(self, message: str) -> None:
        self.close()
        self.err_console.print(f"[red]Error:[/red] {escape(message)}")

    def close(self) -> None:
        self._stop_spinner()
        if self._live is not None:
            self._live.stop()
            self._live = None

    def _stop_spinner(self) -> None:
        if self._spinner is not None:
            self._spinner.stop()
            self._spinner = None
