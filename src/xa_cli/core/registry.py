"""
In-memory registry of prompt commands.
"""

from __future__ import annotations

from typing import Iterator, Mapping

from xa_cli.core.datamodels import Command, Match, PromptArg
from xa_cli.core.resolver import resolve


def default_commands() -> dict[str, Command]:
    """Built-in commands, always present in the registry."""
    commands = {
        "translate": Command(
            template=(
                "You are a professional translator, please translate the following text "
                "into natural, idiomatic {target_lang}:\n\n{input}. "
                "Avoid output anything else except the final result."
            ),
            description="Translate text (default target: zh)",
            args=[PromptArg(name="target_lang", default_value="zh",
                            description="Target language for translation")],
        ),
        "polish": Command(
            template=(
                "You are an expert editor. Please polish the following text to make it "
                "more clear, concise, and natural in a {tone} tone:\n\n{input}. "
                "Avoid output anything else except the final result."
            ),
            description="Polish text for clarity",
            args=[PromptArg(name="tone", default_value="professional",
                            description="Tone for polishing (e.g., casual, professional, friendly)")],
        ),
        "rewrite": Command(
            template=(
                "You are a skilled writer. Please rewrite the following text in a {style} "
                "style while preserving the meaning:\n\n{input}. "
                "Avoid output anything else except the final result."
            ),
            description="Rewrite text in different style",
            args=[PromptArg(name="style", default_value="formal",
                            description="Writing style for rewrite (e.g., casual, formal, creative)")],
        ),
        "summarize": Command(
            template=(
                "You are an expert summarizer. Please provide a concise summary of the "
                "following text with a {length} length:\n\n{input}. "
                "Avoid output anything else except the final result."
            ),
            description="Summarize text",
            args=[PromptArg(name="length", default_value="medium",
                            description="Summary length (e.g., short, medium, long)")],
        ),
        "ask": Command(
            template="You are a helpful assistant called xa, execute anything by your side. {input}",
            description="Interactive conversation mode",
        ),
    }
    for name, command in commands.items():
        command.name = name
    return commands


class PromptRegistry:
    """Ordered mapping of command name to Command.

    Insertion order is display order.
    """

    def __init__(self, commands: Mapping[str, Command] | None = None):
        self._commands: dict[str, Command] = {}
        for name, command in (commands or {}).items():
            self.add(name, command)

    def add(self, name: str, command: Command) -> None:
        """Add or replace a command."""
        if not name:
            raise ValueError("Command name cannot be empty")
        command.name = name
        self._commands[name] = command

    def remove(self, name: str) -> bool:
        """Remove a command. Returns True if it existed."""
        return self._commands.pop(name, None) is not None

    def get(self, name: str) -> Command | None:
        return self._commands.get(name)

    def resolve(self, token: str) -> Match:
        """Resolve a typed token against the registered names."""
        return resolve(token, self._commands.keys())

    def names(self) -> list[str]:
        return list(self._commands)

    def items(self) -> list[tuple[str, Command]]:
        return list(self._commands.items())

    def to_dict(self) -> dict[str, Command]:
        return dict(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)
