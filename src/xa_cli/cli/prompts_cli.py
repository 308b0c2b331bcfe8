"""
Listing, adding and removing prompt commands (xa --ls / --add / --rm).
"""

from __future__ import annotations

from typing import Callable

from xa_cli.config.prompts import PromptStore
from xa_cli.core.datamodels import Command
from xa_cli.core.exceptions import ExitCode
from xa_cli.core.registry import PromptRegistry, default_commands
from xa_cli.core.template import PLACEHOLDER

BUILTIN_OPTIONS = [
    ("--set", "Configure API settings (use: xa --set openai)"),
    ("--ls", "List all commands (this command)"),
    ("--add", "Add a new command/prompt (use: xa --add)"),
    ("--rm", "Remove a command/prompt (use: xa --rm <name>)"),
]


def print_commands(registry: PromptRegistry) -> None:
    """Print user-defined commands with their descriptions."""
    for name, command in registry.items():
        print(f"  {name}: {command.get_description()}")
        for arg in command.args or []:
            print(f"      --arg {arg.name}=...  (default: {arg.default_value})")


def list_commands(store: PromptStore) -> ExitCode:
    registry = store.load()
    print("Built-in commands:")
    for option, description in BUILTIN_OPTIONS:
        print(f"  {option}: {description}")
    print()
    print("User-defined commands:")
    print_commands(registry)
    return ExitCode.OK


def add_command(store: PromptStore, ask: Callable[[str], str] = input) -> ExitCode:
    """Interactively add a command and save it."""
    print("Adding a new command...")

    name = ask("Enter command name: ").strip()
    if not name:
        print("Error: Command name cannot be empty")
        return ExitCode.USAGE
    if any(ch.isspace() for ch in name) or name.startswith("-"):
        print("Error: Command name cannot contain spaces or start with '-'")
        return ExitCode.USAGE

    registry = store.load()
    if name in registry:
        print(f"Warning: Command '{name}' already exists. It will be overwritten.")

    template = ask(f"Enter prompt template (use {PLACEHOLDER} as placeholder): ").strip()
    if not template:
        print("Error: Prompt template cannot be empty")
        return ExitCode.USAGE
    if PLACEHOLDER not in template:
        print(f"Error: Prompt template must contain {PLACEHOLDER}")
        return ExitCode.MISSING_PLACEHOLDER

    description = ask("Enter description (optional): ").strip() or None

    store.add(name, Command(template=template, description=description))
    print(f"Command '{name}' added successfully!")
    print(f"Prompt file location: {store.prompts_file}")
    print("You can edit this file with your favorite text editor to modify or add more commands.")
    return ExitCode.OK


def remove_command(store: PromptStore, name: str) -> ExitCode:
    """Remove a command by exact name."""
    if not store.remove(name):
        print(f"Error: Command '{name}' does not exist.")
        print("Available commands:")
        print_commands(store.load())
        return ExitCode.NO_MATCH
    print(f"Command '{name}' removed successfully!")
    if name in default_commands():
        print(f"Note: '{name}' is built in and will be restored with its default template next time.")
    return ExitCode.OK
