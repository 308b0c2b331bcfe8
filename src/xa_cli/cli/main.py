#!/usr/bin/env python3
"""
CLI entry point (xa command).
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TextIO

from xa_cli import __version__
from xa_cli.config import DEFAULTS, Config, ConfigManager, PromptStore, parse_value
from xa_cli.core.exceptions import ConfigError, ExitCode, XaError
from xa_cli.log import configure_logging, log_exception

logger = logging.getLogger(__name__)

EPILOG = """
EXAMPLES:
    xa --set openai              # Configure OpenAI-compatible API
    xa --ls                      # List all commands
    xa --add                     # Add a new command
    xa --rm summarize            # Remove the 'summarize' command
    xa translate "Hello"         # Translate text
    xa trans "Hello"             # Translate using fuzzy matching
    xa trans "Hello" --arg target_lang=fr
    xa polish "This is a draft text" --no-stream  # Polish text without streaming
    echo "Some text" | xa summarize              # Read input from stdin
    xa ask                       # Interactive mode
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xa",
        description="Execute Anything via LLM - A CLI tool for arbitrary text processing using LLMs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("--version", "-V", action="version", version=f"xa {__version__}")

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("-s", "--set", metavar="CONFIG_TYPE",
                         help="Configure API settings (e.g., xa --set openai)")
    actions.add_argument("-l", "--ls", action="store_true",
                         help="List all commands")
    actions.add_argument("-a", "--add", action="store_true",
                         help="Add a new command/prompt")
    actions.add_argument("-r", "--rm", metavar="COMMAND_NAME",
                         help="Remove a command/prompt")
    actions.add_argument("--config", action="store_true",
                         help="Show current configuration")
    actions.add_argument("--set-config", metavar="KEY=VALUE",
                         help=f"Set a config value. Keys: {', '.join(DEFAULTS)}")
    actions.add_argument("--unset-config", metavar="KEY",
                         help="Unset a config value (reset to default)")

    parser.add_argument("--no-stream", action="store_true",
                        help="Disable streaming mode")
    parser.add_argument("-m", "--model", help="Model to use (default: from config)")
    parser.add_argument("--arg", action="append", default=[], metavar="NAME=VALUE",
                        help="Set a named template argument (repeatable)")
    parser.add_argument("--no-copy", action="store_true",
                        help="Do not copy the result to the clipboard")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Verbose logging to stderr and the log file")

    parser.add_argument("command", nargs="?", help="Command name (e.g., translate, polish)")
    parser.add_argument("input", nargs="?", help="Input text to process")
    return parser


def parse_template_args(values: list[str]) -> dict[str, str]:
    """Parse repeated NAME=VALUE options."""
    result = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid --arg '{item}', expected NAME=VALUE")
        result[name.strip()] = value
    return result


def print_config(cfg_mgr: ConfigManager) -> None:
    """Print current configuration."""
    settings = cfg_mgr.list_settings()

    print(f"Config file: {cfg_mgr.config_file}")

    if settings:
        print("\nCustom settings:")
        for key, value in settings.items():
            print(f"  {key}: {value}")

    print("\nDefaults (used when not set):")
    for key, value in DEFAULTS.items():
        if key not in settings and key != "api_key":
            print(f"  {key}: {value}")

    print("\nSet with: xa --set-config key=value")
    print()


def _read_input(args: argparse.Namespace, stdin: TextIO | None = None) -> str | None:
    """Input from the command line, or from stdin when it is piped.

    Piped text is kept verbatim apart from one trailing newline.
    """
    if args.input is not None:
        return args.input
    stdin = stdin or sys.stdin
    if stdin.isatty():
        return None
    text = stdin.read()
    if text.endswith("\r\n"):
        text = text[:-2]
    elif text.endswith("\n"):
        text = text[:-1]
    return text if text.strip() else None


def run_command(
    config: Config,
    store: PromptStore,
    args: argparse.Namespace,
    template_args: dict[str, str],
) -> ExitCode:
    """Resolve and run a prompt command, or start interactive mode for ask."""
    from xa_cli.cli.output import ConsoleOutput
    from xa_cli.engine import CompletionClient, Orchestrator

    if not config.is_configured:
        raise ConfigError("API key not configured. Please run 'xa --set openai' first.")

    registry = store.load()
    stream = config.stream and not args.no_stream
    model = args.model or config.model
    output = ConsoleOutput(copy=config.copy_to_clipboard and not args.no_copy)

    input_text = _read_input(args)
    with CompletionClient.from_config(config) as client:
        if input_text is None:
            if args.command == "ask":
                from xa_cli.cli.interactive import run_interactive
                return run_interactive(registry, client, output, model, stream=stream)
            print(f"Error: No input provided for command '{args.command}'", file=sys.stderr)
            return ExitCode.USAGE

        orchestrator = Orchestrator(registry, client, output, model)
        outcome = orchestrator.run(args.command, input_text, stream=stream, args=template_args)
        return outcome.exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the xa CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)

    try:
        template_args = parse_template_args(args.arg)
    except ValueError as e:
        parser.error(str(e))

    cfg_mgr = ConfigManager()
    store = PromptStore()

    try:
        # Handle --set
        if args.set:
            from xa_cli.cli.setup import SUPPORTED_PROVIDERS, configure_openai
            if args.set not in SUPPORTED_PROVIDERS:
                print(f"Error: Unknown config type '{args.set}'. Supported: {', '.join(SUPPORTED_PROVIDERS)}",
                      file=sys.stderr)
                return ExitCode.USAGE
            configure_openai(cfg_mgr)
            return ExitCode.OK

        # Handle --config
        if args.config:
            print_config(cfg_mgr)
            return ExitCode.OK

        # Handle --set-config
        if args.set_config:
            try:
                key, value = args.set_config.split("=", 1)
                key = key.strip()
                cfg_mgr.set(key, parse_value(key, value.strip()))
            except ValueError as e:
                print(f"Error: {e}", file=sys.stderr)
                return ExitCode.USAGE
            print(f"Set {key}")
            print(f"Saved to {cfg_mgr.config_file}")
            return ExitCode.OK

        # Handle --unset-config
        if args.unset_config:
            try:
                cfg_mgr.unset(args.unset_config)
            except ValueError as e:
                print(f"Error: {e}", file=sys.stderr)
                return ExitCode.USAGE
            print(f"Unset {args.unset_config}")
            print(f"Saved to {cfg_mgr.config_file}")
            return ExitCode.OK

        from xa_cli.cli import prompts_cli

        if args.ls:
            return prompts_cli.list_commands(store)
        if args.add:
            return prompts_cli.add_command(store)
        if args.rm:
            return prompts_cli.remove_command(store, args.rm)

        if args.command is None:
            parser.print_help()
            return ExitCode.OK

        return run_command(cfg_mgr.config, store, args, template_args)

    except KeyboardInterrupt:
        print(file=sys.stderr)
        return ExitCode.CANCELLED
    except (EOFError, XaError) as e:
        message = log_exception(e, context="xa failed")
        print(f"Error: {message}", file=sys.stderr)
        return getattr(e, "exit_code", ExitCode.ERROR)


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
