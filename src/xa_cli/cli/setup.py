"""
Interactive setup of the API endpoint, credential and default model (xa --set openai).
"""

from __future__ import annotations

import getpass
import logging
from typing import Callable

from xa_cli.config import DEFAULTS, Config, ConfigManager
from xa_cli.core.exceptions import CompletionError
from xa_cli.engine.client import CompletionClient

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai",)


def fetch_models(base_url: str, api_key: str, timeout: float = 10.0) -> list[str]:
    """List models offered by the endpoint, validating the credential on the way."""
    with CompletionClient(base_url, api_key, connect_timeout=timeout, read_timeout=timeout,
                          retry_on_rate_limit=False) as client:
        return client.list_models()


def _select_model(models: list[str], current: str, ask: Callable[[str], str]) -> str:
    """Numbered model picker; Enter keeps the current model."""
    print("Available models:")
    for i, model in enumerate(models, 1):
        print(f"  {i}. {model}")
    print(f"  {len(models) + 1}. Custom model")

    selection = ask(f"Select model by number (or press Enter for default '{current}'): ").strip()
    if not selection:
        return current
    try:
        num = int(selection)
    except ValueError:
        print("Invalid selection. Using default model.")
        return current
    if 1 <= num <= len(models):
        return models[num - 1]
    if num == len(models) + 1:
        return ask("Enter custom model name: ").strip() or current
    print("Invalid selection. Using default model.")
    return current


def configure_openai(
    cfg_mgr: ConfigManager,
    ask: Callable[[str], str] = input,
    ask_secret: Callable[[str], str] = getpass.getpass,
    list_models: Callable[[str, str], list[str]] = fetch_models,
) -> Config:
    """Prompt for base URL, API key and model, then save the config.

    Args:
        cfg_mgr: Where the config is read from and saved to
        ask: Reads a line of input
        ask_secret: Reads a line without echo (the API key)
        list_models: Returns model ids for (base_url, api_key)

    Returns:
        The saved Config
    """
    print("Setting up OpenAI-compatible configuration...")
    print(f"This will create a config file at {cfg_mgr.config_file}")

    current = cfg_mgr.load(apply_env=False)

    base_url = ask(f"Base URL [{current.base_url}]: ").strip() or current.base_url
    api_key = ask_secret("API Key (Enter to keep current): ").strip() or current.api_key
    model = current.default_model or DEFAULTS["default_model"]

    validated = False
    if api_key:
        print("Validating API key and base URL...")
        try:
            models = list_models(base_url, api_key)
        except CompletionError as e:
            logger.warning(f"Could not validate API key and base URL: {e}")
            print(f"⚠ Warning: Could not validate API key and base URL: {e}")
            print("Proceeding with configuration, but API may not work correctly.")
        else:
            print("✓ API key and base URL are valid.")
            validated = True
            if models:
                model = _select_model(models, model, ask)

    if not validated:
        model = ask(f"Default model [{model}]: ").strip() or model

    config = current.model_copy(update={
        "base_url": base_url,
        "api_key": api_key,
        "default_model": model or None,
    })
    path = cfg_mgr.save(config)
    print(f"Configuration saved to: {path}")
    print("Setup complete! You can now use xa with your commands.")
    return config
