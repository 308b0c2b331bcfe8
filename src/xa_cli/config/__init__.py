"""Configuration and prompt storage for xa."""

from xa_cli.config.config import (
    CONFIG_DIR,
    DEFAULTS,
    Config,
    ConfigManager,
    mask_secret,
    parse_value,
)
from xa_cli.config.prompts import PromptStore

__all__ = [
    "CONFIG_DIR",
    "DEFAULTS",
    "Config",
    "ConfigManager",
    "PromptStore",
    "mask_secret",
    "parse_value",
]
