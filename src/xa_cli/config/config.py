"""
Configuration management for xa.

Provides a configuration file at ~/.config/xa/config.json holding the
endpoint, credential and default model.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "xa"

# Default values - single source of truth
DEFAULTS = {
    "base_url": "https://api.openai.com/v1",
    "api_key": "",
    "default_model": "gpt-4o-mini",
    "stream": True,
    "connect_timeout": 10.0,
    "read_timeout": 120.0,
    "retry_on_rate_limit": True,
    "copy_to_clipboard": True,
}

# Environment variables that override the file
ENV_OVERRIDES = {
    "XA_API_KEY": "api_key",
    "XA_BASE_URL": "base_url",
    "XA_MODEL": "default_model",
}


class Config(BaseModel):
    """Configuration settings for xa."""

    model_config = {"extra": "ignore"}  # Ignore unknown fields like _comment

    base_url: str = Field(
        default=DEFAULTS["base_url"],
        description="OpenAI-compatible API base URL"
    )
    api_key: str = Field(
        default=DEFAULTS["api_key"],
        repr=False,
        description="Bearer credential for the API"
    )
    default_model: Optional[str] = Field(
        default=DEFAULTS["default_model"],
        description="Model used when none is given on the command line"
    )
    stream: bool = Field(
        default=DEFAULTS["stream"],
        description="Stream responses by default"
    )
    connect_timeout: float = Field(
        default=DEFAULTS["connect_timeout"],
        description="Seconds to wait for the connection"
    )
    read_timeout: float = Field(
        default=DEFAULTS["read_timeout"],
        description="Seconds to wait for a response, or between stream chunks"
    )
    retry_on_rate_limit: bool = Field(
        default=DEFAULTS["retry_on_rate_limit"],
        description="Retry once after a 429 response"
    )
    copy_to_clipboard: bool = Field(
        default=DEFAULTS["copy_to_clipboard"],
        description="Copy each result to the clipboard"
    )

    @property
    def model(self) -> str:
        return self.default_model or DEFAULTS["default_model"]

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


def parse_value(key: str, value: str) -> Any:
    """Convert a KEY=VALUE string from the command line to the field's type."""
    if key not in Config.model_fields:
        raise ValueError(f"Unknown config key: {key}")
    default = DEFAULTS.get(key)
    if isinstance(default, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(default, float):
        return float(value)
    return value


class ConfigManager:
    """Manages loading and saving configuration."""

    CONFIG_DIR = CONFIG_DIR
    CONFIG_FILE = CONFIG_DIR / "config.json"

    def __init__(self, config_file: Path | None = None):
        self.config_file = config_file or self.CONFIG_FILE
        self._config: Optional[Config] = None

    @property
    def config(self) -> Config:
        """Get the current config, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def _read_file(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            data = json.loads(self.config_file.read_text())
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid config file {self.config_file} ({e}), using defaults")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, apply_env: bool = True) -> Config:
        """Load configuration from file.

        Args:
            apply_env: If True, XA_* environment variables override file values.

        Returns:
            Config object with loaded settings, or defaults if file doesn't exist.
        """
        data = {k: v for k, v in self._read_file().items() if v is not None}
        if apply_env:
            for env_var, key in ENV_OVERRIDES.items():
                value = os.environ.get(env_var)
                if value:
                    data[key] = value
        try:
            return Config.model_validate(data)
        except ValueError as e:
            logger.warning(f"Invalid config values in {self.config_file} ({e}), using defaults")
            return Config()

    def save(self, config: Optional[Config] = None) -> Path:
        """Save configuration to file, preserving existing structure.

        Args:
            config: Config to save. If None, saves current config.

        Returns:
            Path to saved config file.
        """
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        if config is not None:
            self._config = config

        if self._config is None:
            self._config = Config()

        existing_data = self._read_file()

        # Update only non-None config values, preserving everything else
        for key, value in self._config.model_dump().items():
            if value is not None:
                existing_data[key] = value

        self.config_file.write_text(json.dumps(existing_data, indent=2) + "\n")
        try:
            self.config_file.chmod(0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.config_file}")
        return self.config_file

    def set(self, key: str, value: Any) -> None:
        """Set a config value and save.

        Args:
            key: Config key to set.
            value: Value to set.
        """
        # Reload without env overrides so they are never written back
        self._config = self.load(apply_env=False)

        if key not in Config.model_fields:
            raise ValueError(f"Unknown config key: {key}")

        setattr(self._config, key, value)
        self.save()

    def unset(self, key: str) -> None:
        """Remove a config value (reset to default).

        Args:
            key: Config key to unset.
        """
        if key not in Config.model_fields:
            raise ValueError(f"Unknown config key: {key}")

        existing_data = self._read_file()
        existing_data.pop(key, None)
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(json.dumps(existing_data, indent=2) + "\n")
        self._config = None

    def list_settings(self) -> dict[str, Any]:
        """List user-customized settings (values that differ from defaults).

        The API key is masked.
        """
        result = {}
        for k, v in self.config.model_dump().items():
            if v is None or v == DEFAULTS.get(k):
                continue
            if k == "api_key":
                v = mask_secret(v)
            result[k] = v
        return result


def mask_secret(value: str) -> str:
    """Show only the last four characters of a secret."""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * 8 + value[-4:]
