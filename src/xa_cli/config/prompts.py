"""Prompt command storage."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from xa_cli.config.config import CONFIG_DIR
from xa_cli.core.datamodels import Command
from xa_cli.core.exceptions import PromptStoreError
from xa_cli.core.registry import PromptRegistry, default_commands

logger = logging.getLogger(__name__)


class PromptFile(BaseModel):
    """On-disk shape of the prompt file."""

    prompts: dict[str, Command] = Field(default_factory=dict)


class PromptStore:
    """Loads and saves the prompt registry."""

    PROMPTS_FILE = CONFIG_DIR / "prompts.json"

    def __init__(self, prompts_file: Path | None = None):
        self.prompts_file = prompts_file or self.PROMPTS_FILE

    @property
    def backup_file(self) -> Path:
        return self.prompts_file.with_name(self.prompts_file.name + ".backup")

    def _parse(self, text: str) -> dict[str, Command]:
        data = PromptFile.model_validate(json.loads(text))
        return data.prompts

    def load(self) -> PromptRegistry:
        """Load the registry, creating or repairing the file as needed.

        A missing file is created from the built-in commands. A corrupt file
        is moved aside to ``prompts.json.backup`` and recreated. Built-in
        commands missing from the file are merged back in. Entries with an
        empty name are dropped.
        """
        changed = False
        if not self.prompts_file.exists():
            commands: dict[str, Command] = {}
            changed = True
        else:
            try:
                commands = self._parse(self.prompts_file.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, ValidationError) as e:
                os.replace(self.prompts_file, self.backup_file)
                logger.warning(
                    f"Corrupted prompt file {self.prompts_file} ({e}); "
                    f"backed up to {self.backup_file} and recreated"
                )
                commands = {}
                changed = True
            except OSError as e:
                raise PromptStoreError(f"Could not read {self.prompts_file}: {e}") from e

        if not all(name.strip() for name in commands):
            logger.warning(f"Dropping command with an empty name from {self.prompts_file}")
            commands = {name: command for name, command in commands.items() if name.strip()}
            changed = True

        registry = PromptRegistry(commands)
        for name, command in default_commands().items():
            if name not in registry:
                registry.add(name, command)
                changed = True

        if changed:
            self.save(registry)
        return registry

    def save(self, registry: PromptRegistry) -> Path:
        """Write the registry atomically (temp file + rename)."""
        data = PromptFile(prompts=registry.to_dict()).model_dump(mode="json", exclude_none=True)
        try:
            self.prompts_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.prompts_file.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                    f.write("\n")
                os.replace(tmp, self.prompts_file)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PromptStoreError(f"Could not write {self.prompts_file}: {e}") from e
        return self.prompts_file

    def add(self, name: str, command: Command) -> bool:
        """Add or replace a command. Returns True if it replaced one."""
        registry = self.load()
        existed = name in registry
        registry.add(name, command)
        self.save(registry)
        return existed

    def remove(self, name: str) -> bool:
        """Remove a command. Returns True if removed."""
        registry = self.load()
        if not registry.remove(name):
            return False
        self.save(registry)
        return True
