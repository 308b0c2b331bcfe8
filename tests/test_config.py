#!/usr/bin/env python3
"""
Tests for configuration management and prompt storage.
"""

import json
import pytest
from unittest.mock import patch

from xa_cli.config import DEFAULTS, Config, ConfigManager, PromptStore, mask_secret, parse_value
from xa_cli.core import Command, default_commands


# ============================================================================
# Config Model Tests
# ============================================================================

class TestConfig:
    """Tests for Config model."""

    def test_create_default_config(self):
        """Test creating config with all defaults."""
        cfg = Config()
        assert cfg.base_url == DEFAULTS["base_url"]
        assert cfg.api_key == ""
        assert cfg.default_model == "gpt-4o-mini"
        assert cfg.stream is True
        assert not cfg.is_configured

    def test_create_config_with_values(self):
        """Test creating config with explicit values."""
        cfg = Config(base_url="http://localhost:11434/v1", api_key="sk-test", default_model="llama3")
        assert cfg.base_url == "http://localhost:11434/v1"
        assert cfg.model == "llama3"
        assert cfg.is_configured

    def test_model_falls_back_to_default(self):
        """Test an unset model falls back to the default."""
        cfg = Config(default_model=None)
        assert cfg.model == DEFAULTS["default_model"]

    def test_repr_hides_api_key(self):
        """Test the API key is left out of repr()."""
        cfg = Config(api_key="sk-very-secret")
        assert "sk-very-secret" not in repr(cfg)

    def test_ignores_unknown_fields(self):
        """Test unknown keys in the file are ignored."""
        cfg = Config.model_validate({"_comment": "x", "api_key": "k"})
        assert cfg.api_key == "k"

    def test_parse_value_types(self):
        """Test command-line values are converted to the field type."""
        assert parse_value("stream", "false") is False
        assert parse_value("read_timeout", "30") == 30.0
        assert parse_value("default_model", "gpt-4o") == "gpt-4o"

    def test_parse_value_unknown_key(self):
        """Test parsing a value for an unknown key fails."""
        with pytest.raises(ValueError):
            parse_value("nope", "1")

    def test_mask_secret(self):
        """Test secrets keep only their last four characters."""
        assert mask_secret("sk-abcdef1234") == "********1234"
        assert mask_secret("abc") == "***"


# ============================================================================
# ConfigManager Tests
# ============================================================================

class TestConfigManager:
    """Tests for ConfigManager."""

    @pytest.fixture
    def config_file(self, tmp_path):
        return tmp_path / "xa" / "config.json"

    @pytest.fixture(autouse=True)
    def clear_env(self, monkeypatch):
        for var in ("XA_API_KEY", "XA_BASE_URL", "XA_MODEL"):
            monkeypatch.delenv(var, raising=False)

    def test_load_nonexistent_config(self, config_file):
        """Test loading config when file doesn't exist."""
        mgr = ConfigManager(config_file)
        cfg = mgr.load()
        assert cfg.api_key == ""
        assert not config_file.exists()

    def test_class_level_path_override(self, config_file):
        """Test the default path can be redirected for the whole class."""
        with patch.object(ConfigManager, "CONFIG_FILE", config_file):
            mgr = ConfigManager()
            mgr.save(Config(api_key="k"))
        assert config_file.exists()

    def test_save_and_load_config(self, config_file):
        """Test saving and loading config."""
        mgr = ConfigManager(config_file)
        mgr.save(Config(api_key="sk-test", default_model="test-model"))
        assert config_file.exists()

        loaded = ConfigManager(config_file).load()
        assert loaded.api_key == "sk-test"
        assert loaded.default_model == "test-model"

    def test_save_preserves_unknown_keys(self, config_file):
        """Test saving keeps keys the model does not know."""
        config_file.parent.mkdir(parents=True)
        config_file.write_text(json.dumps({"_comment": "mine"}))
        ConfigManager(config_file).save(Config(api_key="k"))
        data = json.loads(config_file.read_text())
        assert data["_comment"] == "mine"
        assert data["api_key"] == "k"

    def test_invalid_json_uses_defaults(self, config_file):
        """Test an unreadable config file falls back to defaults."""
        config_file.parent.mkdir(parents=True)
        config_file.write_text("{not json")
        cfg = ConfigManager(config_file).load()
        assert cfg == Config()

    def test_env_overrides(self, config_file, monkeypatch):
        """Test XA_* environment variables override the file."""
        ConfigManager(config_file).save(Config(api_key="from-file"))
        monkeypatch.setenv("XA_API_KEY", "from-env")
        monkeypatch.setenv("XA_MODEL", "env-model")
        cfg = ConfigManager(config_file).load()
        assert cfg.api_key == "from-env"
        assert cfg.default_model == "env-model"

    def test_set_does_not_persist_env_values(self, config_file, monkeypatch):
        """Test set() writes file values, not environment overrides."""
        ConfigManager(config_file).save(Config(api_key="from-file"))
        monkeypatch.setenv("XA_API_KEY", "from-env")
        ConfigManager(config_file).set("default_model", "m")
        data = json.loads(config_file.read_text())
        assert data["api_key"] == "from-file"
        assert data["default_model"] == "m"

    def test_set_unknown_key(self, config_file):
        """Test setting unknown key raises error."""
        with pytest.raises(ValueError, match="Unknown config key"):
            ConfigManager(config_file).set("unknown_key", 1)

    def test_unset_value(self, config_file):
        """Test unsetting a value restores its default."""
        mgr = ConfigManager(config_file)
        mgr.set("default_model", "m")
        mgr.unset("default_model")
        data = json.loads(config_file.read_text())
        assert "default_model" not in data
        assert ConfigManager(config_file).load().default_model == DEFAULTS["default_model"]

    def test_list_settings_masks_key(self, config_file):
        """Test list_settings shows only non-default values with the key masked."""
        mgr = ConfigManager(config_file)
        mgr.save(Config(api_key="sk-abcdef1234", default_model="m"))
        settings = ConfigManager(config_file).list_settings()
        assert settings["api_key"] == "********1234"
        assert settings["default_model"] == "m"
        assert "base_url" not in settings


# ============================================================================
# PromptStore Tests
# ============================================================================

class TestPromptStore:
    """Tests for prompt file storage."""

    @pytest.fixture
    def store(self, tmp_path):
        return PromptStore(tmp_path / "xa" / "prompts.json")

    def test_load_creates_file_with_defaults(self, store):
        """Test a missing prompt file is created with the built-in commands."""
        registry = store.load()
        assert store.prompts_file.exists()
        assert registry.names() == list(default_commands())
        data = json.loads(store.prompts_file.read_text())
        assert "translate" in data["prompts"]
        assert "name" not in data["prompts"]["translate"]

    def test_add_and_reload(self, store):
        """Test an added command survives a reload."""
        existed = store.add("shout", Command(template="Shout: {input}", description="Loud"))
        assert existed is False
        registry = PromptStore(store.prompts_file).load()
        assert registry.get("shout").template == "Shout: {input}"
        assert registry.get("shout").description == "Loud"

    def test_add_reports_overwrite(self, store):
        """Test add() reports when it replaces a command."""
        store.add("shout", Command(template="a {input}"))
        assert store.add("shout", Command(template="b {input}")) is True
        assert store.load().get("shout").template == "b {input}"

    def test_remove(self, store):
        """Test removing a command, then removing it again."""
        store.add("shout", Command(template="a {input}"))
        assert store.remove("shout") is True
        assert store.remove("shout") is False
        assert "shout" not in store.load()

    def test_defaults_merged_into_existing_file(self, store):
        """Test built-in commands are merged after the user's own."""
        store.prompts_file.parent.mkdir(parents=True)
        store.prompts_file.write_text(json.dumps({
            "prompts": {"mine": {"template": "Mine: {input}"}}
        }))
        registry = store.load()
        assert registry.names()[0] == "mine"
        assert "translate" in registry
        # merged defaults are written back
        data = json.loads(store.prompts_file.read_text())
        assert "translate" in data["prompts"]

    def test_user_edits_to_defaults_kept(self, store):
        """Test edits to a built-in command are not overwritten."""
        store.add("translate", Command(template="T: {input}"))
        assert store.load().get("translate").template == "T: {input}"

    def test_corrupt_file_backed_up(self, store):
        """Test a corrupt prompt file is backed up and recreated."""
        store.prompts_file.parent.mkdir(parents=True)
        store.prompts_file.write_text("this is not json")
        registry = store.load()
        assert store.backup_file.read_text() == "this is not json"
        assert "translate" in registry
        assert json.loads(store.prompts_file.read_text())["prompts"]

    def test_invalid_shape_backed_up(self, store):
        """Test a prompt file with the wrong shape is backed up."""
        store.prompts_file.parent.mkdir(parents=True)
        store.prompts_file.write_text(json.dumps({"prompts": {"x": {"description": "no template"}}}))
        registry = store.load()
        assert store.backup_file.exists()
        assert "x" not in registry

    def test_empty_command_name_dropped(self, store):
        """Test a hand-edited entry with an empty name is dropped, not fatal."""
        store.prompts_file.parent.mkdir(parents=True)
        store.prompts_file.write_text(json.dumps({
            "prompts": {"": {"template": "{input}"}, "mine": {"template": "Mine: {input}"}}
        }))
        registry = store.load()
        assert "" not in registry
        assert "mine" in registry
        assert "" not in json.loads(store.prompts_file.read_text())["prompts"]

    def test_save_leaves_no_temp_files(self, store):
        """Test atomic saves clean up their temp files."""
        store.load()
        store.add("a", Command(template="{input}"))
        leftovers = [p for p in store.prompts_file.parent.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_named_args_round_trip(self, store):
        """Test declared argument defaults survive a save and load."""
        store.load()
        translate = PromptStore(store.prompts_file).load().get("translate")
        assert translate.arg_defaults() == {"target_lang": "zh"}
