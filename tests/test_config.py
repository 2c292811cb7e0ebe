"""Tests for configuration loading."""

from decimal import Decimal
from pathlib import Path

import tomllib

from config import Config, config_from_dict, get_config_path, load_config


class TestConfigFromDict:
    """Tests for config_from_dict."""

    def test_empty_data_gives_defaults(self):
        """Test that missing sections fall back to defaults."""
        config = config_from_dict({})
        defaults = Config.default()

        assert config.db_filename == "famledger.db"
        assert config.llm_provider == "ollama"
        assert config.llm_model == "llama3.2"
        assert config.llm_timeout_seconds == 30.0
        assert config.amount_tolerance == Decimal("0.01")
        assert config.auth_cache_ttl_seconds == 300.0
        assert config.admin_chat_ids == []
        assert config.categories == defaults.categories
        assert config.category_defaults["income"] == "Other Income"

    def test_overrides(self, tmp_path):
        """Test that every section is read."""
        config = config_from_dict(
            {
                "base_dir": str(tmp_path),
                "database": {"filename": "ledger.db", "timeout_seconds": 2},
                "logging": {"level": "DEBUG"},
                "llm": {
                    "provider": "openai",
                    "api_key": "sk-test",
                    "model": "gpt-4o-mini",
                    "timeout_seconds": 5,
                    "amount_tolerance": "0.05",
                },
                "auth": {"cache_ttl_seconds": 60, "admin_chat_ids": [1001, "1002"]},
                "categories": {
                    "expense": {"names": ["Kids", "Misc"], "default": "Misc"},
                },
            }
        )

        assert config.db_path == tmp_path / "db" / "ledger.db"
        assert config.log_dir == tmp_path / "logs"
        assert config.db_timeout_seconds == 2.0
        assert config.log_level == "DEBUG"
        assert config.llm_provider == "openai"
        assert config.llm_api_key == "sk-test"
        assert config.llm_timeout_seconds == 5.0
        assert config.amount_tolerance == Decimal("0.05")
        assert config.auth_cache_ttl_seconds == 60.0
        assert config.admin_chat_ids == ["1001", "1002"]
        assert config.categories["expense"] == ["Kids", "Misc"]
        assert config.category_defaults["expense"] == "Misc"
        # Untouched types keep their defaults
        assert "Salary" in config.categories["income"]


class TestLoadConfig:
    """Tests for load_config."""

    def test_config_path_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.toml"
        monkeypatch.setenv("FAMLEDGER_CONFIG", str(path))

        assert get_config_path() == path

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv("FAMLEDGER_CONFIG", raising=False)

        assert get_config_path() == Path.home() / ".config" / "famledger.toml"

    def test_missing_file_is_created_with_defaults(self, tmp_path, monkeypatch):
        """Test that a default config file is written on first load."""
        path = tmp_path / "conf" / "famledger.toml"
        monkeypatch.setenv("FAMLEDGER_CONFIG", str(path))

        config = load_config()

        assert path.exists()
        assert config.llm_provider == "ollama"

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert data["llm"]["amount_tolerance"] == "0.01"
        assert data["categories"]["savings"]["default"] == "Savings"

    def test_written_file_loads_back(self, tmp_path, monkeypatch):
        path = tmp_path / "famledger.toml"
        monkeypatch.setenv("FAMLEDGER_CONFIG", str(path))

        first = load_config()
        second = load_config()

        assert second == first
