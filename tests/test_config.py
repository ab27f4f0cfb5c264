"""Integration tests for configuration module."""

import warnings
from pathlib import Path

import pytest

from app.config import (
    AppConfig,
    ConfigurationError,
    LogFormat,
    load_config,
    validate_config_file,
)
from app.config.environment import DEFAULT_DATABASE_URL, load_environment_config
from app.config.validators import check_for_warnings

VALID_CONFIG = """
api:
  host: 127.0.0.1
  port: 9000
  root_path: match/
ranking:
  max_candidates: 25
  require_skill_overlap: true
  budget_weight: 0.5
logging:
  level: DEBUG
  format: json
service_name: match-test
"""


def write_config(tmp_path: Path, content: str, name: str = "config.yaml") -> Path:
    path = tmp_path / name
    path.write_text(content)
    return path


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, tmp_path, clean_env):
        """Test loading a complete configuration file."""
        app_config, env_config = load_config(write_config(tmp_path, VALID_CONFIG))

        assert app_config.api.port == 9000
        assert app_config.api.root_path == "/match"
        assert app_config.ranking.max_candidates == 25
        assert app_config.ranking.require_skill_overlap is True
        assert app_config.ranking.budget_weight == 0.5
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"
        assert app_config.service_name == "match-test"
        assert env_config.database_url == DEFAULT_DATABASE_URL

    def test_empty_file_uses_defaults(self, tmp_path, clean_env):
        """Test that an empty file yields the default configuration."""
        app_config, _ = load_config(write_config(tmp_path, ""))

        assert app_config == AppConfig()
        assert app_config.ranking.max_candidates == 50
        assert app_config.api.host == "127.0.0.1"
        assert app_config.logging.format == LogFormat.KEY_VALUE

    def test_no_file_uses_defaults(self, tmp_path, monkeypatch, clean_env):
        """Test that running without any config file falls back to defaults."""
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config.api.port == 8000

    def test_default_location_discovered(self, tmp_path, monkeypatch, clean_env):
        """Test that config/config.yaml is found when config.yaml is absent."""
        (tmp_path / "config").mkdir()
        write_config(tmp_path / "config", "api:\n  port: 8123\n")
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config.api.port == 8123

    def test_missing_explicit_file(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError, match="not valid YAML"):
            load_config(write_config(tmp_path, "api: [unclosed"))

    def test_top_level_must_be_mapping(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(write_config(tmp_path, "- a\n- b\n"))

    def test_validation_errors_are_aggregated(self, tmp_path, clean_env):
        """Test that every invalid field is reported at once."""
        content = "ranking:\n  max_candidates: 0\n  budget_weight: 2\napi:\n  port: 70000\n"

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(write_config(tmp_path, content))

        errors = exc_info.value.errors
        assert len(errors) == 3
        assert any("max_candidates" in error for error in errors)
        assert any("budget_weight" in error for error in errors)
        assert any("port" in error for error in errors)
        assert exc_info.value.suggestions

    def test_invalid_log_format(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(write_config(tmp_path, "logging:\n  format: xml\n"))

        assert "logging.format" in str(exc_info.value)

    def test_validate_config_file(self, tmp_path, capsys):
        assert validate_config_file(write_config(tmp_path, VALID_CONFIG)) is True
        assert validate_config_file(write_config(tmp_path, "api:\n  port: abc\n", "bad.yaml")) is False

        output = capsys.readouterr().out
        assert "is valid" in output
        assert "validation failed" in output


class TestConfigWarnings:
    """Test warnings for suspicious but valid settings."""

    def test_unknown_section_warns(self):
        warnings_found = check_for_warnings({"sources": []})

        assert any("sources" in message for message in warnings_found)

    def test_large_candidate_limit_warns(self):
        assert check_for_warnings({"ranking": {"max_candidates": 300}})

    def test_zero_budget_weight_warns(self):
        assert check_for_warnings({"ranking": {"budget_weight": 0}})

    def test_public_host_warns(self):
        assert check_for_warnings({"api": {"host": "0.0.0.0"}})

    def test_defaults_do_not_warn(self):
        assert check_for_warnings({}) == []

    def test_load_config_emits_warnings(self, tmp_path, clean_env):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            load_config(write_config(tmp_path, "api:\n  host: 0.0.0.0\n"))

        assert any("X-User-Id" in str(w.message) for w in caught)


class TestEnvironmentConfig:
    """Test environment variable loading."""

    def test_defaults(self, clean_env):
        env_config = load_environment_config()

        assert env_config.database_url == DEFAULT_DATABASE_URL
        assert env_config.log_level is None
        assert env_config.environment == "local"

    def test_values_from_environment(self, monkeypatch, clean_env):
        monkeypatch.setenv("DATABASE_URL", "postgresql://match:secret@db/match")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ENVIRONMENT", "Staging")

        env_config = load_environment_config()

        assert env_config.database_url == "postgresql://match:secret@db/match"
        assert env_config.log_level == "DEBUG"
        assert env_config.environment == "staging"

    def test_invalid_values_aggregated(self, monkeypatch, clean_env):
        monkeypatch.setenv("DATABASE_URL", "not-a-url")
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("ENVIRONMENT", "moon")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 3


class TestConfigurationError:
    """Test ConfigurationError formatting."""

    def test_message_lists_errors_and_suggestions(self):
        error = ConfigurationError("Broken", errors=["a is wrong"], suggestions=["fix a"])
        error.add_error("b is wrong")
        error.add_suggestion("fix b")

        text = str(error)
        assert "Broken" in text
        assert "1. a is wrong" in text
        assert "2. b is wrong" in text
        assert "- fix b" in text


@pytest.fixture
def clean_env(monkeypatch):
    """Remove service environment variables for testing."""
    for name in ("DATABASE_URL", "LOG_LEVEL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
