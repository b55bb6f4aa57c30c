"""Tests for configuration management."""

import os
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from site_explorer.core.config import (
    AppConfig,
    BrowserConfig,
    ExplorationConfig,
    OpenAIConfig,
    OutputConfig,
    url_to_dirname,
)
from site_explorer.core.exceptions import ConfigError


class TestUrlToDirname:
    """Tests for url_to_dirname function."""

    def test_basic_url(self):
        """Test basic URL conversion."""
        assert url_to_dirname("https://example.com") == "example_com"

    def test_www_prefix_removed(self):
        """Test www prefix is removed."""
        assert url_to_dirname("https://www.example.com") == "example_com"

    def test_port_removed(self):
        """Test port is removed."""
        assert url_to_dirname("http://localhost:8080") == "localhost"

    def test_path_ignored(self):
        """Test URL path doesn't affect dirname."""
        assert url_to_dirname("https://example.com/path/to/page") == "example_com"

    def test_consecutive_underscores_collapsed(self):
        """Test consecutive underscores are collapsed."""
        assert url_to_dirname("https://a--b..c.com") == "a_b_c_com"

    def test_result_lowercase(self):
        """Test result is lowercase."""
        assert url_to_dirname("https://MyExample.COM") == "myexample_com"


class TestOutputConfig:
    """Tests for OutputConfig."""

    def test_default_base_dir(self):
        """Test default output directory."""
        assert OutputConfig().base_dir == Path("./analysis_output")

    def test_from_env(self):
        """Test EXPLORER_OUTPUT_DIR is honoured."""
        with patch.dict(os.environ, {"EXPLORER_OUTPUT_DIR": "/tmp/reports"}):
            assert OutputConfig.from_env().base_dir == Path("/tmp/reports")

    def test_session_dir_keyed_by_host_and_start_time(self):
        """Test session directory combines host and start timestamp."""
        config = OutputConfig(base_dir=Path("/tmp/out"))
        session_dir = config.get_session_dir("https://www.example.com/blog", datetime(2025, 1, 16, 15, 30, 45))
        assert session_dir == Path("/tmp/out/example_com_20250116_153045")


class TestOpenAIConfig:
    """Tests for OpenAIConfig."""

    def test_from_env(self):
        """Test loading from environment."""
        env = {"OPENAI_API_KEY": "sk-test", "OPENAI_MODEL": "gpt-4o-mini", "OPENAI_TEMPERATURE": "0.3"}
        with patch.dict(os.environ, env, clear=True):
            config = OpenAIConfig.from_env()
        assert config.api_key == "sk-test"
        assert config.model == "gpt-4o-mini"
        assert config.temperature == 0.3
        assert config.base_url is None

    def test_legacy_key_name(self):
        """Test OPENAI_KEY is accepted as a fallback."""
        with patch.dict(os.environ, {"OPENAI_KEY": "sk-legacy"}, clear=True):
            assert OpenAIConfig.from_env().api_key == "sk-legacy"

    def test_missing_key_raises(self):
        """Test missing API key raises ConfigError."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigError) as exc_info:
                OpenAIConfig.from_env()
        assert exc_info.value.config_key == "OPENAI_API_KEY"


class TestBrowserConfig:
    """Tests for BrowserConfig."""

    def test_defaults(self):
        config = BrowserConfig()
        assert config.http_url == "http://localhost:9222"
        assert config.new_target is True

    def test_cdp_url_takes_precedence(self):
        """Test CDP_URL wins over CDP_HOST/CDP_PORT."""
        env = {"CDP_URL": "http://chrome:9333", "CDP_HOST": "ignored", "CDP_PORT": "1"}
        with patch.dict(os.environ, env, clear=True):
            config = BrowserConfig.from_env()
        assert config.host == "chrome"
        assert config.port == 9333

    def test_host_port_mode(self):
        with patch.dict(os.environ, {"CDP_HOST": "10.0.0.5", "CDP_PORT": "9230", "CDP_NEW_TARGET": "false"}, clear=True):
            config = BrowserConfig.from_env()
        assert config.http_url == "http://10.0.0.5:9230"
        assert config.new_target is False

    def test_malformed_port(self):
        with patch.dict(os.environ, {"CDP_PORT": "92a2"}, clear=True):
            with pytest.raises(ConfigError) as exc_info:
                BrowserConfig.from_env()
        assert exc_info.value.config_key == "CDP_PORT"


class TestExplorationConfig:
    """Tests for ExplorationConfig."""

    def test_defaults(self):
        config = ExplorationConfig()
        assert config.max_steps == 15
        assert config.max_pages == 10
        assert config.step_delay == 1.5
        assert config.history_window == 5

    def test_rejects_zero_budgets(self):
        with pytest.raises(ConfigError):
            ExplorationConfig(max_pages=0)
        with pytest.raises(ConfigError):
            ExplorationConfig(max_steps=0)

    def test_env_overrides(self):
        env = {"EXPLORER_MAX_STEPS": "3", "EXPLORER_MAX_PAGES": "2", "EXPLORER_STEP_DELAY": "0.25"}
        with patch.dict(os.environ, env, clear=True):
            config = ExplorationConfig.from_env()
        assert (config.max_steps, config.max_pages, config.step_delay) == (3, 2, 0.25)

    def test_malformed_env_value(self):
        with patch.dict(os.environ, {"EXPLORER_MAX_STEPS": "ten"}, clear=True):
            with pytest.raises(ConfigError, match="EXPLORER_MAX_STEPS must be a number") as exc_info:
                ExplorationConfig.from_env()
        assert exc_info.value.config_key == "EXPLORER_MAX_STEPS"

    def test_yaml_profile(self, tmp_path):
        """Test a YAML profile is loaded and env vars override it."""
        profile = tmp_path / "profile.yaml"
        profile.write_text("max_steps: 7\nsettle_delay: 0.5\n")
        env = {"EXPLORER_PROFILE": str(profile), "EXPLORER_MAX_STEPS": "4"}
        with patch.dict(os.environ, env, clear=True):
            config = ExplorationConfig.from_env()
        assert config.settle_delay == 0.5
        assert config.max_steps == 4

    def test_yaml_unknown_keys(self, tmp_path):
        profile = tmp_path / "profile.yaml"
        profile.write_text("max_stepz: 7\n")
        with pytest.raises(ConfigError, match="Unknown profile keys"):
            ExplorationConfig.from_yaml(profile)

    def test_yaml_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Profile not found"):
            ExplorationConfig.from_yaml(tmp_path / "missing.yaml")


class TestAppConfig:
    """Tests for AppConfig."""

    def test_from_env(self):
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test", "LOG_LEVEL": "DEBUG"}, clear=True):
            config = AppConfig.from_env()
        assert config.openai.api_key == "sk-test"
        assert config.exploration.max_steps == 15
        assert config.log_level == "DEBUG"
