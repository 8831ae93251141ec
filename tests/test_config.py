"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError
from unittest.mock import patch

from mediguard.config import Config, ScanConfiguration, resolve_api_key


class TestScanConfiguration:
    """Test cases for ScanConfiguration."""

    def test_defaults(self):
        """Test default crawl bounds."""
        config = ScanConfiguration()

        assert config.max_pages == 10
        assert config.max_depth == 2
        assert config.include_subdomains is False
        assert config.exclude_patterns == ["/admin", "/login", "/wp-admin", "/dashboard"]
        assert config.timeout_ms == 30000
        assert config.timeout_seconds == 30.0
        assert config.respect_robots_txt is True

    def test_validation(self):
        """Test invalid bounds are rejected."""
        with pytest.raises(ValidationError):
            ScanConfiguration(max_pages=0)
        with pytest.raises(ValidationError):
            ScanConfiguration(max_depth=-1)
        with pytest.raises(ValidationError):
            ScanConfiguration(timeout_ms=100)

    def test_frozen(self):
        """Test the configuration cannot be mutated."""
        config = ScanConfiguration()
        with pytest.raises(ValidationError):
            config.max_pages = 50

    def test_from_env(self):
        """Test loading from MEDIGUARD_SCAN_ variables."""
        env = {
            "MEDIGUARD_SCAN_MAX_PAGES": "25",
            "MEDIGUARD_SCAN_INCLUDE_SUBDOMAINS": "true",
            "MEDIGUARD_SCAN_EXCLUDE_PATTERNS": "/private, /staff",
            "MEDIGUARD_SCAN_RESPECT_ROBOTS_TXT": "no",
        }
        with patch.dict("os.environ", env, clear=True):
            config = ScanConfiguration.from_env()

        assert config.max_pages == 25
        assert config.include_subdomains is True
        assert config.exclude_patterns == ["/private", "/staff"]
        assert config.respect_robots_txt is False
        assert config.max_depth == 2


class TestConfig:
    """Test cases for runtime Config."""

    def test_from_env(self):
        """Test loading runtime configuration."""
        env = {
            "OPENAI_API_KEY": "sk-test",
            "LLM_MODEL": "gpt-4o",
            "LLM_TIMEOUT": "15",
            "RENDER_JS": "false",
        }
        with patch.dict("os.environ", env, clear=True):
            config = Config.from_env()

        assert config.llm_api_key == "sk-test"
        assert config.llm_model == "gpt-4o"
        assert config.llm_provider == "openai"
        assert config.llm_timeout == 15.0
        assert config.render_js is False
        assert config.user_agent == "MediGuard-AI-Scanner/2.0"

    def test_missing_key(self):
        """Test that no key leaves llm_api_key unset."""
        with patch.dict("os.environ", {}, clear=True):
            assert Config.from_env().llm_api_key is None

    def test_resolve_api_key_prefers_provider_key(self):
        """Test provider-specific keys win over LLM_API_KEY."""
        env = {"ANTHROPIC_API_KEY": "ant-key", "LLM_API_KEY": "generic"}
        with patch.dict("os.environ", env, clear=True):
            assert resolve_api_key("anthropic") == "ant-key"
            assert resolve_api_key("openai") == "generic"
