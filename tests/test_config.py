"""Unit tests for config.py - Configuration management."""

import os
import pytest
from unittest.mock import patch

import config
from config import (
    ProviderConfig,
    GatewayConfig,
    LoggingConfig,
    Config,
    load_config,
    get_config,
    reset_config,
)
from errors import ConfigurationError, ErrorKind

PROVIDER_ENV = {
    "CRATEDB_API_KEY": "env-key",
    "CRATEDB_API_SECRET": "env-secret",
    "CRATEDB_URL": "https://console.cratedb.cloud",
}


class TestProviderConfig:
    """Tests for ProviderConfig class."""

    def test_from_env(self):
        """Test loading credentials from environment variables."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=True):
            cfg = ProviderConfig.from_env()
            assert cfg.api_key == "env-key"
            assert cfg.api_secret == "env-secret"
            assert cfg.url == "https://console.cratedb.cloud"

    def test_explicit_values_take_precedence(self):
        """Test that explicit configuration wins over the environment."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=True):
            cfg = ProviderConfig.resolve(
                {"api_key": "explicit-key", "url": "https://other.example.com"}
            )
            assert cfg.api_key == "explicit-key"
            assert cfg.api_secret == "env-secret"
            assert cfg.url == "https://other.example.com"

    def test_explicit_none_falls_back_to_env(self):
        """Test that null explicit values do not override the environment."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=True):
            cfg = ProviderConfig.resolve({"api_key": None, "api_secret": None})
            assert cfg.api_key == "env-key"
            assert cfg.api_secret == "env-secret"

    def test_explicit_only(self):
        """Test resolution without any environment variables."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = ProviderConfig.resolve(
                {"api_key": "k", "api_secret": "s", "url": "https://u"}
            )
            assert cfg == ProviderConfig(api_key="k", api_secret="s", url="https://u")

    def test_missing_value_raises(self):
        """Test that a missing secret raises a field-scoped error."""
        env_vars = dict(PROVIDER_ENV, CRATEDB_API_SECRET="")
        with patch.dict(os.environ, env_vars, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                ProviderConfig.from_env()

        error = exc_info.value
        assert error.kind == ErrorKind.CONFIGURATION
        assert error.attribute == "api_secret"
        assert error.title == "Missing CrateDB API Secret"
        assert "CRATEDB_API_SECRET" in error.message

    def test_all_missing_lists_every_field(self):
        """Test that the error names every missing field."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                ProviderConfig.resolve()

        error = exc_info.value
        assert error.attribute == "api_key"
        assert "api_key, api_secret, url" in error.message

    def test_empty_explicit_value_is_missing(self):
        """Test that an explicit empty string counts as missing."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                ProviderConfig.resolve({"url": ""})
            assert exc_info.value.attribute == "url"

    def test_secret_not_in_repr(self):
        """Test that the API secret is not exposed in repr."""
        cfg = ProviderConfig(api_key="k", api_secret="secret123", url="https://u")
        assert "secret123" not in repr(cfg)


class TestGatewayConfig:
    """Tests for GatewayConfig class."""

    def test_default_values(self):
        """Test default configuration values."""
        cfg = GatewayConfig()
        assert cfg.timeout == 60.0
        assert cfg.max_retries == 3
        assert cfg.retry_wait_min == 1.0
        assert cfg.retry_wait_max == 5.0

    def test_from_env(self):
        """Test loading configuration from environment variables."""
        env_vars = {
            "CRATEDB_HTTP_TIMEOUT": "30",
            "CRATEDB_HTTP_MAX_RETRIES": "5",
            "CRATEDB_HTTP_RETRY_WAIT_MIN": "0.5",
            "CRATEDB_HTTP_RETRY_WAIT_MAX": "2",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            cfg = GatewayConfig.from_env()
            assert cfg.timeout == 30.0
            assert cfg.max_retries == 5
            assert cfg.retry_wait_min == 0.5
            assert cfg.retry_wait_max == 2.0

    def test_from_env_defaults(self):
        """Test defaults when environment variables are not set."""
        with patch.dict(os.environ, {}, clear=True):
            assert GatewayConfig.from_env() == GatewayConfig()


class TestLoggingConfig:
    """Tests for LoggingConfig class."""

    def test_from_env(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}, clear=True):
            assert LoggingConfig.from_env().log_level == "DEBUG"

    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = LoggingConfig.from_env()
            assert cfg.log_level == "INFO"
            assert "%(levelname)s" in cfg.log_format


class TestConfig:
    """Tests for main Config class."""

    def test_from_env(self):
        """Test loading full configuration from environment."""
        env_vars = dict(PROVIDER_ENV, CRATEDB_HTTP_MAX_RETRIES="1")
        with patch.dict(os.environ, env_vars, clear=True):
            cfg = Config.from_env()
            assert cfg.provider.api_key == "env-key"
            assert cfg.gateway.max_retries == 1
            assert cfg.logging.log_level == "INFO"

    def test_from_env_with_explicit(self):
        """Test explicit provider values pass through to the provider section."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=True):
            cfg = Config.from_env({"api_key": "explicit-key"})
            assert cfg.provider.api_key == "explicit-key"


class TestConfigSingleton:
    """Tests for config singleton functions."""

    def setup_method(self):
        """Reset config before each test."""
        reset_config()

    def teardown_method(self):
        """Reset config after each test."""
        reset_config()

    def test_load_config(self):
        """Test load_config function."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=False):
            cfg = load_config()
            assert cfg is not None
            assert isinstance(cfg, Config)

    def test_get_config_loads_if_none(self):
        """Test get_config loads config if not loaded."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=False):
            cfg = get_config()
            assert isinstance(cfg, Config)

    def test_singleton_returns_same_instance(self):
        """Test that singleton returns same instance."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=False):
            cfg1 = load_config()
            cfg2 = get_config()
            assert cfg1 is cfg2

    def test_reset_config(self):
        """Test reset_config clears the singleton."""
        with patch.dict(os.environ, PROVIDER_ENV, clear=False):
            cfg1 = load_config()
            reset_config()
            assert config.config is None
            cfg2 = load_config()
            assert cfg1 is not cfg2

    def test_load_config_missing_credentials(self):
        """Test that loading without credentials fails fast."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError):
                load_config()
        assert config.config is None
