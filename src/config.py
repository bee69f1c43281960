"""
Configuration module for the CrateDB Cloud reconciliation engine.

Provider credentials are resolved from an explicit configuration mapping or
environment variables, explicit values taking precedence. Gateway tuning and
logging are loaded from environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from errors import ConfigurationError

# attribute -> (environment variable, human readable name)
_PROVIDER_FIELDS = {
    "api_key": ("CRATEDB_API_KEY", "CrateDB API Key"),
    "api_secret": ("CRATEDB_API_SECRET", "CrateDB API Secret"),
    "url": ("CRATEDB_URL", "CrateDB Cloud URL"),
}


@dataclass
class ProviderConfig:
    """Credentials and endpoint of the CrateDB Cloud API."""

    api_key: str = ""
    api_secret: str = field(default="", repr=False)  # Never log secret
    url: str = ""

    @classmethod
    def resolve(cls, explicit: Optional[Mapping[str, Any]] = None):
        """
        Resolve provider configuration.

        Environment variables supply defaults; any non-null value in the
        explicit mapping overrides them.

        Args:
            explicit: Explicit configuration values keyed by attribute name

        Raises:
            ConfigurationError: If any value is empty after resolution. The
                error is scoped to the first missing attribute and lists all
                missing attributes.
        """
        explicit = explicit or {}
        values: Dict[str, str] = {}
        for name, (env_var, _) in _PROVIDER_FIELDS.items():
            value = os.getenv(env_var, "")
            if explicit.get(name) is not None:
                value = str(explicit[name])
            values[name] = value

        missing = [name for name, value in values.items() if not value]
        if missing:
            name = missing[0]
            env_var, label = _PROVIDER_FIELDS[name]
            raise ConfigurationError(
                attribute=name,
                title=f"Missing {label}",
                message=(
                    f"Cannot create the CrateDB Cloud client: missing or empty "
                    f"value for {', '.join(missing)}. Set '{name}' in the "
                    f"configuration or use the {env_var} environment variable. "
                    "If either is already set, ensure the value is not empty."
                ),
            )

        return cls(**values)

    @classmethod
    def from_env(cls):
        """Load from environment variables only."""
        return cls.resolve()


@dataclass
class GatewayConfig:
    """HTTP gateway timeout and transport retry configuration."""

    timeout: float = 60.0  # seconds per request
    max_retries: int = 3
    retry_wait_min: float = 1.0  # seconds
    retry_wait_max: float = 5.0  # seconds

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            timeout=float(os.getenv("CRATEDB_HTTP_TIMEOUT", "60")),
            max_retries=int(os.getenv("CRATEDB_HTTP_MAX_RETRIES", "3")),
            retry_wait_min=float(os.getenv("CRATEDB_HTTP_RETRY_WAIT_MIN", "1.0")),
            retry_wait_max=float(os.getenv("CRATEDB_HTTP_RETRY_WAIT_MAX", "5.0")),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(log_level=os.getenv("LOG_LEVEL", "INFO").upper())


@dataclass
class Config:
    """Main configuration object."""

    provider: ProviderConfig
    gateway: GatewayConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls, explicit: Optional[Mapping[str, Any]] = None):
        """Load all configuration, with explicit provider values winning."""
        return cls(
            provider=ProviderConfig.resolve(explicit),
            gateway=GatewayConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )


# Global config instance
config: Optional[Config] = None


def load_config(explicit: Optional[Mapping[str, Any]] = None) -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env(explicit)
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
