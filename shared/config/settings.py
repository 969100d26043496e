"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BlockchainMode(str, Enum):
    """Chain data source."""

    MOCK = "mock"
    RPC = "rpc"


class EpochBoundary(str, Enum):
    """
    Which epoch a boundary block (a multiple of the epoch size) belongs to.

    FIRST_BLOCK: block k*size opens epoch k (epoch = floor(n / size)).
    LAST_BLOCK: block k*size closes epoch k (epoch = ceil(n / size)), the
    convention used by Istanbul-BFT chains such as Celo.
    """

    FIRST_BLOCK = "first_block"
    LAST_BLOCK = "last_block"


class BlockchainSettings(BaseSettings):
    """Chain connection configuration."""

    model_config = SettingsConfigDict(env_prefix="BLOCKCHAIN_")

    mode: BlockchainMode = BlockchainMode.MOCK

    # JSON-RPC node (rpc mode)
    rpc_url: str = "https://forno.celo.org"
    request_timeout_seconds: float = 30.0

    # Election timing
    epoch_size: int = Field(default=17280, gt=0)
    # Unset: each chain client uses its own convention
    epoch_boundary: EpochBoundary | None = None


class HeartbeatSettings(BaseSettings):
    """Defaults for the validator heartbeat command."""

    model_config = SettingsConfigDict(env_prefix="HEARTBEAT_")

    lookback: int = Field(default=120, gt=0)
    width: int = Field(default=40, gt=0)
    fetch_concurrency: int = Field(default=10, gt=0)
    color: bool = True


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    log_level: LogLevel = LogLevel.WARNING
    json_logs: bool = False

    # Chain configuration
    blockchain: BlockchainSettings = Field(default_factory=BlockchainSettings)

    # Command defaults
    heartbeat: HeartbeatSettings = Field(default_factory=HeartbeatSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
