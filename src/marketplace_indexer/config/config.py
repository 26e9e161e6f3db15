# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, CHAIN__RPC_URL.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "marketplace-indexer"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    # Per-target levels (only the 5 standard levels)
    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Local outputs
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/marketplace_indexer.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    # Main output format: JSONRenderer if True, ConsoleRenderer if False
    json_format: bool = False

    # Logfire integration via structlog
    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class ChainSettings(BaseSettings):
    """JSON-RPC endpoint, marketplace contract and scan limits (from env CHAIN__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    rpc_url: str = Field(
        default="https://sepolia.base.org",
        description="JSON-RPC endpoint used for eth_blockNumber / eth_getLogs.",
    )
    chain_id: int = Field(default=84532, description="Chain ID (e.g. 84532 for Base Sepolia).")
    contract_address: str = Field(
        default="",
        description="Marketplace contract emitting PurchaseCompleted. Required.",
    )
    confirmations_required: int = Field(
        default=3,
        ge=0,
        le=1000,
        description="Blocks behind head treated as not yet final.",
    )
    max_block_chunk: int = Field(
        default=2000,
        ge=1,
        le=100_000,
        description="Maximum inclusive span of a single eth_getLogs call.",
    )
    rpc_max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Attempts per RPC call before the error is surfaced.",
    )
    rpc_retry_base_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Retry delay is attempt * rpc_retry_base_seconds.",
    )
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds.",
    )


class IndexerSettings(BaseSettings):
    """Polling, cursor and health configuration (from env INDEXER__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    poll_seconds: float = Field(
        default=8.0,
        ge=0.5,
        le=600.0,
        description="Interval between polling cycles in seconds.",
    )
    cold_start_window: int = Field(
        default=5,
        ge=0,
        le=100_000,
        description="Blocks behind the confirmed height scanned when the ledger is empty.",
    )
    stale_after_seconds: float = Field(
        default=600.0,
        ge=1.0,
        description="Health reports stale when the newest ledger row is older than this.",
    )
    event_type: str = Field(
        default="PurchaseCompleted",
        description="Event type tag written to the ledger.",
    )


class DatabaseSettings(BaseSettings):
    """SQLAlchemy connection (from env DATABASE__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    url: str = Field(
        default="sqlite+aiosqlite:///./marketplace_indexer.db",
        description="Async SQLAlchemy URL (e.g. postgresql+asyncpg://...).",
    )
    echo: bool = False


class TelegramNotificationSettings(BaseSettings):
    """Telegram notifications (from env TELEGRAM__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    api_key: Optional[str] = Field(default=None, description="Telegram bot API key.")
    chat_id: Optional[str] = Field(default=None, description="Telegram chat ID.")
    messages_per_minute: int = Field(default=30, ge=1, le=120)
    max_retries: int = Field(default=5, ge=0, le=20)
    backoff_base_seconds: float = Field(default=1.0, ge=0.1, le=60.0)
    connect_timeout: float = Field(default=10.0, ge=0.1, le=60.0)
    read_timeout: float = Field(default=20.0, ge=0.1, le=120.0)
    write_timeout: float = Field(default=20.0, ge=0.1, le=120.0)
    pool_timeout: float = Field(default=10.0, ge=0.1, le=60.0)
    event_types: list[str] = Field(
        default_factory=list,
        description="Event types forwarded (JSON list, e.g. [\"purchase_completed\"]); empty forwards all.",
    )


class ConsoleNotificationSettings(BaseSettings):
    """Console notification settings."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = True
    event_types: list[str] = Field(
        default_factory=list,
        description="Event types printed; empty prints all.",
    )


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, CHAIN__CONTRACT_ADDRESS.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    chain: ChainSettings = Field(default_factory=ChainSettings)
    indexer: IndexerSettings = Field(default_factory=IndexerSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    telegram: TelegramNotificationSettings = Field(default_factory=TelegramNotificationSettings)
    console: ConsoleNotificationSettings = Field(default_factory=ConsoleNotificationSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as flat keys or nested dicts, e.g.:
        - from_env(chain__max_block_chunk=500)
        - from_env(chain={"max_block_chunk": 500})

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from marketplace_indexer.config import get_settings

        settings = get_settings()
        span = settings.chain.max_block_chunk
        console_level = settings.logging.console_level
    """
    return Settings()
