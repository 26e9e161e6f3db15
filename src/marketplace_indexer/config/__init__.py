"""Configuration subpackage."""

from marketplace_indexer.config.config import (
    AppSettings,
    ChainSettings,
    ConsoleNotificationSettings,
    DatabaseSettings,
    IndexerSettings,
    LoggingSettings,
    Settings,
    TelegramNotificationSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "ChainSettings",
    "ConsoleNotificationSettings",
    "DatabaseSettings",
    "IndexerSettings",
    "LoggingSettings",
    "Settings",
    "TelegramNotificationSettings",
    "get_settings",
]
