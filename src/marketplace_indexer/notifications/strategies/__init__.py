"""Notification strategies."""

from marketplace_indexer.notifications.strategies.base import (
    BaseNotificationStrategy,
)
from marketplace_indexer.notifications.strategies.console import ConsoleNotifier
from marketplace_indexer.notifications.strategies.telegram import TelegramNotifier

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
    "TelegramNotifier",
]
