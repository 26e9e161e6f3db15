"""Notification subsystem."""

from marketplace_indexer.notifications.notification_manager import (
    NotificationService,
)
from marketplace_indexer.notifications.strategies import (
    BaseNotificationStrategy,
    ConsoleNotifier,
    TelegramNotifier,
)
from marketplace_indexer.notifications.types import (
    INDEXER_STARTED,
    INDEXER_STOPPED,
    PURCHASE_COMPLETED,
    NotificationMessage,
    NotificationStyler,
)

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
    "INDEXER_STARTED",
    "INDEXER_STOPPED",
    "NotificationMessage",
    "NotificationService",
    "NotificationStyler",
    "PURCHASE_COMPLETED",
    "TelegramNotifier",
]
