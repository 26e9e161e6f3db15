"""Notification stylers."""

from marketplace_indexer.notifications.stylers.notification_styler import EventNotificationStyler

__all__ = ["EventNotificationStyler"]
