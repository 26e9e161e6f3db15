"""Notification-related services."""

from marketplace_indexer.services.notifications.sale_notifier import SaleNotifier

__all__ = ["SaleNotifier"]
