"""SaleNotifier: tells the seller a purchase of their listing has been indexed."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from marketplace_indexer.notifications.types import PURCHASE_COMPLETED, NotificationMessage

if TYPE_CHECKING:
    from marketplace_indexer.notifications.notification_manager import (
        NotificationService,
    )


class SaleNotifier:
    """Builds the purchase_completed NotificationMessage and hands it to NotificationService."""

    def __init__(
        self,
        notification_service: NotificationService,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._notification_service = notification_service
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def notify(self, seller_address: str, purchase_id: str, **details: Any) -> None:
        """Enqueue the seller notification. Never blocks on delivery.

        Args:
            seller_address: Seller of the purchased listing.
            purchase_id: Internal Purchase.id.
            **details: Extra payload fields (listing_id, buyer, amount_usdc, tx_hash,
                block_number) shown by the styler when present.
        """
        payload: dict[str, Any] = {"seller": seller_address, "purchase_id": purchase_id}
        payload.update({k: v for k, v in details.items() if v is not None})
        notification = NotificationMessage(
            event_type=PURCHASE_COMPLETED,
            message=f"Seller {seller_address} notified for purchase {purchase_id}",
            payload=payload,
            recipient=seller_address,
        )
        self._notification_service.notify(notification)
        self._logger.info(
            "seller_notified",
            seller_address=seller_address,
            purchase_id=purchase_id,
        )
