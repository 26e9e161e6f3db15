# -*- coding: utf-8 -*-
"""Event-based notification styler (plain text for console, HTML for Telegram)."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from marketplace_indexer.notifications.types import (
    INDEXER_STARTED,
    INDEXER_STOPPED,
    PURCHASE_COMPLETED,
    NotificationMessage,
    NotificationStyler,
)

USDC_DECIMALS = 6


class EventNotificationStyler(NotificationStyler):
    """Render notifications by event_type with emojis and labelled rows."""

    def render(self, message: NotificationMessage, *, parse_html: bool = False) -> str:
        """Dispatch to the appropriate renderer based on event_type."""
        if message.event_type == PURCHASE_COMPLETED:
            return self._render_purchase(message, parse_html)
        if message.event_type in (INDEXER_STARTED, INDEXER_STOPPED):
            return self._render_status(message, parse_html)
        return self._render_generic(message, parse_html)

    def _render_purchase(self, message: NotificationMessage, html: bool) -> str:
        payload: dict[str, Any] = message.payload or {}
        emoji, title = self._title(message.event_type)
        rows = [
            ("👛 Seller", message.recipient or payload.get("seller")),
            ("🧾 Purchase", payload.get("purchase_id")),
            ("🏷️ Listing", payload.get("listing_id")),
            ("🛒 Buyer", payload.get("buyer")),
            ("💵 Amount", self._format_usdc(payload.get("amount_usdc"))),
            ("🔗 Transaction", payload.get("tx_hash")),
            ("📦 Block", payload.get("block_number")),
        ]
        lines = [self._bold(f"{emoji} {title}", html), message.message]
        lines.extend(
            f"{self._label(label, html)} {value}"
            for label, value in rows
            if value is not None and value != ""
        )
        return "\n".join(lines).strip()

    def _render_status(self, message: NotificationMessage, html: bool) -> str:
        emoji, title = self._title(message.event_type)
        payload = message.payload or {}
        lines = [self._bold(f"{emoji} {title}", html), message.message]
        contract = payload.get("contract_address")
        if contract:
            lines.append(f"{self._label('📜 Contract', html)} {contract}")
        return "\n".join(lines).strip()

    def _render_generic(self, message: NotificationMessage, html: bool) -> str:
        """Render unknown event types using message and payload."""
        emoji, title = self._title(message.event_type)
        lines = [self._bold(f"{emoji} {title}", html), message.message]
        if message.payload:
            for key in sorted(message.payload.keys()):
                value = message.payload.get(key)
                if value is not None:
                    lines.append(f"{self._bold(key + ':', html)} {value}")
        return "\n".join(lines).strip()

    @staticmethod
    def _title(event_type: str) -> tuple[str, str]:
        """Get the emoji and title for the given event type."""
        mapping = {
            PURCHASE_COMPLETED: ("💰", "Sale Completed"),
            INDEXER_STARTED: ("▶️", "Indexer Started"),
            INDEXER_STOPPED: ("⏹️", "Indexer Stopped"),
        }
        return mapping.get(event_type, ("ℹ️", event_type.replace("_", " ").title()))

    @staticmethod
    def _format_usdc(value: Any) -> str | None:
        """Format base units as USDC (6 decimals), e.g. 12500000 -> '12.50 USDC'."""
        if value is None:
            return None
        try:
            amount = Decimal(str(value)) / (Decimal(10) ** USDC_DECIMALS)
        except ArithmeticError:
            return str(value)
        return f"{amount:,.2f} USDC"

    @staticmethod
    def _bold(text: str, html: bool) -> str:
        return f"<b>{text}</b>" if html else text

    @classmethod
    def _label(cls, label: str, html: bool) -> str:
        """Format row labels: '<emoji> <b>Name:</b>' in HTML, 'Name:' in plain text."""
        emoji, _, remainder = label.partition(" ")
        if not remainder:
            return cls._bold(f"{label}:", html)
        if html:
            return f"{emoji} <b>{remainder}:</b>"
        return f"{remainder}:"
