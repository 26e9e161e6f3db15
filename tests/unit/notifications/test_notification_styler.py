# -*- coding: utf-8 -*-
"""Unit tests for EventNotificationStyler."""

from __future__ import annotations

from marketplace_indexer.notifications.stylers import EventNotificationStyler
from marketplace_indexer.notifications.types import (
    INDEXER_STARTED,
    PURCHASE_COMPLETED,
    NotificationMessage,
)


def _purchase_message() -> NotificationMessage:
    return NotificationMessage(
        event_type=PURCHASE_COMPLETED,
        message="Seller 0xSeller notified for purchase p-1",
        payload={
            "seller": "0xSeller",
            "purchase_id": "p-1",
            "listing_id": 7,
            "amount_usdc": 12_500_000,
            "tx_hash": "0xtx",
        },
        recipient="0xSeller",
    )


def test_render_purchase_plain_text() -> None:
    text = EventNotificationStyler().render(_purchase_message())

    lines = text.splitlines()
    assert lines[0] == "💰 Sale Completed"
    assert lines[1] == "Seller 0xSeller notified for purchase p-1"
    assert "Seller: 0xSeller" in lines
    assert "Amount: 12.50 USDC" in lines
    assert "Transaction: 0xtx" in lines
    assert "<b>" not in text


def test_render_purchase_html_bolds_labels() -> None:
    text = EventNotificationStyler().render(_purchase_message(), parse_html=True)

    assert text.startswith("<b>💰 Sale Completed</b>")
    assert "🧾 <b>Purchase:</b> p-1" in text


def test_render_omits_missing_rows() -> None:
    message = NotificationMessage(
        event_type=PURCHASE_COMPLETED,
        message="m",
        payload={"purchase_id": "p-1"},
    )

    text = EventNotificationStyler().render(message)

    assert "Buyer:" not in text
    assert "Block:" not in text


def test_render_status_includes_contract() -> None:
    message = NotificationMessage(
        event_type=INDEXER_STARTED,
        message="Purchase indexer started",
        payload={"contract_address": "0xabc"},
    )

    text = EventNotificationStyler().render(message)

    assert text.splitlines()[0] == "▶️ Indexer Started"
    assert "Contract: 0xabc" in text


def test_render_unknown_event_lists_payload_keys() -> None:
    message = NotificationMessage(event_type="custom_event", message="hi", payload={"b": 2, "a": 1})

    text = EventNotificationStyler().render(message)

    assert text.splitlines() == ["ℹ️ Custom Event", "hi", "a: 1", "b: 2"]
