# -*- coding: utf-8 -*-
"""Unit tests for CursorResolver."""

from __future__ import annotations

from marketplace_indexer.models.event_log import EventLog
from marketplace_indexer.persistence.repositories.in_memory import InMemoryIndexStore
from marketplace_indexer.services.cursor import CursorResolver


async def test_cold_start_begins_window_behind_confirmed_height() -> None:
    store = InMemoryIndexStore()
    cursor = CursorResolver(store.event_logs, cold_start_window=5)

    assert await cursor.resolve_from_block(5200) == 5195


async def test_cold_start_is_clamped_to_genesis() -> None:
    store = InMemoryIndexStore()
    cursor = CursorResolver(store.event_logs, cold_start_window=5)

    assert await cursor.resolve_from_block(3) == 0


async def test_resumes_at_highest_ledgered_block_not_after_it() -> None:
    store = InMemoryIndexStore()
    await store.event_logs.insert(EventLog.processed_entry("PurchaseCompleted", "0xa", 0, 120))
    await store.event_logs.insert(EventLog.processed_entry("PurchaseCompleted", "0xb", 1, 150))
    await store.event_logs.insert(EventLog.processed_entry("PurchaseCompleted", "0xc", 0, 130))
    cursor = CursorResolver(store.event_logs)

    assert await cursor.resolve_from_block(5200) == 150


async def test_failed_rows_also_move_the_cursor() -> None:
    store = InMemoryIndexStore()
    await store.event_logs.insert(
        EventLog.failed_entry("PurchaseCompleted", "0xa", 0, 180, "LISTING_NOT_FOUND")
    )
    cursor = CursorResolver(store.event_logs)

    assert await cursor.resolve_from_block(5200) == 180


async def test_resolve_never_writes() -> None:
    store = InMemoryIndexStore()
    cursor = CursorResolver(store.event_logs)

    await cursor.resolve_from_block(100)

    assert await store.event_logs.count() == 0
