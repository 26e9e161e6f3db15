# -*- coding: utf-8 -*-
"""SqlIndexStore against an in-memory SQLite database (aiosqlite)."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta

import pytest

from marketplace_indexer.chain.log_source import IChainLogSource
from marketplace_indexer.exceptions import DuplicateKeyError
from marketplace_indexer.models.event_log import EventLog
from marketplace_indexer.models.listing import Listing
from marketplace_indexer.models.purchase import Purchase
from marketplace_indexer.models.raw_log import RawLog
from marketplace_indexer.persistence.repositories.interfaces import TransactionScope
from marketplace_indexer.persistence.repositories.sql import SqlIndexStore
from marketplace_indexer.services.event_processor import EventProcessor, ProcessOutcome


@pytest.fixture
async def sql_store(listing: Listing) -> AsyncIterator[SqlIndexStore]:
    """Fresh SQLite in-memory store with the default listing."""
    store = SqlIndexStore.from_url("sqlite+aiosqlite:///:memory:")
    await store.initialize()
    await store.listings.save(listing)
    yield store
    await store.aclose()


def _purchase(tx_hash: str = "0xaa", amount: int = 100) -> Purchase:
    return Purchase.create(
        listing_id="listing-1",
        buyer_address="0xbuyer",
        tx_hash=tx_hash,
        amount_usdc=amount,
        block_number=10,
    )


def _entry(tx_hash: str = "0xaa", log_index: int = 0, block: int = 10, **kw: object) -> EventLog:
    return EventLog.processed_entry("PurchaseCompleted", tx_hash, log_index, block, **kw)  # type: ignore[arg-type]


async def test_listing_round_trip(sql_store: SqlIndexStore, listing: Listing) -> None:
    stored = await sql_store.listings.get_by_onchain_id(7)

    assert stored is not None
    assert stored.id == listing.id
    assert stored.seller_address == listing.seller_address
    assert stored.price_usdc == 12_500_000
    assert stored.created_at is not None and stored.created_at.tzinfo is not None
    assert await sql_store.listings.get_by_onchain_id(8) is None


async def test_purchase_amount_keeps_uint256_precision(sql_store: SqlIndexStore) -> None:
    amount = 2**200 + 1
    await sql_store.purchases.upsert(_purchase("0xBIG", amount=amount))

    stored = await sql_store.purchases.get_by_tx_hash("0xbig")

    assert stored is not None
    assert stored.amount_usdc == amount


async def test_purchase_upsert_is_noop_when_tx_exists(sql_store: SqlIndexStore) -> None:
    first = await sql_store.purchases.upsert(_purchase(amount=1))
    second = await sql_store.purchases.upsert(_purchase(amount=2))

    assert second.id == first.id
    assert second.amount_usdc == 1
    assert await sql_store.purchases.count() == 1


async def test_event_log_unique_on_tx_hash_and_log_index(sql_store: SqlIndexStore) -> None:
    stored = await sql_store.event_logs.insert(_entry("0xAA", 0))
    await sql_store.event_logs.insert(_entry("0xaa", 1))

    assert stored.id is not None
    assert stored.tx_hash == "0xaa"
    with pytest.raises(DuplicateKeyError):
        await sql_store.event_logs.insert(_entry("0xaa", 0))
    assert await sql_store.event_logs.count() == 2
    assert await sql_store.event_logs.exists("0xAA", 1) is True


async def test_latest_queries(sql_store: SqlIndexStore, now_utc: datetime) -> None:
    await sql_store.event_logs.insert(_entry("0xa", 0, block=30, created_at=now_utc - timedelta(hours=1)))
    await sql_store.event_logs.insert(_entry("0xb", 0, block=10, created_at=now_utc))

    by_block = await sql_store.event_logs.latest_by_block()
    by_time = await sql_store.event_logs.latest_by_created_at()

    assert by_block is not None and by_block.block_number == 30
    assert by_time is not None and by_time.block_number == 10
    assert by_time.created_at == now_utc


async def test_transaction_rolls_back_on_duplicate_ledger_row(sql_store: SqlIndexStore) -> None:
    await sql_store.event_logs.insert(_entry("0xaa", 0))

    async def write(scope: TransactionScope) -> None:
        await scope.purchases.upsert(_purchase("0xaa"))
        await scope.event_logs.insert(_entry("0xaa", 0))

    with pytest.raises(DuplicateKeyError):
        await sql_store.with_transaction(write)

    assert await sql_store.purchases.count() == 0
    assert await sql_store.event_logs.count() == 1


async def test_transaction_rolls_back_on_any_error(sql_store: SqlIndexStore) -> None:
    async def write(scope: TransactionScope) -> None:
        await scope.purchases.upsert(_purchase())
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await sql_store.with_transaction(write)

    assert await sql_store.purchases.count() == 0


class _DecodeOnly(IChainLogSource):
    async def current_height(self) -> int:
        raise AssertionError("not used")

    async def fetch_logs(self, *args: object) -> list[RawLog]:
        raise AssertionError("not used")


async def test_processor_is_idempotent_on_sql_store(
    sql_store: SqlIndexStore,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    processor = EventProcessor(sql_store, _DecodeOnly())
    raw = raw_log_factory(block_number=1500)

    first = await processor.process(raw)
    second = await processor.process(raw)

    assert first.outcome is ProcessOutcome.CREATED
    assert second.outcome is ProcessOutcome.DUPLICATE
    assert await sql_store.purchases.count() == 1
    entry = await sql_store.event_logs.get(raw.transaction_hash or "", 0)
    assert entry is not None and entry.processed is True and entry.block_number == 1500


async def test_mark_processed_flips_only_failed_entries(sql_store: SqlIndexStore) -> None:
    await sql_store.event_logs.insert(
        EventLog.failed_entry("PurchaseCompleted", "0xAA", 0, 10, "LISTING_NOT_FOUND")
    )
    await sql_store.event_logs.insert(_entry("0xbb", 0))

    updated = await sql_store.event_logs.mark_processed("0xaa", 0)

    assert updated.processed is True
    assert updated.error is None
    stored = await sql_store.event_logs.get("0xaa", 0)
    assert stored is not None and stored.processed is True
    with pytest.raises(DuplicateKeyError):
        await sql_store.event_logs.mark_processed("0xaa", 0)
    with pytest.raises(DuplicateKeyError):
        await sql_store.event_logs.mark_processed("0xbb", 0)


async def test_processor_retry_failed_repairs_row_in_sql_store(
    sql_store: SqlIndexStore,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    processor = EventProcessor(sql_store, _DecodeOnly())
    raw = raw_log_factory(block_number=42)
    await processor.record_failure(raw, RuntimeError("rpc hiccup"))

    result = await processor.process(raw, retry_failed=True)

    assert result.outcome is ProcessOutcome.CREATED
    assert await sql_store.event_logs.count() == 1
    assert await sql_store.purchases.count() == 1
