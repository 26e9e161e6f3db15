# -*- coding: utf-8 -*-
"""Unit tests for BackfillRunner (live and dry-run)."""

from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any, cast
from unittest.mock import AsyncMock

import pytest

from marketplace_indexer.config import Settings
from marketplace_indexer.exceptions import InvalidRange, ListingNotFound, TransientSourceError
from marketplace_indexer.models.listing import Listing
from marketplace_indexer.models.raw_log import RawLog
from marketplace_indexer.persistence.repositories.in_memory import InMemoryIndexStore
from marketplace_indexer.services.backfill import BackfillRunner
from marketplace_indexer.services.event_processor import (
    EventProcessor,
    ProcessOutcome,
    ProcessResult,
)


def _runner(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    sleep: Callable[[float], Any],
) -> BackfillRunner:
    return BackfillRunner(log_source, EventProcessor(store, log_source), settings, sleep=sleep)


async def test_empty_range_reports_blocks_scanned_only(
    store: InMemoryIndexStore, log_source: Any, settings: Settings, no_sleep: Any
) -> None:
    report = await _runner(store, log_source, settings, no_sleep).backfill(1000, 2000)

    assert report.blocks_scanned == 1001
    assert report.events_found == 0
    assert report.events_created == 0
    assert report.events_skipped == 0
    assert report.events_failed == 0
    assert report.events == []
    assert log_source.fetch_calls == [(1000, 1999), (2000, 2000)]


async def test_inverted_range_raises_before_any_fetch(
    store: InMemoryIndexStore, log_source: Any, settings: Settings, no_sleep: Any
) -> None:
    with pytest.raises(InvalidRange):
        await _runner(store, log_source, settings, no_sleep).backfill(200, 100)

    assert log_source.fetch_calls == []


async def test_negative_start_raises_before_any_fetch(
    store: InMemoryIndexStore, log_source: Any, settings: Settings, no_sleep: Any
) -> None:
    with pytest.raises(InvalidRange):
        await _runner(store, log_source, settings, no_sleep).backfill(-1, 10)

    assert log_source.fetch_calls == []


async def test_live_backfill_indexes_then_replay_skips(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    raw = raw_log_factory(block_number=1500)
    log_source.logs = [raw]
    runner = _runner(store, log_source, settings, no_sleep)

    first = await runner.backfill(1000, 2000)
    replay = await runner.backfill(1000, 2000)

    assert first.events_created == 1
    assert first.events[0].status == "created"
    assert first.events[0].listing_id == 7
    assert replay.events_created == 0
    assert replay.events_skipped == 1
    assert replay.events[0].status == "skipped"
    assert await store.purchases.count() == 1


async def test_live_backfill_continues_past_failures(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    bad = raw_log_factory(block_number=1100, listing_id=99)
    good = raw_log_factory(block_number=1200)
    log_source.logs = [bad, good]

    report = await _runner(store, log_source, settings, no_sleep).backfill(1000, 2000)

    assert report.events_found == 2
    assert report.events_failed == 1
    assert report.events_created == 1
    assert [e.status for e in report.events] == ["error", "created"]
    assert report.failed_events[0].error is not None
    assert "LISTING_NOT_FOUND" in report.failed_events[0].error
    failed_row = await store.event_logs.get(bad.transaction_hash or "", 0)
    assert failed_row is not None and failed_row.processed is False


async def test_malformed_logs_are_counted_and_skipped(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    log_source.logs = [
        raw_log_factory(block_number=1100, log_index=None),
        raw_log_factory(block_number=1101, removed=True),
    ]

    report = await _runner(store, log_source, settings, no_sleep).backfill(1000, 2000)

    assert report.events_found == 2
    assert report.events_malformed == 2
    assert report.events == []
    assert await store.event_logs.count() == 0


async def test_dry_run_reports_without_writing(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    indexed = raw_log_factory(block_number=1100)
    fresh = raw_log_factory(block_number=1200, amount_usdc=3_000_000)
    undecodable = raw_log_factory(block_number=1300, data="0x1234")
    runner = _runner(store, log_source, settings, no_sleep)
    log_source.logs = [indexed]
    await runner.backfill(1000, 2000)
    log_source.logs = [indexed, fresh, undecodable]

    report = await runner.backfill(1000, 2000, dry_run=True)

    assert report.dry_run is True
    assert report.events_skipped == 1
    assert report.events_created == 1
    assert report.events_failed == 1
    assert [e.status for e in report.events] == ["skipped", "created", "error"]
    assert report.events[1].amount_usdc == 3_000_000
    assert await store.event_logs.count() == 1
    assert await store.purchases.count() == 1


async def test_fetch_errors_are_retried_then_surface(
    store: InMemoryIndexStore, log_source: Any, settings: Settings, no_sleep: Any
) -> None:
    log_source.fetch_errors = [TransientSourceError("503") for _ in range(3)]

    with pytest.raises(TransientSourceError):
        await _runner(store, log_source, settings, no_sleep).backfill(1000, 2000)

    assert len(log_source.fetch_calls) == 3
    assert no_sleep.delays == [1.0, 2.0]


async def test_report_to_dict_uses_camel_case(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    log_source.logs = [raw_log_factory(block_number=1500, amount_usdc=42)]

    report = await _runner(store, log_source, settings, no_sleep).backfill(1000, 2000)
    data = report.to_dict()

    assert data["fromBlock"] == 1000
    assert data["blocksScanned"] == 1001
    assert data["eventsCreated"] == 1
    assert data["events"][0]["listingId"] == "7"
    assert data["events"][0]["amountUsdc"] == "42"
    assert "error" not in data["events"][0]


async def test_live_backfill_repairs_previously_failed_event(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
    seller: str,
) -> None:
    raw = raw_log_factory(block_number=1001, listing_id=99)
    log_source.logs = [raw]
    runner = _runner(store, log_source, settings, no_sleep)
    first = await runner.backfill(1001, 1001)
    await store.listings.save(Listing.create(99, seller, title="Late listing"))

    repair = await runner.backfill(1001, 1001)

    assert first.events_failed == 1
    assert repair.events_created == 1
    assert repair.events_skipped == 0
    assert await store.purchases.get_by_tx_hash(raw.transaction_hash or "") is not None
    entry = await store.event_logs.get(raw.transaction_hash or "", 0)
    assert entry is not None and entry.processed is True


async def test_dry_run_reports_failed_event_as_would_create(
    store: InMemoryIndexStore,
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    log_source.logs = [raw_log_factory(block_number=1001, listing_id=99)]
    runner = _runner(store, log_source, settings, no_sleep)
    await runner.backfill(1001, 1001)

    report = await runner.backfill(1001, 1001, dry_run=True)

    assert report.events_created == 1
    assert report.events_skipped == 0


async def test_failure_row_write_error_keeps_original_error_and_run_continues(
    log_source: Any,
    settings: Settings,
    no_sleep: Any,
    raw_log_factory: Callable[..., RawLog],
) -> None:
    bad = raw_log_factory(block_number=1100)
    good = raw_log_factory(block_number=1200)
    log_source.logs = [bad, good]
    processor = SimpleNamespace(
        process=AsyncMock(
            side_effect=[
                ListingNotFound(99),
                ProcessResult(ProcessOutcome.CREATED),
            ]
        ),
        record_failure=AsyncMock(side_effect=RuntimeError("database is locked")),
    )
    runner = BackfillRunner(log_source, cast(Any, processor), settings, sleep=no_sleep)

    report = await runner.backfill(1000, 2000)

    assert report.events_failed == 1
    assert report.events_created == 1
    assert report.failed_events[0].error is not None
    assert "LISTING_NOT_FOUND" in report.failed_events[0].error
    processor.record_failure.assert_awaited_once()
