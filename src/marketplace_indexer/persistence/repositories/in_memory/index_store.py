# -*- coding: utf-8 -*-
"""In-memory index store with snapshot/rollback transactions.

Uniqueness mirrors the SQL schema: purchases by tx_hash, event logs by
(tx_hash, log_index). Transactions are serialized by one asyncio.Lock; on error
the state is restored from the snapshot taken at begin.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import AsyncIterator, Optional, TypeVar

from marketplace_indexer.exceptions import DuplicateKeyError
from marketplace_indexer.models.event_log import EventLog
from marketplace_indexer.models.listing import Listing
from marketplace_indexer.models.purchase import Purchase
from marketplace_indexer.persistence.repositories.interfaces import (
    IEventLogRepository,
    IIndexStore,
    IListingRepository,
    IPurchaseRepository,
    TransactionScope,
)
from marketplace_indexer.utils.dedupe import event_key

T = TypeVar("T")


@dataclass
class _State:
    listings: dict[int, Listing] = field(default_factory=dict)
    purchases: dict[str, Purchase] = field(default_factory=dict)
    event_logs: dict[tuple[str, int], EventLog] = field(default_factory=dict)
    next_event_log_id: int = 1
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def snapshot(self) -> tuple[dict[int, Listing], dict[str, Purchase], dict[tuple[str, int], EventLog], int]:
        return (
            dict(self.listings),
            dict(self.purchases),
            dict(self.event_logs),
            self.next_event_log_id,
        )

    def restore(
        self,
        snap: tuple[dict[int, Listing], dict[str, Purchase], dict[tuple[str, int], EventLog], int],
    ) -> None:
        self.listings, self.purchases, self.event_logs, self.next_event_log_id = snap


class _Repository:
    """Shared plumbing: outside a transaction each write takes the store lock."""

    def __init__(self, state: _State, *, in_transaction: bool) -> None:
        self._state = state
        self._in_transaction = in_transaction

    @asynccontextmanager
    async def _write(self) -> AsyncIterator[None]:
        if self._in_transaction:
            yield
            return
        async with self._state.lock:
            yield


class InMemoryListingRepository(_Repository, IListingRepository):
    """In-memory implementation of IListingRepository."""

    async def get_by_onchain_id(self, onchain_id: int) -> Optional[Listing]:
        return self._state.listings.get(onchain_id)

    async def save(self, listing: Listing) -> None:
        async with self._write():
            self._state.listings[listing.onchain_id] = listing


class InMemoryPurchaseRepository(_Repository, IPurchaseRepository):
    """In-memory implementation of IPurchaseRepository (keyed by lowercased tx_hash)."""

    async def get_by_tx_hash(self, tx_hash: str) -> Optional[Purchase]:
        return self._state.purchases.get(tx_hash.strip().lower())

    async def upsert(self, purchase: Purchase) -> Purchase:
        async with self._write():
            k = purchase.tx_hash.strip().lower()
            existing = self._state.purchases.get(k)
            if existing is not None:
                return existing
            self._state.purchases[k] = purchase
            return purchase

    async def count(self) -> int:
        return len(self._state.purchases)


class InMemoryEventLogRepository(_Repository, IEventLogRepository):
    """In-memory implementation of IEventLogRepository."""

    async def get(self, tx_hash: str, log_index: int) -> Optional[EventLog]:
        return self._state.event_logs.get(event_key(tx_hash, log_index))

    async def insert(self, entry: EventLog) -> EventLog:
        async with self._write():
            k = event_key(entry.tx_hash, entry.log_index)
            if k in self._state.event_logs:
                raise DuplicateKeyError("event_log", k)
            stored = entry.with_id(self._state.next_event_log_id)
            self._state.next_event_log_id += 1
            self._state.event_logs[k] = stored
            return stored

    async def mark_processed(self, tx_hash: str, log_index: int) -> EventLog:
        async with self._write():
            k = event_key(tx_hash, log_index)
            existing = self._state.event_logs.get(k)
            if existing is None or existing.processed:
                raise DuplicateKeyError("event_log", k)
            updated = replace(existing, processed=True, error=None)
            self._state.event_logs[k] = updated
            return updated

    async def latest_by_block(self) -> Optional[EventLog]:
        if not self._state.event_logs:
            return None
        return max(
            self._state.event_logs.values(),
            key=lambda e: (e.block_number, e.id or 0),
        )

    async def latest_by_created_at(self) -> Optional[EventLog]:
        if not self._state.event_logs:
            return None
        return max(
            self._state.event_logs.values(),
            key=lambda e: (e.created_at, e.id or 0),
        )

    async def count(self) -> int:
        return len(self._state.event_logs)


class InMemoryIndexStore(IIndexStore):
    """In-memory implementation of IIndexStore. Process-local; used by tests and dry runs."""

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._state = _State()
        self._listings = InMemoryListingRepository(self._state, in_transaction=False)
        self._purchases = InMemoryPurchaseRepository(self._state, in_transaction=False)
        self._event_logs = InMemoryEventLogRepository(self._state, in_transaction=False)

    @property
    def listings(self) -> InMemoryListingRepository:
        return self._listings

    @property
    def purchases(self) -> InMemoryPurchaseRepository:
        return self._purchases

    @property
    def event_logs(self) -> InMemoryEventLogRepository:
        return self._event_logs

    def _transaction_scope(self) -> TransactionScope:
        """Build the handles passed to with_transaction callbacks."""
        return TransactionScope(
            listings=InMemoryListingRepository(self._state, in_transaction=True),
            purchases=InMemoryPurchaseRepository(self._state, in_transaction=True),
            event_logs=InMemoryEventLogRepository(self._state, in_transaction=True),
        )

    async def with_transaction(self, fn: Callable[[TransactionScope], Awaitable[T]]) -> T:
        async with self._state.lock:
            snap = self._state.snapshot()
            try:
                return await fn(self._transaction_scope())
            except BaseException:
                self._state.restore(snap)
                raise
