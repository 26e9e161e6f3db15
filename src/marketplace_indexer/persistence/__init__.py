"""Persistence layer (repositories, stores)."""

from marketplace_indexer.persistence.repositories import (
    IEventLogRepository,
    IIndexStore,
    IListingRepository,
    IPurchaseRepository,
    InMemoryIndexStore,
    SqlIndexStore,
    TransactionScope,
)

__all__ = [
    "IEventLogRepository",
    "IIndexStore",
    "IListingRepository",
    "IPurchaseRepository",
    "InMemoryIndexStore",
    "SqlIndexStore",
    "TransactionScope",
]
