"""In-memory repository implementations."""

from marketplace_indexer.persistence.repositories.in_memory.index_store import (
    InMemoryEventLogRepository,
    InMemoryIndexStore,
    InMemoryListingRepository,
    InMemoryPurchaseRepository,
)

__all__ = [
    "InMemoryEventLogRepository",
    "InMemoryIndexStore",
    "InMemoryListingRepository",
    "InMemoryPurchaseRepository",
]
