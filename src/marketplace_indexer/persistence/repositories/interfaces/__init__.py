# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/ and sql/."""

from marketplace_indexer.persistence.repositories.interfaces.event_log_repository import (
    IEventLogRepository,
)
from marketplace_indexer.persistence.repositories.interfaces.index_store import (
    IIndexStore,
    TransactionScope,
)
from marketplace_indexer.persistence.repositories.interfaces.listing_repository import (
    IListingRepository,
)
from marketplace_indexer.persistence.repositories.interfaces.purchase_repository import (
    IPurchaseRepository,
)

__all__ = [
    "IEventLogRepository",
    "IIndexStore",
    "IListingRepository",
    "IPurchaseRepository",
    "TransactionScope",
]
