"""SQLAlchemy repository implementations."""

from marketplace_indexer.persistence.repositories.sql.index_store import (
    SqlEventLogRepository,
    SqlIndexStore,
    SqlListingRepository,
    SqlPurchaseRepository,
    create_engine,
)
from marketplace_indexer.persistence.repositories.sql.models import (
    Base,
    EventLogRow,
    ListingRow,
    PurchaseRow,
)

__all__ = [
    "Base",
    "EventLogRow",
    "ListingRow",
    "PurchaseRow",
    "SqlEventLogRepository",
    "SqlIndexStore",
    "SqlListingRepository",
    "SqlPurchaseRepository",
    "create_engine",
]
