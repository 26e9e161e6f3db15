"""Abstract interface for purchase storage (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from marketplace_indexer.models.purchase import Purchase


class IPurchaseRepository(ABC):
    """Interface for persisting Purchase keyed by transaction hash."""

    @abstractmethod
    async def get_by_tx_hash(self, tx_hash: str) -> Optional[Purchase]:
        """Return the purchase for tx_hash, or None."""
        ...

    @abstractmethod
    async def upsert(self, purchase: Purchase) -> Purchase:
        """Insert purchase unless one exists for its tx_hash; return the stored row.

        Idempotent: when a row exists it is returned unchanged.
        """
        ...

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored purchases."""
        ...
