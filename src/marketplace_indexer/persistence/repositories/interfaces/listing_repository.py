"""Abstract interface for listing lookups (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from marketplace_indexer.models.listing import Listing


class IListingRepository(ABC):
    """Read access to listings by on-chain id. Listings are owned by the API layer."""

    @abstractmethod
    async def get_by_onchain_id(self, onchain_id: int) -> Optional[Listing]:
        """Return the listing with this on-chain id, or None if missing."""
        ...

    @abstractmethod
    async def save(self, listing: Listing) -> None:
        """Insert or update a listing (by id). Used for seeding; the indexer never calls it."""
        ...
