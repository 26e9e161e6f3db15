"""Listing: marketplace entity owned by the API layer; read here by on-chain id."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Listing:
    """A dataset listing. The indexer only resolves onchain_id -> id."""

    id: str
    onchain_id: int
    """Listing id as emitted by the marketplace contract."""
    seller_address: str
    title: str = ""
    price_usdc: int = 0
    """Price in USDC base units (6 decimals)."""
    created_at: datetime | None = None

    @classmethod
    def create(
        cls,
        onchain_id: int,
        seller_address: str,
        *,
        title: str = "",
        price_usdc: int = 0,
        id: str | None = None,
        created_at: datetime | None = None,
    ) -> Listing:
        """Create a new listing (used by seeding and tests)."""
        if onchain_id < 0:
            raise ValueError("onchain_id must be non-negative")
        return cls(
            id=id or str(uuid4()),
            onchain_id=onchain_id,
            seller_address=seller_address.strip(),
            title=title,
            price_usdc=price_usdc,
            created_at=created_at or datetime.now(UTC),
        )
