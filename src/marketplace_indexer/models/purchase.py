"""Purchase: one completed on-chain sale, keyed by transaction hash.

Only the event processor creates purchases; nothing in this package deletes them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Purchase:
    """Purchase record. Natural key: tx_hash (unique)."""

    id: str
    listing_id: str
    """Internal Listing.id (not the on-chain id)."""
    buyer_address: str
    tx_hash: str
    amount_usdc: int
    """Amount paid in USDC base units."""
    tx_verified: bool
    block_number: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        listing_id: str,
        buyer_address: str,
        tx_hash: str,
        amount_usdc: int,
        block_number: int,
        tx_verified: bool = True,
        id: str | None = None,
        created_at: datetime | None = None,
    ) -> Purchase:
        """Create a purchase confirmed by an indexed event."""
        if not tx_hash.strip():
            raise ValueError("tx_hash must be non-empty")
        if amount_usdc < 0:
            raise ValueError("amount_usdc must be non-negative")
        now = created_at or datetime.now(UTC)
        return cls(
            id=id or str(uuid4()),
            listing_id=listing_id,
            buyer_address=buyer_address,
            tx_hash=tx_hash.strip(),
            amount_usdc=amount_usdc,
            tx_verified=tx_verified,
            block_number=block_number,
            created_at=now,
            updated_at=now,
        )
