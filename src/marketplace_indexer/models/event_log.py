"""EventLog: dedup and audit ledger entry.

Identity is (tx_hash, log_index). One row per observed event, written once:
processed=True when the purchase write committed, processed=False with error text
when processing failed. Correlated with Purchase only through tx_hash.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True)
class EventLog:
    """Immutable ledger row."""

    event_type: str
    tx_hash: str
    log_index: int
    block_number: int
    processed: bool
    created_at: datetime
    error: str | None = None
    id: int | None = None
    """Store-assigned surrogate id (None until persisted)."""

    @classmethod
    def processed_entry(
        cls,
        event_type: str,
        tx_hash: str,
        log_index: int,
        block_number: int,
        *,
        created_at: datetime | None = None,
    ) -> EventLog:
        """Entry for an event whose purchase write committed."""
        return cls(
            event_type=event_type,
            tx_hash=tx_hash,
            log_index=log_index,
            block_number=block_number,
            processed=True,
            created_at=created_at or datetime.now(UTC),
        )

    @classmethod
    def failed_entry(
        cls,
        event_type: str,
        tx_hash: str,
        log_index: int,
        block_number: int,
        error: str,
        *,
        created_at: datetime | None = None,
    ) -> EventLog:
        """Entry for an event that could not be processed (kept for operators)."""
        return cls(
            event_type=event_type,
            tx_hash=tx_hash,
            log_index=log_index,
            block_number=block_number,
            processed=False,
            error=error,
            created_at=created_at or datetime.now(UTC),
        )

    def with_id(self, id: int) -> EventLog:
        """Return a copy carrying the store-assigned id."""
        return EventLog(
            event_type=self.event_type,
            tx_hash=self.tx_hash,
            log_index=self.log_index,
            block_number=self.block_number,
            processed=self.processed,
            created_at=self.created_at,
            error=self.error,
            id=id,
        )
