"""Abstract interface for the event ledger (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from marketplace_indexer.models.event_log import EventLog


class IEventLogRepository(ABC):
    """Interface for the append-only EventLog ledger. (tx_hash, log_index) is unique."""

    @abstractmethod
    async def get(self, tx_hash: str, log_index: int) -> Optional[EventLog]:
        """Return the entry for (tx_hash, log_index), or None."""
        ...

    @abstractmethod
    async def insert(self, entry: EventLog) -> EventLog:
        """Append an entry and return it with its id.

        Raises:
            DuplicateKeyError: An entry with the same (tx_hash, log_index) exists.
        """
        ...

    @abstractmethod
    async def mark_processed(self, tx_hash: str, log_index: int) -> EventLog:
        """Flip a failed entry to processed=True, clearing its error, and return it.

        Raises:
            DuplicateKeyError: No failed entry for (tx_hash, log_index); it is missing
                or another writer already processed it.
        """
        ...

    @abstractmethod
    async def latest_by_block(self) -> Optional[EventLog]:
        """Return the entry with the highest block_number, or None if the ledger is empty."""
        ...

    @abstractmethod
    async def latest_by_created_at(self) -> Optional[EventLog]:
        """Return the most recently created entry, or None if the ledger is empty."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Return the number of entries."""
        ...

    async def exists(self, tx_hash: str, log_index: int) -> bool:
        """Return True if (tx_hash, log_index) has an entry (processed or failed)."""
        return await self.get(tx_hash, log_index) is not None
