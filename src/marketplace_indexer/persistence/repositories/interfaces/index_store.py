"""Abstract store: repositories plus an explicit transaction boundary."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from marketplace_indexer.persistence.repositories.interfaces.event_log_repository import (
    IEventLogRepository,
)
from marketplace_indexer.persistence.repositories.interfaces.listing_repository import (
    IListingRepository,
)
from marketplace_indexer.persistence.repositories.interfaces.purchase_repository import (
    IPurchaseRepository,
)

T = TypeVar("T")


@dataclass(frozen=True)
class TransactionScope:
    """Repository handles bound to one transaction. Valid only inside with_transaction."""

    listings: IListingRepository
    purchases: IPurchaseRepository
    event_logs: IEventLogRepository


class IIndexStore(ABC):
    """Everything the indexer persists, behind one interface.

    The plain repository properties run each call in its own unit of work.
    with_transaction() runs fn against transactional handles: all writes made
    through the scope commit together when fn returns, or none of them persist
    when fn raises.
    """

    @property
    @abstractmethod
    def listings(self) -> IListingRepository: ...

    @property
    @abstractmethod
    def purchases(self) -> IPurchaseRepository: ...

    @property
    @abstractmethod
    def event_logs(self) -> IEventLogRepository: ...

    @abstractmethod
    async def with_transaction(self, fn: Callable[[TransactionScope], Awaitable[T]]) -> T:
        """Run fn in one atomic transaction and return its result.

        Raises:
            DuplicateKeyError: A uniqueness constraint rejected a write; nothing persisted.
            Exception: Whatever fn raised; nothing persisted.
        """
        ...

    async def initialize(self) -> None:
        """Prepare storage (create tables, etc.). Default: nothing to do."""
        return None

    async def aclose(self) -> None:
        """Release connections. Default: nothing to do."""
        return None
