# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, sql)."""

from marketplace_indexer.persistence.repositories.interfaces import (
    IEventLogRepository,
    IIndexStore,
    IListingRepository,
    IPurchaseRepository,
    TransactionScope,
)
from marketplace_indexer.persistence.repositories.in_memory import InMemoryIndexStore
from marketplace_indexer.persistence.repositories.sql import SqlIndexStore

__all__ = [
    "IEventLogRepository",
    "IIndexStore",
    "IListingRepository",
    "IPurchaseRepository",
    "InMemoryIndexStore",
    "SqlIndexStore",
    "TransactionScope",
]
