# -*- coding: utf-8 -*-
"""Application services."""

from marketplace_indexer.services.backfill import (
    BackfillEventDetail,
    BackfillReport,
    BackfillRunner,
)
from marketplace_indexer.services.chunking import BlockRange, block_chunks
from marketplace_indexer.services.confirmation import confirmed_height
from marketplace_indexer.services.cursor import CursorResolver
from marketplace_indexer.services.event_processor import (
    EventProcessor,
    Inspection,
    ProcessOutcome,
    ProcessResult,
)
from marketplace_indexer.services.health import HealthMonitor, ListenerHealth
from marketplace_indexer.services.notifications import SaleNotifier
from marketplace_indexer.services.poller import (
    PollCycleResult,
    PollerState,
    PollSchedule,
    PurchasePoller,
)

__all__ = [
    "BackfillEventDetail",
    "BackfillReport",
    "BackfillRunner",
    "BlockRange",
    "block_chunks",
    "confirmed_height",
    "CursorResolver",
    "EventProcessor",
    "HealthMonitor",
    "Inspection",
    "ListenerHealth",
    "PollCycleResult",
    "PollerState",
    "PollSchedule",
    "ProcessOutcome",
    "ProcessResult",
    "PurchasePoller",
    "SaleNotifier",
]
