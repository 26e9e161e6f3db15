"""Marketplace purchase indexer: PurchaseCompleted events from chain logs into the purchase store."""

from marketplace_indexer.chain import IChainLogSource, RpcChainLogSource
from marketplace_indexer.config import get_settings
from marketplace_indexer.DI import Container
from marketplace_indexer.services import (
    BackfillRunner,
    EventProcessor,
    HealthMonitor,
    PurchasePoller,
)

__version__ = "0.1.0"
__all__ = [
    "BackfillRunner",
    "Container",
    "EventProcessor",
    "HealthMonitor",
    "IChainLogSource",
    "PurchasePoller",
    "RpcChainLogSource",
    "get_settings",
]
