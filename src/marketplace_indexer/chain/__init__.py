"""Chain boundary: event definitions, decoding and the log source."""

from marketplace_indexer.chain.events import (
    PURCHASE_COMPLETED,
    PURCHASE_COMPLETED_SIGNATURE,
    PURCHASE_COMPLETED_TOPIC,
    DecodedEvent,
    PurchaseCompletedEvent,
    decode_event,
    event_topic,
)
from marketplace_indexer.chain.log_source import IChainLogSource, RpcChainLogSource

__all__ = [
    "PURCHASE_COMPLETED",
    "PURCHASE_COMPLETED_SIGNATURE",
    "PURCHASE_COMPLETED_TOPIC",
    "DecodedEvent",
    "IChainLogSource",
    "PurchaseCompletedEvent",
    "RpcChainLogSource",
    "decode_event",
    "event_topic",
]
