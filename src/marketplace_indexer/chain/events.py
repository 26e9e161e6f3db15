"""Marketplace contract events and their decoders.

Logs are decoded once, here, into tagged dataclasses. Everything downstream works
with DecodedEvent and switches on ``event.name`` instead of inspecting raw topics.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, Union

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak, to_checksum_address

from marketplace_indexer.exceptions import DecodeError
from marketplace_indexer.models.raw_log import RawLog

# event PurchaseCompleted(uint256 indexed listingId, address indexed buyer,
#                         address indexed seller, uint256 amountUsdc)
PURCHASE_COMPLETED = "PurchaseCompleted"
PURCHASE_COMPLETED_SIGNATURE = "PurchaseCompleted(uint256,address,address,uint256)"
PURCHASE_COMPLETED_TOPIC = "0x" + keccak(text=PURCHASE_COMPLETED_SIGNATURE).hex()


@dataclass(frozen=True, slots=True)
class PurchaseCompletedEvent:
    """Decoded PurchaseCompleted log."""

    listing_id: int
    """On-chain listing id (Listing.onchain_id)."""
    buyer: str
    """Checksummed buyer address."""
    seller: str
    """Checksummed seller address."""
    amount_usdc: int
    """Amount in USDC base units."""
    name: Literal["PurchaseCompleted"] = PURCHASE_COMPLETED


# Union of every event this indexer understands; extend alongside _DECODERS.
DecodedEvent = Union[PurchaseCompletedEvent]


def _topic_to_address(topic: str) -> str:
    hex_topic = topic[2:] if topic.startswith("0x") else topic
    if len(hex_topic) != 64:
        raise ValueError(f"indexed address topic must be 32 bytes, got {len(hex_topic) // 2}")
    return to_checksum_address("0x" + hex_topic[-40:])


def _topic_to_uint(topic: str) -> int:
    return int(topic, 16)


def _data_bytes(data: str) -> bytes:
    hex_data = data[2:] if data.startswith("0x") else data
    return bytes.fromhex(hex_data)


def _decode_purchase_completed(log: RawLog) -> PurchaseCompletedEvent:
    if len(log.topics) != 4:
        raise ValueError(f"expected 4 topics, got {len(log.topics)}")
    (amount,) = abi_decode(["uint256"], _data_bytes(log.data))
    return PurchaseCompletedEvent(
        listing_id=_topic_to_uint(log.topics[1]),
        buyer=_topic_to_address(log.topics[2]),
        seller=_topic_to_address(log.topics[3]),
        amount_usdc=int(amount),
    )


_DECODERS: dict[str, Callable[[RawLog], DecodedEvent]] = {
    PURCHASE_COMPLETED_TOPIC: _decode_purchase_completed,
}


def event_topic(event_name: str) -> str:
    """Return topic0 for a known event name."""
    if event_name == PURCHASE_COMPLETED:
        return PURCHASE_COMPLETED_TOPIC
    raise ValueError(f"Unknown event: {event_name!r}")


def decode_event(log: RawLog) -> DecodedEvent:
    """Decode a raw log into its tagged event.

    Raises:
        DecodeError: Unknown topic0, wrong topic count, or data not matching the ABI.
    """
    if not log.topics:
        raise DecodeError(
            "log has no topics",
            tx_hash=log.transaction_hash,
            log_index=log.log_index,
        )
    decoder = _DECODERS.get(log.topics[0].lower())
    if decoder is None:
        raise DecodeError(
            f"unknown event topic {log.topics[0]}",
            tx_hash=log.transaction_hash,
            log_index=log.log_index,
        )
    try:
        return decoder(log)
    except (DecodingError, ValueError, TypeError) as e:
        raise DecodeError(
            f"cannot decode {log.topics[0]}: {e}",
            tx_hash=log.transaction_hash,
            log_index=log.log_index,
        ) from e
