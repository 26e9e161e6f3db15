"""RawLog: one log entry as returned by eth_getLogs, before decoding.

Fields the node may omit (pending logs, broken providers) are kept as None so the
processor can classify the log as malformed instead of failing to parse it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from marketplace_indexer.exceptions import MalformedLog
from marketplace_indexer.utils.validation import is_tx_hash, parse_quantity


@dataclass(frozen=True, slots=True)
class RawLog:
    """Undecoded log. Identity is (transaction_hash, log_index)."""

    block_number: int | None
    transaction_hash: str | None
    log_index: int | None
    address: str | None = None
    topics: tuple[str, ...] = field(default_factory=tuple)
    data: str = "0x"
    removed: bool = False
    """True when the node reports the log was dropped by a reorg."""

    @property
    def missing_fields(self) -> list[str]:
        """Names of identity fields that are absent."""
        missing: list[str] = []
        if self.block_number is None:
            missing.append("blockNumber")
        if not self.transaction_hash:
            missing.append("transactionHash")
        if self.log_index is None:
            missing.append("logIndex")
        return missing

    def identity(self) -> tuple[str, int, int]:
        """Return (tx_hash, log_index, block_number) or raise MalformedLog."""
        missing = self.missing_fields
        if missing:
            raise MalformedLog(missing)
        assert self.transaction_hash is not None
        assert self.log_index is not None
        assert self.block_number is not None
        return (self.transaction_hash, self.log_index, self.block_number)

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> RawLog:
        """Build from a JSON-RPC log object (hex quantities, camelCase keys).

        A transactionHash that is not 0x + 64 hex digits is dropped, which makes
        the log malformed rather than giving it a bogus identity.
        """
        topics_raw = payload.get("topics") or []
        topics = tuple(str(t).lower() for t in topics_raw if t is not None)
        tx_hash = payload.get("transactionHash")
        address = payload.get("address")
        return cls(
            block_number=parse_quantity(payload.get("blockNumber")),
            transaction_hash=tx_hash.strip() if is_tx_hash(tx_hash) else None,
            log_index=parse_quantity(payload.get("logIndex")),
            address=str(address) if address else None,
            topics=topics,
            data=str(payload.get("data") or "0x"),
            removed=bool(payload.get("removed", False)),
        )
