"""Chain log source: the boundary between the indexer and the node."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from marketplace_indexer.chain.events import DecodedEvent, decode_event
from marketplace_indexer.models.raw_log import RawLog

if TYPE_CHECKING:
    from marketplace_indexer.clients.rpc_client import RpcClient


class IChainLogSource(ABC):
    """Read-only view of the chain used by the poller and backfill runner.

    Implementations raise TransientSourceError for failures worth retrying and
    MalformedResponseError for responses that will not improve on retry.
    """

    @abstractmethod
    async def current_height(self) -> int:
        """Return the latest block number known to the source."""
        ...

    @abstractmethod
    async def fetch_logs(
        self,
        contract_address: str,
        event_topic: str,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        """Return logs for (contract, topic0) in [from_block, to_block], in chain order."""
        ...

    def decode(self, raw_log: RawLog) -> DecodedEvent:
        """Decode a raw log into its tagged event. Raises DecodeError."""
        return decode_event(raw_log)


class RpcChainLogSource(IChainLogSource):
    """IChainLogSource over a JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_client: RpcClient,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._rpc = rpc_client
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def current_height(self) -> int:
        return await self._rpc.block_number()

    async def fetch_logs(
        self,
        contract_address: str,
        event_topic: str,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        payloads = await self._rpc.get_logs(contract_address, [event_topic], from_block, to_block)
        logs = [RawLog.from_rpc(p) for p in payloads]
        # Nodes return logs in chain order, but not every provider guarantees it.
        logs.sort(
            key=lambda log: (
                log.block_number if log.block_number is not None else -1,
                log.log_index if log.log_index is not None else -1,
            )
        )
        return logs
