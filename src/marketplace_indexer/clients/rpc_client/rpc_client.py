"""EVM JSON-RPC client for block height and log reads (eth_blockNumber, eth_getLogs)."""

from __future__ import annotations

from collections.abc import Callable
from itertools import count
from typing import TYPE_CHECKING, Any, cast

import structlog

from marketplace_indexer.exceptions import MalformedResponseError, TransientSourceError
from marketplace_indexer.utils.validation import mask_address, parse_quantity

if TYPE_CHECKING:
    from marketplace_indexer.clients.http import AsyncHttpClient
    from marketplace_indexer.config import Settings

# JSON-RPC error codes providers use for overload, rate limits and internal hiccups.
RETRYABLE_RPC_CODES = frozenset({-32000, -32005, -32603, 429})


def _normalize_address(addr: str) -> str:
    """Return lowercase 0x-prefixed address."""
    s = (addr or "").strip().lower()
    if not s.startswith("0x"):
        s = "0x" + s
    return s


class RpcClient:
    """Client for EVM JSON-RPC. Used for the marketplace log scan."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the RPC client.

        Args:
            http_client: HTTP client for POST requests (JSON-RPC).
            settings: Configuration (uses settings.chain.rpc_url).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._ids = count(1)
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _rpc_url(self) -> str:
        return self._settings.chain.rpc_url.rstrip("/")

    async def call(self, method: str, params: list[Any]) -> Any:
        """Perform one JSON-RPC call and return its ``result``.

        Raises:
            TransientSourceError: Transport failure or a retryable JSON-RPC error code.
            MalformedResponseError: Non-object response, missing result, or other RPC error.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        url = self._rpc_url()
        response = await self._http.post(url, json=payload)
        if not isinstance(response, dict):
            raise MalformedResponseError(
                f"Unexpected RPC response type for {method}: {type(response).__name__}",
                url=url,
            )
        resp_dict = cast(dict[str, Any], response)
        if "error" in resp_dict and resp_dict["error"] is not None:
            err = resp_dict["error"]
            code: int | None = None
            if isinstance(err, dict):
                err_d = cast(dict[str, Any], err)
                msg = str(err_d.get("message", err_d))
                raw_code = err_d.get("code")
                code = raw_code if isinstance(raw_code, int) else None
            else:
                msg = str(err)
            self._logger.debug(
                "rpc_error_response",
                rpc_method=method,
                rpc_code=code,
                error_message=msg,
            )
            if code in RETRYABLE_RPC_CODES:
                raise TransientSourceError(f"RPC error {code}: {msg}", url=url, rpc_code=code)
            raise MalformedResponseError(f"RPC error {code}: {msg}", url=url, rpc_code=code)
        if "result" not in resp_dict:
            raise MalformedResponseError(f"RPC response for {method} has no result", url=url)
        return resp_dict["result"]

    async def block_number(self) -> int:
        """Return the latest block number (eth_blockNumber)."""
        raw = await self.call("eth_blockNumber", [])
        height = parse_quantity(raw)
        if height is None or height < 0:
            raise MalformedResponseError(f"Invalid block number: {raw!r}", url=self._rpc_url())
        return height

    async def get_logs(
        self,
        address: str,
        topics: list[str | None],
        from_block: int,
        to_block: int,
    ) -> list[dict[str, Any]]:
        """Return raw log objects emitted by ``address`` in [from_block, to_block] (eth_getLogs).

        Args:
            address: Contract address (0x...).
            topics: Topic filter (topic0 first).
            from_block: Inclusive start block.
            to_block: Inclusive end block.
        """
        params = [
            {
                "address": _normalize_address(address),
                "topics": topics,
                "fromBlock": hex(from_block),
                "toBlock": hex(to_block),
            }
        ]
        result = await self.call("eth_getLogs", params)
        if not isinstance(result, list):
            raise MalformedResponseError(
                f"eth_getLogs returned {type(result).__name__}, expected list",
                url=self._rpc_url(),
            )
        logs = cast(list[Any], result)
        if any(not isinstance(entry, dict) for entry in logs):
            raise MalformedResponseError(
                "eth_getLogs returned a non-object entry", url=self._rpc_url()
            )
        self._logger.debug(
            "rpc_get_logs",
            contract_masked=mask_address(address),
            from_block=from_block,
            to_block=to_block,
            logs_count=len(logs),
        )
        return cast(list[dict[str, Any]], logs)
