"""Cursor resolver: where the next live scan starts."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from marketplace_indexer.persistence.repositories.interfaces import IEventLogRepository


class CursorResolver:
    """Derives the resume block from the ledger. Never writes.

    Resumes AT the highest ledgered block (not +1): a cycle that stopped halfway
    through a block re-observes the rest of it, and the processor's dedup check
    skips what was already written. With an empty ledger, starts cold_start_window
    blocks behind the confirmed height instead of scanning from genesis.
    """

    def __init__(
        self,
        event_logs: IEventLogRepository,
        *,
        cold_start_window: int = 5,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        if cold_start_window < 0:
            raise ValueError("cold_start_window must be non-negative")
        self._event_logs = event_logs
        self._cold_start_window = cold_start_window
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def resolve_from_block(self, confirmed_height: int) -> int:
        """Return the first block of the next scan."""
        last = await self._event_logs.latest_by_block()
        if last is not None:
            return last.block_number
        from_block = max(confirmed_height - self._cold_start_window, 0)
        self._logger.info(
            "cursor_cold_start",
            confirmed_height=confirmed_height,
            cold_start_window=self._cold_start_window,
            from_block=from_block,
        )
        return from_block
