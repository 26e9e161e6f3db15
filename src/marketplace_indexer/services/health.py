"""Listener health: how recently the ledger moved."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from marketplace_indexer.persistence.repositories.interfaces import IEventLogRepository


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ListenerHealth:
    last_processed_block: int | None
    last_event_at: datetime | None
    stale: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastProcessedBlock": self.last_processed_block,
            "lastEventAt": self.last_event_at.isoformat() if self.last_event_at else None,
            "stale": self.stale,
        }


class HealthMonitor:
    """Reports the most recently written ledger row. Never writes.

    Stale when the ledger is empty or its newest row is older than
    stale_after_seconds. A quiet marketplace looks stale too; that is accepted.
    """

    def __init__(
        self,
        event_logs: IEventLogRepository,
        *,
        stale_after_seconds: float = 600,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._event_logs = event_logs
        self._stale_after = timedelta(seconds=stale_after_seconds)
        self._clock = clock

    async def health(self) -> ListenerHealth:
        last = await self._event_logs.latest_by_created_at()
        if last is None:
            return ListenerHealth(last_processed_block=None, last_event_at=None, stale=True)
        return ListenerHealth(
            last_processed_block=last.block_number,
            last_event_at=last.created_at,
            stale=self._clock() - last.created_at > self._stale_after,
        )
