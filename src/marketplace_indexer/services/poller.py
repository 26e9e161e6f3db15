"""Live poller: scans confirmed blocks for PurchaseCompleted logs on a fixed interval."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from marketplace_indexer.chain.events import event_topic
from marketplace_indexer.services.chunking import block_chunks
from marketplace_indexer.services.confirmation import confirmed_height
from marketplace_indexer.services.event_processor import ProcessOutcome
from marketplace_indexer.utils.retry import with_retry

if TYPE_CHECKING:
    from marketplace_indexer.chain.log_source import IChainLogSource
    from marketplace_indexer.config import Settings
    from marketplace_indexer.services.cursor import CursorResolver
    from marketplace_indexer.services.event_processor import EventProcessor


class PollerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class PollCycleResult:
    """Summary of one completed poll cycle."""

    latest_height: int
    confirmed_height: int
    from_block: int | None
    """First scanned block; None when there was nothing to scan."""
    chunks: int = 0
    events_found: int = 0
    events_created: int = 0
    events_skipped: int = 0
    events_malformed: int = 0

    @property
    def scanned(self) -> bool:
        return self.from_block is not None


class PollSchedule:
    """Cancellation token for one recurring schedule returned by PurchasePoller.start()."""

    def __init__(self) -> None:
        self._cancelled = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    async def wait_cancelled(self) -> None:
        await self._cancelled.wait()


class PurchasePoller:
    """Runs poll cycles: cursor to confirmed height, chunk by chunk, event by event.

    At most one cycle runs at a time; a tick that fires while a cycle is running
    is dropped. The first event that fails aborts the cycle without touching the
    ledger, so the cursor stays put and the next cycle re-observes that event.
    """

    def __init__(
        self,
        log_source: IChainLogSource,
        processor: EventProcessor,
        cursor: CursorResolver,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            log_source: Chain log source (height and logs).
            processor: Per-event processor.
            cursor: Resolves the first block of each scan.
            settings: Uses settings.chain (contract, confirmations, chunking, retries)
                and settings.indexer (poll interval, event type).
            sleep: Sleep used between RPC retries (tests inject a no-op).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._log_source = log_source
        self._processor = processor
        self._cursor = cursor
        self._settings = settings
        self._sleep = sleep
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._topic = event_topic(settings.indexer.event_type)
        self._polling = False
        self._stopped = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._schedule: PollSchedule | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> PollerState:
        if self._polling:
            return PollerState.POLLING
        if self._stopped:
            return PollerState.STOPPED
        return PollerState.IDLE

    async def poll_once(self) -> PollCycleResult | None:
        """Run one cycle. Returns None when dropped (cycle in flight) or stopped.

        Raises:
            The first per-event error, or the RPC error once retries are exhausted.
        """
        if self._polling:
            self._logger.warning("poll_tick_dropped_cycle_in_flight")
            return None
        if self._stopped:
            self._logger.debug("poll_skipped_poller_stopped")
            return None
        self._polling = True
        self._idle.clear()
        try:
            return await self._run_cycle()
        finally:
            self._polling = False
            self._idle.set()

    async def _retry(self, fn: Callable[[], Awaitable[Any]], label: str) -> Any:
        chain = self._settings.chain
        return await with_retry(
            fn,
            label,
            max_retries=chain.rpc_max_retries,
            base_delay_seconds=chain.rpc_retry_base_seconds,
            sleep=self._sleep,
            logger=self._logger,
        )

    async def _run_cycle(self) -> PollCycleResult:
        chain = self._settings.chain
        latest = await self._retry(self._log_source.current_height, "eth_blockNumber")
        confirmed = confirmed_height(latest, chain.confirmations_required)
        if confirmed < 0:
            self._logger.debug("poll_chain_too_young", latest_height=latest)
            return PollCycleResult(latest_height=latest, confirmed_height=confirmed, from_block=None)

        from_block = await self._cursor.resolve_from_block(confirmed)
        if from_block > confirmed:
            self._logger.debug(
                "poll_nothing_to_scan",
                from_block=from_block,
                confirmed_height=confirmed,
            )
            return PollCycleResult(latest_height=latest, confirmed_height=confirmed, from_block=None)

        chunks = block_chunks(from_block, confirmed, chain.max_block_chunk)
        found = created = skipped = malformed = 0
        for chunk in chunks:
            with bound_contextvars(chunk_start=chunk.start, chunk_end=chunk.end):
                logs = await self._retry(
                    partial(
                        self._log_source.fetch_logs,
                        chain.contract_address,
                        self._topic,
                        chunk.start,
                        chunk.end,
                    ),
                    f"eth_getLogs({chunk.start}-{chunk.end})",
                )
                found += len(logs)
                for raw_log in logs:
                    try:
                        result = await self._processor.process(raw_log)
                    except Exception as e:
                        self._logger.error(
                            "poll_cycle_aborted",
                            tx_hash=raw_log.transaction_hash,
                            log_index=raw_log.log_index,
                            block_number=raw_log.block_number,
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                        raise
                    if result.outcome is ProcessOutcome.CREATED:
                        created += 1
                    elif result.outcome is ProcessOutcome.DUPLICATE:
                        skipped += 1
                    else:
                        malformed += 1

        cycle = PollCycleResult(
            latest_height=latest,
            confirmed_height=confirmed,
            from_block=from_block,
            chunks=len(chunks),
            events_found=found,
            events_created=created,
            events_skipped=skipped,
            events_malformed=malformed,
        )
        self._logger.info(
            "poll_cycle_completed",
            from_block=from_block,
            to_block=confirmed,
            chunks=cycle.chunks,
            events_found=found,
            events_created=created,
            events_skipped=skipped,
            events_malformed=malformed,
        )
        return cycle

    def start(self) -> PollSchedule:
        """Run a cycle now and then every indexer.poll_seconds until stop()."""
        if self._stopped:
            raise RuntimeError("PurchasePoller is stopped")
        if self._schedule is not None:
            raise RuntimeError("PurchasePoller already started")
        schedule = PollSchedule()
        schedule._task = asyncio.create_task(self._schedule_loop(schedule))
        self._track(schedule._task)
        self._schedule = schedule
        self._logger.info(
            "poller_started",
            poll_seconds=self._settings.indexer.poll_seconds,
            confirmations_required=self._settings.chain.confirmations_required,
        )
        return schedule

    def stop(self, schedule: PollSchedule | None = None) -> None:
        """Cancel the recurring schedule. A cycle already running is left to finish."""
        target = schedule or self._schedule
        if target is not None:
            target.cancel()
        if target is None or target is self._schedule:
            self._schedule = None
            self._stopped = True
            self._logger.info("poller_stopped", cycle_in_flight=self._polling)

    async def wait_idle(self) -> None:
        """Wait until the scheduler and any in-flight cycle have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._idle.wait()

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _schedule_loop(self, schedule: PollSchedule) -> None:
        interval = self._settings.indexer.poll_seconds
        while not schedule.cancelled:
            self._track(asyncio.create_task(self._scheduled_cycle()))
            try:
                await asyncio.wait_for(schedule.wait_cancelled(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def _scheduled_cycle(self) -> None:
        try:
            await self.poll_once()
        except Exception as e:
            self._logger.error(
                "poll_cycle_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
