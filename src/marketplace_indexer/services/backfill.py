"""Backfill runner: re-scan an explicit block range and index what the poller missed."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, Literal

import structlog
from structlog.contextvars import bound_contextvars

from marketplace_indexer.chain.events import event_topic
from marketplace_indexer.exceptions import InvalidRange, MalformedLog
from marketplace_indexer.services.chunking import block_chunks
from marketplace_indexer.services.event_processor import ProcessOutcome
from marketplace_indexer.utils.retry import with_retry

if TYPE_CHECKING:
    from marketplace_indexer.chain.events import DecodedEvent
    from marketplace_indexer.chain.log_source import IChainLogSource
    from marketplace_indexer.config import Settings
    from marketplace_indexer.models.raw_log import RawLog
    from marketplace_indexer.services.event_processor import EventProcessor

EventStatus = Literal["created", "skipped", "error"]


@dataclass(frozen=True, slots=True)
class BackfillEventDetail:
    """Outcome for one event seen during a backfill."""

    tx_hash: str
    log_index: int
    block_number: int
    status: EventStatus
    listing_id: int | None = None
    """On-chain listing id; None when the log could not be decoded."""
    buyer: str | None = None
    amount_usdc: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "txHash": self.tx_hash,
            "logIndex": self.log_index,
            "blockNumber": self.block_number,
            "listingId": str(self.listing_id) if self.listing_id is not None else None,
            "buyer": self.buyer,
            "amountUsdc": str(self.amount_usdc) if self.amount_usdc is not None else None,
            "status": self.status,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(slots=True)
class BackfillReport:
    """Counters and per-event details for one backfill run."""

    from_block: int
    to_block: int
    dry_run: bool
    blocks_scanned: int = 0
    events_found: int = 0
    events_created: int = 0
    events_skipped: int = 0
    events_failed: int = 0
    events_malformed: int = 0
    events: list[BackfillEventDetail] = field(default_factory=list)

    @property
    def failed_events(self) -> list[BackfillEventDetail]:
        return [e for e in self.events if e.status == "error"]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return {
            "fromBlock": self.from_block,
            "toBlock": self.to_block,
            "dryRun": self.dry_run,
            "blocksScanned": self.blocks_scanned,
            "eventsFound": self.events_found,
            "eventsCreated": self.events_created,
            "eventsSkipped": self.events_skipped,
            "eventsFailed": self.events_failed,
            "eventsMalformed": self.events_malformed,
            "events": [e.to_dict() for e in self.events],
        }


def _detail(
    raw_log: RawLog,
    status: EventStatus,
    event: DecodedEvent | None = None,
    error: BaseException | None = None,
) -> BackfillEventDetail:
    tx_hash, log_index, block_number = raw_log.identity()
    return BackfillEventDetail(
        tx_hash=tx_hash,
        log_index=log_index,
        block_number=block_number,
        status=status,
        listing_id=event.listing_id if event is not None else None,
        buyer=event.buyer if event is not None else None,
        amount_usdc=event.amount_usdc if event is not None else None,
        error=(str(error) or type(error).__name__) if error is not None else None,
    )


class BackfillRunner:
    """Scans [from_block, to_block] with the poller's chunking and processor.

    Unlike the poller, a failing event does not stop the run: it is recorded,
    counted and reported, and the scan moves on. Events with a failed ledger row
    are processed again, so re-running a range repairs it. Dry runs never write.
    """

    def __init__(
        self,
        log_source: IChainLogSource,
        processor: EventProcessor,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._log_source = log_source
        self._processor = processor
        self._settings = settings
        self._sleep = sleep
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._topic = event_topic(settings.indexer.event_type)

    async def backfill(self, from_block: int, to_block: int, dry_run: bool = False) -> BackfillReport:
        """Scan the inclusive range and return the report.

        Raises:
            InvalidRange: from_block > to_block or from_block < 0 (before any I/O).
            ChainSourceError: A log fetch failed after retries.
        """
        if from_block < 0:
            raise InvalidRange(from_block, to_block, f"Invalid range: fromBlock ({from_block}) < 0")
        if from_block > to_block:
            raise InvalidRange(from_block, to_block)
        chain = self._settings.chain
        chunks = block_chunks(from_block, to_block, chain.max_block_chunk)
        report = BackfillReport(from_block=from_block, to_block=to_block, dry_run=dry_run)
        self._logger.info(
            "backfill_started",
            from_block=from_block,
            to_block=to_block,
            dry_run=dry_run,
            chunks=len(chunks),
        )
        for chunk in chunks:
            with bound_contextvars(chunk_start=chunk.start, chunk_end=chunk.end):
                logs = await with_retry(
                    partial(
                        self._log_source.fetch_logs,
                        chain.contract_address,
                        self._topic,
                        chunk.start,
                        chunk.end,
                    ),
                    f"eth_getLogs({chunk.start}-{chunk.end})",
                    max_retries=chain.rpc_max_retries,
                    base_delay_seconds=chain.rpc_retry_base_seconds,
                    sleep=self._sleep,
                    logger=self._logger,
                )
                report.blocks_scanned += chunk.size
                report.events_found += len(logs)
                if logs:
                    self._logger.info("backfill_chunk_events_found", events_found=len(logs))
                for raw_log in logs:
                    if raw_log.removed or raw_log.missing_fields:
                        report.events_malformed += 1
                        self._logger.warning(
                            "backfill_log_skipped_malformed",
                            missing_fields=raw_log.missing_fields,
                            removed=raw_log.removed,
                        )
                        continue
                    if dry_run:
                        await self._inspect(raw_log, report)
                    else:
                        await self._process(raw_log, report)

        self._logger.info(
            "backfill_completed",
            from_block=from_block,
            to_block=to_block,
            dry_run=dry_run,
            blocks_scanned=report.blocks_scanned,
            events_found=report.events_found,
            events_created=report.events_created,
            events_skipped=report.events_skipped,
            events_failed=report.events_failed,
            events_malformed=report.events_malformed,
        )
        return report

    async def _inspect(self, raw_log: RawLog, report: BackfillReport) -> None:
        try:
            inspection = await self._processor.inspect(raw_log, retry_failed=True)
        except MalformedLog:
            report.events_malformed += 1
            return
        except Exception as e:
            report.events_failed += 1
            report.events.append(_detail(raw_log, "error", error=e))
            self._logger.warning(
                "backfill_dry_run_inspect_failed",
                tx_hash=raw_log.transaction_hash,
                log_index=raw_log.log_index,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return
        if inspection.already_indexed:
            report.events_skipped += 1
            report.events.append(_detail(raw_log, "skipped"))
            self._logger.info(
                "backfill_dry_run_skip_already_indexed",
                tx_hash=raw_log.transaction_hash,
                log_index=raw_log.log_index,
            )
        else:
            report.events_created += 1
            report.events.append(_detail(raw_log, "created", inspection.event))
            self._logger.info(
                "backfill_dry_run_would_create",
                tx_hash=raw_log.transaction_hash,
                log_index=raw_log.log_index,
                listing_id=inspection.event.listing_id if inspection.event else None,
            )

    async def _process(self, raw_log: RawLog, report: BackfillReport) -> None:
        try:
            result = await self._processor.process(raw_log, retry_failed=True)
        except Exception as e:
            await self._record_failure(raw_log, e)
            report.events_failed += 1
            report.events.append(_detail(raw_log, "error", error=e))
            self._logger.error(
                "backfill_event_failed",
                tx_hash=raw_log.transaction_hash,
                log_index=raw_log.log_index,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return
        if result.outcome is ProcessOutcome.CREATED:
            report.events_created += 1
            report.events.append(_detail(raw_log, "created", result.event))
        elif result.outcome is ProcessOutcome.DUPLICATE:
            report.events_skipped += 1
            report.events.append(_detail(raw_log, "skipped", result.event))
        else:
            report.events_malformed += 1

    async def _record_failure(self, raw_log: RawLog, error: Exception) -> None:
        try:
            await self._processor.record_failure(raw_log, error)
        except Exception as e:
            # The report keeps the processing error; the ledger row is best effort here.
            self._logger.error(
                "backfill_failure_not_recorded",
                tx_hash=raw_log.transaction_hash,
                log_index=raw_log.log_index,
                error_type=type(e).__name__,
                error_message=str(e),
            )
