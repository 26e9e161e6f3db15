"""Event processor: turns one confirmed PurchaseCompleted log into a Purchase."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from marketplace_indexer.chain.events import PURCHASE_COMPLETED
from marketplace_indexer.exceptions import DuplicateKeyError, ListingNotFound, MalformedLog
from marketplace_indexer.models.event_log import EventLog
from marketplace_indexer.models.purchase import Purchase

if TYPE_CHECKING:
    from marketplace_indexer.chain.events import DecodedEvent
    from marketplace_indexer.chain.log_source import IChainLogSource
    from marketplace_indexer.models.raw_log import RawLog
    from marketplace_indexer.persistence.repositories.interfaces import (
        IIndexStore,
        TransactionScope,
    )
    from marketplace_indexer.services.notifications import SaleNotifier


class ProcessOutcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """What process() did with a log."""

    outcome: ProcessOutcome
    event: DecodedEvent | None = None
    purchase: Purchase | None = None
    """Purchase written (or already present for the same tx) when outcome is CREATED."""


@dataclass(frozen=True, slots=True)
class Inspection:
    """Read-only view of a log, used by dry runs."""

    already_indexed: bool
    event: DecodedEvent | None = None
    """Decoded event; None when the log is already in the ledger (not decoded)."""


def _error_text(error: BaseException) -> str:
    text = str(error)
    return text if text else type(error).__name__


class EventProcessor:
    """Idempotent per-event pipeline: dedup check, decode, listing lookup, atomic write, notify.

    Decode errors and missing listings propagate to the caller. The poller aborts
    and writes nothing, so its next cycle re-observes the event. The backfill
    carries on and keeps the failure in the ledger through record_failure().
    """

    def __init__(
        self,
        store: IIndexStore,
        log_source: IChainLogSource,
        sale_notifier: SaleNotifier | None = None,
        *,
        event_type: str = PURCHASE_COMPLETED,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            store: Index store (listings, purchases, event ledger).
            log_source: Chain log source; only its decode() is used here.
            sale_notifier: Optional; notified after each committed purchase.
            event_type: Value written to EventLog.event_type.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._store = store
        self._log_source = log_source
        self._sale_notifier = sale_notifier
        self._event_type = event_type
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def process(self, raw_log: RawLog, *, retry_failed: bool = False) -> ProcessResult:
        """Index one log. Safe to call any number of times for the same log.

        A failed ledger row (processed=False) counts as a duplicate unless
        retry_failed is set; then the log is processed again and, on success,
        the failed row is flipped to processed in the same transaction.

        Raises:
            DecodeError: The log does not decode as a known event.
            ListingNotFound: No local listing for the event's on-chain listing id.
        """
        if raw_log.removed:
            self._logger.warning(
                "event_log_removed_skipped",
                tx_hash=raw_log.transaction_hash,
                log_index=raw_log.log_index,
            )
            return ProcessResult(ProcessOutcome.MALFORMED)
        try:
            tx_hash, log_index, block_number = raw_log.identity()
        except MalformedLog as e:
            self._logger.warning(
                "event_log_malformed",
                missing_fields=e.missing,
                tx_hash=raw_log.transaction_hash,
                log_index=raw_log.log_index,
                block_number=raw_log.block_number,
            )
            return ProcessResult(ProcessOutcome.MALFORMED)

        with bound_contextvars(tx_hash=tx_hash, log_index=log_index, block_number=block_number):
            existing = await self._store.event_logs.get(tx_hash, log_index)
            retrying = False
            if existing is not None:
                if existing.processed or not retry_failed:
                    self._logger.debug("event_already_processed", processed=existing.processed)
                    return ProcessResult(ProcessOutcome.DUPLICATE)
                retrying = True
                self._logger.info("event_retrying_failed_entry", previous_error=existing.error)

            event = self._log_source.decode(raw_log)
            listing = await self._store.listings.get_by_onchain_id(event.listing_id)
            if listing is None:
                raise ListingNotFound(event.listing_id)

            async def write(scope: TransactionScope) -> Purchase:
                purchase = await scope.purchases.upsert(
                    Purchase.create(
                        listing_id=listing.id,
                        buyer_address=event.buyer,
                        tx_hash=tx_hash,
                        amount_usdc=event.amount_usdc,
                        block_number=block_number,
                    )
                )
                if retrying:
                    await scope.event_logs.mark_processed(tx_hash, log_index)
                else:
                    await scope.event_logs.insert(
                        EventLog.processed_entry(self._event_type, tx_hash, log_index, block_number)
                    )
                return purchase

            try:
                purchase = await self._store.with_transaction(write)
            except DuplicateKeyError:
                winner = await self._store.event_logs.get(tx_hash, log_index)
                if winner is not None and (winner.processed or not retrying):
                    self._logger.info("event_processed_concurrently")
                    return ProcessResult(ProcessOutcome.DUPLICATE, event=event)
                raise

            self._logger.info(
                "purchase_indexed",
                purchase_id=purchase.id,
                listing_id=listing.id,
                onchain_listing_id=event.listing_id,
                buyer=event.buyer,
                amount_usdc=event.amount_usdc,
            )
            self._notify_seller(event, purchase, tx_hash, block_number)
            return ProcessResult(ProcessOutcome.CREATED, event=event, purchase=purchase)

    async def record_failure(self, raw_log: RawLog, error: BaseException) -> EventLog | None:
        """Write a processed=False ledger row for a log that failed.

        Returns the stored row, or None when the log has no identity or a row for it
        already exists.
        """
        try:
            tx_hash, log_index, block_number = raw_log.identity()
        except MalformedLog:
            self._logger.warning("event_failure_not_recorded_malformed")
            return None
        entry = EventLog.failed_entry(
            self._event_type, tx_hash, log_index, block_number, _error_text(error)
        )
        try:
            stored = await self._store.event_logs.insert(entry)
        except DuplicateKeyError:
            self._logger.warning(
                "event_failure_already_recorded",
                tx_hash=tx_hash,
                log_index=log_index,
            )
            return None
        self._logger.error(
            "event_processing_failed",
            tx_hash=tx_hash,
            log_index=log_index,
            block_number=block_number,
            error_type=type(error).__name__,
            error_message=entry.error,
        )
        return stored

    async def inspect(self, raw_log: RawLog, *, retry_failed: bool = False) -> Inspection:
        """Report whether the log is indexed and, if not, what it decodes to. Never writes.

        With retry_failed, a failed ledger row does not count as indexed, matching
        what process(retry_failed=True) would do.

        Raises:
            MalformedLog: The log lacks its identity fields.
            DecodeError: The log is not indexed and does not decode.
        """
        tx_hash, log_index, _ = raw_log.identity()
        existing = await self._store.event_logs.get(tx_hash, log_index)
        if existing is not None and (existing.processed or not retry_failed):
            return Inspection(already_indexed=True)
        return Inspection(already_indexed=False, event=self._log_source.decode(raw_log))

    def _notify_seller(
        self,
        event: DecodedEvent,
        purchase: Purchase,
        tx_hash: str,
        block_number: int,
    ) -> None:
        if self._sale_notifier is None:
            return
        try:
            self._sale_notifier.notify(
                event.seller,
                purchase.id,
                listing_id=event.listing_id,
                buyer=event.buyer,
                amount_usdc=event.amount_usdc,
                tx_hash=tx_hash,
                block_number=block_number,
            )
        except Exception as e:
            # The purchase is committed; a lost notification is not retried.
            self._logger.warning(
                "seller_notification_failed",
                purchase_id=purchase.id,
                error_type=type(e).__name__,
                error_message=str(e),
            )
