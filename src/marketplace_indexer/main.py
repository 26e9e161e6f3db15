# -*- coding: utf-8 -*-
"""
Entry point for the live indexer.

Orchestrates: logging, settings, container, store, notifications, poller, shutdown (SIGINT or CancelledError).
Events flow: chain log source -> PurchasePoller -> EventProcessor -> store + SaleNotifier.

Run with: python -m marketplace_indexer.main (or: marketplace-indexer run)

Notebook usage:
    from marketplace_indexer.main import run
    await run()  # Interrupt kernel to stop; the poller shuts down on CancelledError.
"""
from __future__ import annotations

import asyncio
import signal
import structlog
from typing import Any

from marketplace_indexer.DI import Container
from marketplace_indexer.config import Settings, get_settings
from marketplace_indexer.exceptions import MissingRequiredConfigError
from marketplace_indexer.logging.config import configure_logging
from marketplace_indexer.notifications.types import (
    INDEXER_STARTED,
    INDEXER_STOPPED,
    NotificationMessage,
)
from marketplace_indexer.utils import is_hex_address, mask_address


def _setup_sigint(shutdown_event: asyncio.Event) -> None:
    try:
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(
            signal.SIGINT,
            lambda: shutdown_event.set(),
        )
    except NotImplementedError:
        pass  # Windows has no add_signal_handler


def require_contract_address(settings: Settings, logger: Any) -> str:
    """Return the configured contract address or raise MissingRequiredConfigError."""
    contract = settings.chain.contract_address.strip()
    if not is_hex_address(contract):
        logger.error(
            "main_missing_contract_address",
            message="CHAIN__CONTRACT_ADDRESS is not set or not a 0x address",
        )
        raise MissingRequiredConfigError("CHAIN__CONTRACT_ADDRESS")
    return contract


async def run() -> None:
    configure_logging()
    logger = structlog.get_logger("main")
    settings = get_settings()
    contract = require_contract_address(settings, logger)

    container = Container()
    store = container.index_store()
    await store.initialize()
    http_client = container.http_client()
    notification_service = container.notification_service()
    await notification_service.initialize()
    poller = container.purchase_poller()
    shutdown_event = asyncio.Event()
    _setup_sigint(shutdown_event)

    logger.info(
        "main_indexer_started",
        contract_address=mask_address(contract),
        chain_id=settings.chain.chain_id,
        poll_seconds=settings.indexer.poll_seconds,
        confirmations_required=settings.chain.confirmations_required,
    )
    notification_service.notify(
        NotificationMessage(
            event_type=INDEXER_STARTED,
            message="Purchase indexer started",
            payload={"contract_address": contract},
        )
    )

    schedule = poller.start()
    try:
        try:
            await shutdown_event.wait()
        except asyncio.CancelledError:
            logger.info("main_cancelled")
            raise
    finally:
        poller.stop(schedule)
        await poller.wait_idle()
        notification_service.notify(
            NotificationMessage(
                event_type=INDEXER_STOPPED,
                message="Purchase indexer stopped",
                payload={"contract_address": contract},
            )
        )
        await notification_service.shutdown()
        await http_client.aclose()
        await store.aclose()
        logger.info("main_shutdown_complete")


def main() -> None:
    asyncio.run(run())


__all__ = ["require_contract_address", "run", "main"]

if __name__ == "__main__":
    main()
