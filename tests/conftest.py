# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit and integration tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from marketplace_indexer.chain.events import PURCHASE_COMPLETED_TOPIC
from marketplace_indexer.chain.log_source import IChainLogSource
from marketplace_indexer.config import ChainSettings, IndexerSettings, Settings
from marketplace_indexer.models.listing import Listing
from marketplace_indexer.models.raw_log import RawLog
from marketplace_indexer.persistence.repositories.in_memory import InMemoryIndexStore

CONTRACT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
SELLER = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb1"
BUYER = "0x8626f6940E2eb28930eFb4CeF49B2d1F2C9C1199"


def _address_topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


class FakeLogSource(IChainLogSource):
    """Scriptable chain: a fixed height, a list of logs and optional queued failures."""

    def __init__(self, height: int = 0, logs: list[RawLog] | None = None) -> None:
        self.height = height
        self.logs: list[RawLog] = list(logs or [])
        self.height_errors: list[Exception] = []
        self.fetch_errors: list[Exception] = []
        self.height_calls = 0
        self.entered = asyncio.Event()
        self.gate: asyncio.Event | None = None
        self.fetch_calls: list[tuple[int, int]] = []

    async def current_height(self) -> int:
        self.height_calls += 1
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.height_errors:
            raise self.height_errors.pop(0)
        return self.height

    async def fetch_logs(
        self,
        contract_address: str,
        event_topic: str,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        self.fetch_calls.append((from_block, to_block))
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return [
            log
            for log in self.logs
            if log.block_number is not None and from_block <= log.block_number <= to_block
        ]


@pytest.fixture
def contract_address() -> str:
    """Marketplace contract address used by tests."""
    return CONTRACT


@pytest.fixture
def seller() -> str:
    return SELLER


@pytest.fixture
def buyer() -> str:
    return BUYER


@pytest.fixture
def now_utc() -> datetime:
    """Stable UTC timestamp for deterministic assertions."""
    return datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def listing() -> Listing:
    """Listing with on-chain id 7."""
    return Listing.create(7, SELLER, title="Weather dataset", price_usdc=12_500_000)


@pytest.fixture
def raw_log_factory() -> Callable[..., RawLog]:
    """Build a valid PurchaseCompleted RawLog with easy overrides.

    tx_hash defaults to a hash derived from block_number and log_index.
    """

    def _build(**overrides: Any) -> RawLog:
        block_number = overrides.pop("block_number", 100)
        log_index = overrides.pop("log_index", 0)
        tx_hash = overrides.pop(
            "tx_hash", "0x" + f"{block_number or 0:032x}{log_index or 0:032x}"
        )
        listing_id = overrides.pop("listing_id", 7)
        amount = overrides.pop("amount_usdc", 12_500_000)
        topics = overrides.pop(
            "topics",
            (
                PURCHASE_COMPLETED_TOPIC,
                "0x" + f"{listing_id:064x}",
                _address_topic(overrides.pop("buyer", BUYER)),
                _address_topic(overrides.pop("seller", SELLER)),
            ),
        )
        return RawLog(
            block_number=block_number,
            transaction_hash=tx_hash,
            log_index=log_index,
            address=overrides.pop("address", CONTRACT),
            topics=tuple(topics),
            data=overrides.pop("data", "0x" + amount.to_bytes(32, "big").hex()),
            removed=overrides.pop("removed", False),
        )

    return _build


@pytest.fixture
async def store(listing: Listing) -> InMemoryIndexStore:
    """Fresh in-memory store holding the default listing."""
    s = InMemoryIndexStore()
    await s.listings.save(listing)
    return s


@pytest.fixture
def log_source() -> FakeLogSource:
    """Empty fake chain at height 0; tests set height and logs."""
    return FakeLogSource()


@pytest.fixture
def settings() -> Settings:
    """Settings with the test contract and the default chain/indexer knobs."""
    return Settings(
        chain=ChainSettings(
            contract_address=CONTRACT,
            confirmations_required=3,
            max_block_chunk=2000,
            rpc_max_retries=3,
            rpc_retry_base_seconds=1.0,
        ),
        indexer=IndexerSettings(poll_seconds=0.5, cold_start_window=5),
    )


@pytest.fixture
def no_sleep() -> Callable[[float], Any]:
    """Sleep replacement that records requested delays."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep
