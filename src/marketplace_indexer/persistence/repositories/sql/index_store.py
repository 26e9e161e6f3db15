"""SQLAlchemy (asyncio) implementation of the index store."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, AsyncIterator, Optional, TypeVar

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from marketplace_indexer.exceptions import DuplicateKeyError
from marketplace_indexer.models.event_log import EventLog
from marketplace_indexer.models.listing import Listing
from marketplace_indexer.models.purchase import Purchase
from marketplace_indexer.persistence.repositories.interfaces import (
    IEventLogRepository,
    IIndexStore,
    IListingRepository,
    IPurchaseRepository,
    TransactionScope,
)
from marketplace_indexer.persistence.repositories.sql.models import (
    Base,
    EventLogRow,
    ListingRow,
    PurchaseRow,
)

T = TypeVar("T")


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we write is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _listing_from_row(row: ListingRow) -> Listing:
    return Listing(
        id=row.id,
        onchain_id=row.onchain_id,
        seller_address=row.seller_address,
        title=row.title,
        price_usdc=int(row.price_usdc),
        created_at=_as_utc(row.created_at),
    )


def _purchase_from_row(row: PurchaseRow) -> Purchase:
    return Purchase(
        id=row.id,
        listing_id=row.listing_id,
        buyer_address=row.buyer_address,
        tx_hash=row.tx_hash,
        amount_usdc=int(row.amount_usdc),
        tx_verified=row.tx_verified,
        block_number=row.block_number if row.block_number is not None else 0,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _event_log_from_row(row: EventLogRow) -> EventLog:
    return EventLog(
        id=row.id,
        event_type=row.event_type,
        tx_hash=row.tx_hash,
        log_index=row.log_index,
        block_number=row.block_number,
        processed=row.processed,
        error=row.error,
        created_at=_as_utc(row.created_at),
    )


def create_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine; in-memory SQLite shares one connection across sessions."""
    kwargs: dict[str, Any] = {}
    if url.startswith("sqlite") and ":memory:" in url:
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_async_engine(url, echo=echo, **kwargs)


class _SqlRepository:
    """Runs each call in the bound session, or in a fresh committed session."""

    def __init__(
        self,
        *,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        session: AsyncSession | None = None,
    ) -> None:
        if (session_maker is None) == (session is None):
            raise ValueError("pass exactly one of session_maker or session")
        self._session_maker = session_maker
        self._bound = session

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        if self._bound is not None:
            yield self._bound
            return
        assert self._session_maker is not None
        async with self._session_maker() as session:
            async with session.begin():
                yield session


class SqlListingRepository(_SqlRepository, IListingRepository):
    """SQLAlchemy implementation of IListingRepository."""

    async def get_by_onchain_id(self, onchain_id: int) -> Optional[Listing]:
        async with self._session() as session:
            stmt = select(ListingRow).where(ListingRow.onchain_id == onchain_id)
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _listing_from_row(row) if row is not None else None

    async def save(self, listing: Listing) -> None:
        async with self._session() as session:
            await session.merge(
                ListingRow(
                    id=listing.id,
                    onchain_id=listing.onchain_id,
                    seller_address=listing.seller_address,
                    title=listing.title,
                    price_usdc=str(listing.price_usdc),
                    created_at=listing.created_at or datetime.now(UTC),
                )
            )


class SqlPurchaseRepository(_SqlRepository, IPurchaseRepository):
    """SQLAlchemy implementation of IPurchaseRepository."""

    async def get_by_tx_hash(self, tx_hash: str) -> Optional[Purchase]:
        async with self._session() as session:
            stmt = select(PurchaseRow).where(PurchaseRow.tx_hash == tx_hash.strip().lower())
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _purchase_from_row(row) if row is not None else None

    async def upsert(self, purchase: Purchase) -> Purchase:
        tx_hash = purchase.tx_hash.strip().lower()
        async with self._session() as session:
            stmt = select(PurchaseRow).where(PurchaseRow.tx_hash == tx_hash)
            existing = (await session.execute(stmt)).scalar_one_or_none()
            if existing is not None:
                return _purchase_from_row(existing)
            row = PurchaseRow(
                id=purchase.id,
                listing_id=purchase.listing_id,
                buyer_address=purchase.buyer_address,
                tx_hash=tx_hash,
                amount_usdc=str(purchase.amount_usdc),
                tx_verified=purchase.tx_verified,
                block_number=purchase.block_number,
                created_at=purchase.created_at,
                updated_at=purchase.updated_at,
            )
            session.add(row)
            try:
                await session.flush()
            except IntegrityError as e:
                raise DuplicateKeyError("purchase", (tx_hash,)) from e
            return _purchase_from_row(row)

    async def count(self) -> int:
        async with self._session() as session:
            result = await session.execute(select(func.count()).select_from(PurchaseRow))
            return int(result.scalar_one())


class SqlEventLogRepository(_SqlRepository, IEventLogRepository):
    """SQLAlchemy implementation of IEventLogRepository."""

    async def get(self, tx_hash: str, log_index: int) -> Optional[EventLog]:
        async with self._session() as session:
            stmt = select(EventLogRow).where(
                EventLogRow.tx_hash == tx_hash.strip().lower(),
                EventLogRow.log_index == log_index,
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _event_log_from_row(row) if row is not None else None

    async def insert(self, entry: EventLog) -> EventLog:
        tx_hash = entry.tx_hash.strip().lower()
        try:
            async with self._session() as session:
                row = EventLogRow(
                    event_type=entry.event_type,
                    tx_hash=tx_hash,
                    log_index=entry.log_index,
                    block_number=entry.block_number,
                    processed=entry.processed,
                    error=entry.error,
                    created_at=entry.created_at,
                )
                session.add(row)
                await session.flush()
                return _event_log_from_row(row)
        except IntegrityError as e:
            raise DuplicateKeyError("event_log", (tx_hash, entry.log_index)) from e

    async def mark_processed(self, tx_hash: str, log_index: int) -> EventLog:
        key = tx_hash.strip().lower()
        async with self._session() as session:
            stmt = select(EventLogRow).where(
                EventLogRow.tx_hash == key,
                EventLogRow.log_index == log_index,
                EventLogRow.processed.is_(False),
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                raise DuplicateKeyError("event_log", (key, log_index))
            row.processed = True
            row.error = None
            await session.flush()
            return _event_log_from_row(row)

    async def latest_by_block(self) -> Optional[EventLog]:
        async with self._session() as session:
            stmt = (
                select(EventLogRow)
                .order_by(EventLogRow.block_number.desc(), EventLogRow.id.desc())
                .limit(1)
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _event_log_from_row(row) if row is not None else None

    async def latest_by_created_at(self) -> Optional[EventLog]:
        async with self._session() as session:
            stmt = (
                select(EventLogRow)
                .order_by(EventLogRow.created_at.desc(), EventLogRow.id.desc())
                .limit(1)
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _event_log_from_row(row) if row is not None else None

    async def count(self) -> int:
        async with self._session() as session:
            result = await session.execute(select(func.count()).select_from(EventLogRow))
            return int(result.scalar_one())


class SqlIndexStore(IIndexStore):
    """IIndexStore on SQLAlchemy asyncio (SQLite via aiosqlite, PostgreSQL via asyncpg)."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            engine: Async engine (see create_engine).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._engine = engine
        self._session_maker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._listings = SqlListingRepository(session_maker=self._session_maker)
        self._purchases = SqlPurchaseRepository(session_maker=self._session_maker)
        self._event_logs = SqlEventLogRepository(session_maker=self._session_maker)
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False) -> SqlIndexStore:
        """Build a store with its own engine."""
        return cls(create_engine(url, echo=echo))

    @property
    def listings(self) -> SqlListingRepository:
        return self._listings

    @property
    def purchases(self) -> SqlPurchaseRepository:
        return self._purchases

    @property
    def event_logs(self) -> SqlEventLogRepository:
        return self._event_logs

    async def initialize(self) -> None:
        """Create missing tables."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self._logger.debug("sql_store_initialized", db_url=self._engine.url.render_as_string())

    async def aclose(self) -> None:
        await self._engine.dispose()

    async def with_transaction(self, fn: Callable[[TransactionScope], Awaitable[T]]) -> T:
        async with self._session_maker() as session:
            try:
                async with session.begin():
                    scope = TransactionScope(
                        listings=SqlListingRepository(session=session),
                        purchases=SqlPurchaseRepository(session=session),
                        event_logs=SqlEventLogRepository(session=session),
                    )
                    return await fn(scope)
            except IntegrityError as e:
                # Constraint checked at commit rather than at flush
                raise DuplicateKeyError("transaction", ()) from e
