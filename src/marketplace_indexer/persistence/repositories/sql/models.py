"""SQLAlchemy table mappings for listings, purchases and the event ledger."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base for indexer tables."""


class ListingRow(Base):
    """Listing as stored by the API layer. Read here by onchain_id."""

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    onchain_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )
    seller_address: Mapped[str] = mapped_column(String(42), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # USDC base units; string keeps uint256 precision on every backend
    price_usdc: Mapped[str] = mapped_column(String(78), nullable=False, default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class PurchaseRow(Base):
    """Completed purchase. tx_hash is the natural key."""

    __tablename__ = "purchases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    listing_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    buyer_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    tx_hash: Mapped[str] = mapped_column(
        String(66), nullable=False, unique=True, index=True
    )
    amount_usdc: Mapped[str] = mapped_column(String(78), nullable=False)
    tx_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    block_number: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PurchaseRow(tx_hash={self.tx_hash[:16]}..., listing_id={self.listing_id})>"


class EventLogRow(Base):
    """Dedup/audit ledger. (tx_hash, log_index) is the idempotency key."""

    __tablename__ = "event_logs"
    __table_args__ = (
        UniqueConstraint("tx_hash", "log_index", name="uq_event_logs_tx_hash_log_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    tx_hash: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<EventLogRow(tx_hash={self.tx_hash[:16]}..., log_index={self.log_index}, "
            f"block={self.block_number}, processed={self.processed})>"
        )
