"""Custom exceptions for chain access, indexing and configuration."""

from __future__ import annotations


class IndexerError(Exception):
    """Base exception for indexer-related errors."""

    pass


class MissingRequiredConfigError(IndexerError):
    """Raised when a required configuration value is missing."""

    pass


class InvalidRange(IndexerError):
    """Raised when a block range is rejected before any I/O (e.g. from > to)."""

    def __init__(self, from_block: int, to_block: int, message: str | None = None) -> None:
        super().__init__(
            message or f"Invalid range: fromBlock ({from_block}) > toBlock ({to_block})"
        )
        self.from_block = from_block
        self.to_block = to_block


class ChainSourceError(IndexerError):
    """Base exception for chain log source failures."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        rpc_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.rpc_code = rpc_code
        self.cause = cause


class TransientSourceError(ChainSourceError):
    """Network, timeout or provider-side failure. Safe to retry."""


class MalformedResponseError(ChainSourceError):
    """The source answered with a payload we cannot use. Not retried."""


class DecodeError(IndexerError):
    """Raised when an event payload does not match the expected ABI shape."""

    def __init__(
        self,
        message: str,
        *,
        tx_hash: str | None = None,
        log_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash
        self.log_index = log_index


class ListingNotFound(IndexerError):
    """Raised when a purchase references an on-chain listing id with no local listing."""

    def __init__(self, onchain_id: int) -> None:
        super().__init__(f"LISTING_NOT_FOUND: no listing with onchain_id={onchain_id}")
        self.onchain_id = onchain_id


class MalformedLog(IndexerError):
    """Raised when a raw log lacks block number, transaction hash or log index."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Log is missing fields: {', '.join(missing)}")
        self.missing = missing


class DuplicateKeyError(IndexerError):
    """Raised by a store when a write violates a uniqueness constraint."""

    def __init__(self, entity: str, key: tuple[object, ...]) -> None:
        super().__init__(f"Duplicate {entity} key: {key!r}")
        self.entity = entity
        self.key = key
