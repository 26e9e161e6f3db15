"""Exceptions subpackage."""

from marketplace_indexer.exceptions.exceptions import (
    ChainSourceError,
    DecodeError,
    DuplicateKeyError,
    IndexerError,
    InvalidRange,
    ListingNotFound,
    MalformedLog,
    MalformedResponseError,
    MissingRequiredConfigError,
    TransientSourceError,
)

__all__ = [
    "ChainSourceError",
    "DecodeError",
    "DuplicateKeyError",
    "IndexerError",
    "InvalidRange",
    "ListingNotFound",
    "MalformedLog",
    "MalformedResponseError",
    "MissingRequiredConfigError",
    "TransientSourceError",
]
