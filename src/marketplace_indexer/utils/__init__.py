# -*- coding: utf-8 -*-
"""Utility modules."""

from marketplace_indexer.utils.dedupe import event_key
from marketplace_indexer.utils.retry import with_retry
from marketplace_indexer.utils.validation import (
    is_hex_address,
    is_tx_hash,
    mask_address,
    parse_quantity,
)

__all__ = [
    "event_key",
    "is_hex_address",
    "is_tx_hash",
    "mask_address",
    "parse_quantity",
    "with_retry",
]
