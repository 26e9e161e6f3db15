"""Idempotency key for ledger entries."""

from __future__ import annotations


def event_key(tx_hash: str, log_index: int) -> tuple[str, int]:
    """Return the normalized (tx_hash, log_index) key that identifies one on-chain event.

    Hashes are compared case-insensitively; providers are not consistent about casing.
    """
    return (tx_hash.strip().lower(), int(log_index))
