"""Validation helpers for addresses, transaction hashes and hex quantities."""

from __future__ import annotations

from typing import Any


def is_hex_address(addr: Any) -> bool:
    """Return True if addr is a valid 0x address (42 chars)."""
    if not isinstance(addr, str):
        return False
    s = addr.strip()
    if len(s) != 42:
        return False
    if not s.startswith("0x"):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def is_tx_hash(x: Any) -> bool:
    """Return True if x is a valid transaction hash (0x + 64 hex chars = 66 chars)."""
    if not isinstance(x, str):
        return False
    s = x.strip()
    if not (s.startswith("0x") and len(s) == 66):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def parse_quantity(value: Any) -> int | None:
    """Parse a JSON-RPC quantity ("0x1a", 26, "26") into int. None if missing or invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return int(s, 16) if s.lower().startswith("0x") else int(s)
        except ValueError:
            return None
    return None


def mask_address(addr: str | None) -> str:
    """Return a masked address or hash for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"
