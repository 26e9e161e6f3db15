"""Confirmation policy: which blocks are old enough to be treated as final."""

from __future__ import annotations


def confirmed_height(latest_height: int, confirmation_depth: int) -> int:
    """Return the highest block considered final: latest_height - confirmation_depth.

    The result is negative while the chain is younger than the depth; callers treat
    that as "nothing to scan".

    Raises:
        ValueError: Non-integer inputs, negative height or negative depth.
    """
    for name, value in (("latest_height", latest_height), ("confirmation_depth", confirmation_depth)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if latest_height < 0:
        raise ValueError("latest_height must be non-negative")
    if confirmation_depth < 0:
        raise ValueError("confirmation_depth must be non-negative")
    return latest_height - confirmation_depth
