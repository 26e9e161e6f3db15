"""Bounded linear-backoff retry for chain source calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from marketplace_indexer.exceptions import TransientSourceError

T = TypeVar("T")

_logger = structlog.get_logger("retry")


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    label: str,
    *,
    max_retries: int = 3,
    base_delay_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    logger: Any = None,
) -> T:
    """Call fn until it succeeds or max_retries attempts have failed.

    Only TransientSourceError is retried; anything else propagates on the first
    attempt. The delay before attempt n+1 is n * base_delay_seconds.

    Args:
        fn: Zero-argument coroutine factory (called once per attempt).
        label: Operation name for logs (e.g. "getLogs(1000-2999)").
        max_retries: Total number of attempts (>= 1).
        base_delay_seconds: Multiplier for the per-attempt delay.
        sleep: Injected sleep (tests pass a no-op).
        logger: Optional structlog logger; defaults to the module logger.

    Returns:
        Whatever fn returns.

    Raises:
        TransientSourceError: The last error once attempts are exhausted.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")
    log = logger or _logger
    for attempt in range(1, max_retries + 1):
        try:
            return await fn()
        except TransientSourceError as e:
            if attempt == max_retries:
                log.error(
                    "rpc_retry_exhausted",
                    rpc_label=label,
                    rpc_attempts=max_retries,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                raise
            delay = base_delay_seconds * attempt
            log.warning(
                "rpc_retry",
                rpc_label=label,
                rpc_attempt=attempt,
                rpc_max_retries=max_retries,
                rpc_retry_in_seconds=delay,
                error_message=str(e),
            )
            await sleep(delay)
    raise AssertionError("unreachable")
