# -*- coding: utf-8 -*-
"""Unit tests for with_retry."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from marketplace_indexer.exceptions import MalformedResponseError, TransientSourceError
from marketplace_indexer.utils.retry import with_retry


async def test_returns_first_success_without_sleeping(no_sleep: Any) -> None:
    fn = AsyncMock(return_value=5)

    assert await with_retry(fn, "op", sleep=no_sleep) == 5
    assert fn.await_count == 1
    assert no_sleep.delays == []


async def test_retries_transient_errors_with_linear_delay(no_sleep: Any) -> None:
    fn = AsyncMock(side_effect=[TransientSourceError("a"), TransientSourceError("b"), "ok"])

    result = await with_retry(fn, "op", max_retries=3, base_delay_seconds=1.0, sleep=no_sleep)

    assert result == "ok"
    assert no_sleep.delays == [1.0, 2.0]


async def test_reraises_last_error_when_exhausted(no_sleep: Any) -> None:
    errors = [TransientSourceError(str(i)) for i in range(3)]
    fn = AsyncMock(side_effect=errors)

    with pytest.raises(TransientSourceError) as exc_info:
        await with_retry(fn, "op", max_retries=3, sleep=no_sleep)

    assert exc_info.value is errors[-1]
    assert fn.await_count == 3
    assert no_sleep.delays == [1.0, 2.0]


async def test_non_transient_errors_propagate_immediately(no_sleep: Any) -> None:
    fn = AsyncMock(side_effect=MalformedResponseError("bad"))

    with pytest.raises(MalformedResponseError):
        await with_retry(fn, "op", sleep=no_sleep)

    assert fn.await_count == 1


async def test_rejects_zero_attempts(no_sleep: Any) -> None:
    with pytest.raises(ValueError):
        await with_retry(AsyncMock(), "op", max_retries=0, sleep=no_sleep)
