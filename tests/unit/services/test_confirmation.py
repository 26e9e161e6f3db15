# -*- coding: utf-8 -*-
"""Unit tests for the confirmation policy."""

from __future__ import annotations

from typing import Any

import pytest

from marketplace_indexer.services.confirmation import confirmed_height


def test_confirmed_height_subtracts_depth() -> None:
    assert confirmed_height(5203, 3) == 5200


def test_confirmed_height_zero_depth_is_latest() -> None:
    assert confirmed_height(42, 0) == 42


def test_confirmed_height_may_be_negative_on_young_chain() -> None:
    assert confirmed_height(1, 3) == -2


@pytest.mark.parametrize(
    ("latest", "depth"),
    [(-1, 3), (10, -1), (True, 3), (10, False), (10.0, 3), ("10", 3), (None, 3)],
)
def test_confirmed_height_rejects_invalid_inputs(latest: Any, depth: Any) -> None:
    with pytest.raises(ValueError):
        confirmed_height(latest, depth)
