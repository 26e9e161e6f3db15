# -*- coding: utf-8 -*-
"""Unit tests for block range chunking."""

from __future__ import annotations

import pytest

from marketplace_indexer.exceptions import InvalidRange
from marketplace_indexer.services.chunking import BlockRange, block_chunks


def test_block_chunks_splits_range_at_max_span() -> None:
    assert block_chunks(1000, 5195, 2000) == [
        BlockRange(1000, 2999),
        BlockRange(3000, 4999),
        BlockRange(5000, 5195),
    ]


def test_block_chunks_single_block_range() -> None:
    assert block_chunks(7, 7, 2000) == [BlockRange(7, 7)]


def test_block_chunks_exact_multiple_has_no_short_tail() -> None:
    chunks = block_chunks(0, 3999, 2000)
    assert chunks == [BlockRange(0, 1999), BlockRange(2000, 3999)]
    assert [c.size for c in chunks] == [2000, 2000]


@pytest.mark.parametrize(
    ("from_block", "to_block", "span"),
    [(0, 0, 1), (0, 10, 1), (5, 17, 4), (100, 99_999, 2000), (1, 2, 5000)],
)
def test_block_chunks_cover_range_without_gaps_or_overlaps(
    from_block: int, to_block: int, span: int
) -> None:
    chunks = block_chunks(from_block, to_block, span)

    assert chunks[0].start == from_block
    assert chunks[-1].end == to_block
    for prev, nxt in zip(chunks, chunks[1:]):
        assert nxt.start == prev.end + 1
    assert all(1 <= c.size <= span for c in chunks)
    assert sum(c.size for c in chunks) == to_block - from_block + 1


def test_block_chunks_rejects_inverted_range() -> None:
    with pytest.raises(InvalidRange) as exc_info:
        block_chunks(10, 9, 2000)
    assert exc_info.value.from_block == 10
    assert exc_info.value.to_block == 9


def test_block_chunks_rejects_negative_start() -> None:
    with pytest.raises(InvalidRange):
        block_chunks(-1, 9, 2000)


@pytest.mark.parametrize("span", [0, -5])
def test_block_chunks_rejects_non_positive_span(span: int) -> None:
    with pytest.raises(ValueError):
        block_chunks(0, 9, span)
