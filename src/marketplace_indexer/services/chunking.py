"""Split block ranges into spans an RPC provider will accept."""

from __future__ import annotations

from typing import NamedTuple

from marketplace_indexer.exceptions import InvalidRange


class BlockRange(NamedTuple):
    """Inclusive [start, end] block range."""

    start: int
    end: int

    @property
    def size(self) -> int:
        """Number of blocks in the range."""
        return self.end - self.start + 1


def block_chunks(from_block: int, to_block: int, max_span: int) -> list[BlockRange]:
    """Return ordered ranges covering [from_block, to_block] with no gaps or overlaps.

    Every range holds at most max_span blocks; only the last one may be shorter.
    E.g. (1000, 5195, 2000) -> [1000, 2999], [3000, 4999], [5000, 5195].

    Raises:
        InvalidRange: from_block > to_block or from_block < 0.
        ValueError: max_span < 1.
    """
    if max_span < 1:
        raise ValueError("max_span must be >= 1")
    if from_block > to_block:
        raise InvalidRange(from_block, to_block)
    if from_block < 0:
        raise InvalidRange(from_block, to_block, f"Invalid range: fromBlock ({from_block}) < 0")

    chunks: list[BlockRange] = []
    start = from_block
    while start <= to_block:
        end = min(start + max_span - 1, to_block)
        chunks.append(BlockRange(start, end))
        start = end + 1
    return chunks
