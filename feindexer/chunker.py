#!/usr/bin/env python3

"""
feindexer.chunker
-----------------
Split a monotonic entity-key domain into fixed-size, half-open ranges so
only one chunk's lookup maps are resident at a time.

Every chunk-scoped query filters with ``key >= :start AND key < :end``
(see :data:`RANGE_PREDICATE`).  The last range may overshoot the maximum
key; the overshoot just matches no rows.
"""
from __future__ import annotations

from typing import Iterator, NamedTuple, Optional

#: the one range convention used by every chunk-scoped query
RANGE_PREDICATE = "{column} >= :start and {column} < :end"


class KeyRange(NamedTuple):
    start: int
    end: int

    def __contains__(self, key: object) -> bool:  # type: ignore[override]
        return isinstance(key, int) and self.start <= key < self.end

    @property
    def params(self) -> dict:
        """Bind parameters for :data:`RANGE_PREDICATE`."""
        return {"start": self.start, "end": self.end}

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


def range_predicate(column: str) -> str:
    """``range_predicate("r.reference_key")`` → SQL filter for one chunk."""
    return RANGE_PREDICATE.format(column=column)


def key_ranges(
    min_key: Optional[int],
    max_key: Optional[int],
    chunk_size: int,
) -> Iterator[KeyRange]:
    """
    Yield ascending, disjoint ``[start, start + chunk_size)`` ranges covering
    ``[min_key, max_key]``.  An empty table (``None`` bounds) or
    ``min_key > max_key`` yields nothing.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if min_key is None or max_key is None or min_key > max_key:
        return
    start = min_key
    while start <= max_key:
        yield KeyRange(start, start + chunk_size)
        start += chunk_size


def count_ranges(min_key: Optional[int], max_key: Optional[int], chunk_size: int) -> int:
    """Number of ranges :func:`key_ranges` will yield (for progress bars)."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if min_key is None or max_key is None or min_key > max_key:
        return 0
    return -(-(max_key - min_key + 1) // chunk_size)
