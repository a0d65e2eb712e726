#!/usr/bin/env python3

"""
feindexer.utils.sorting
-----------------------
Human-friendly ("smart-alpha") ordering shared by every indexer.

Digit runs compare by numeric value, so ``"Chr2" < "Chr10"``; letters compare
case-insensitively with the original string as a final, case-sensitive
tiebreak.  Everything here is pure and deterministic.

    >>> smart_alpha_sorted(["Chr10", "chr1", "Chr2"])
    ['chr1', 'Chr2', 'Chr10']
"""
from __future__ import annotations

import re
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

#: sort rank given to entities with no entry in a rank table (sorts last)
SENTINEL_RANK = 9_999_999

_CHUNK_RE = re.compile(r"([0-9]+)")


# ───────────────────────────────────────────────────────────────────────────
#  Comparator
# ───────────────────────────────────────────────────────────────────────────
def smart_alpha_key(value: Optional[str]) -> Tuple[Any, ...]:
    """Sort key for *value*; ``None`` sorts before every string."""
    if value is None:
        return (0, ())
    text = str(value)
    chunks = []
    # odd pieces of a capturing split are the ASCII digit runs
    for i, chunk in enumerate(_CHUNK_RE.split(text)):
        if not chunk:
            continue
        if i % 2:
            chunks.append((0, int(chunk), chunk))
        else:
            chunks.append((1, 0, chunk.lower()))
    return (1, tuple(chunks), text)


def smart_alpha_compare(a: Optional[str], b: Optional[str]) -> int:
    """Classic three-way comparison (-1, 0, 1) built on :func:`smart_alpha_key`."""
    ka, kb = smart_alpha_key(a), smart_alpha_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def smart_alpha_sorted(values: Iterable[Optional[str]]) -> List[Optional[str]]:
    return sorted(values, key=smart_alpha_key)


# ───────────────────────────────────────────────────────────────────────────
#  Rank tables
# ───────────────────────────────────────────────────────────────────────────
def rank_table(values: Iterable[Optional[str]]) -> Dict[str, int]:
    """
    Map each distinct, non-null value to its 1-based position in smart-alpha
    order.  Used for derived sort fields such as the allele-by-disease sort.
    """
    distinct = {v for v in values if v is not None}
    return {value: rank for rank, value in enumerate(smart_alpha_sorted(distinct), start=1)}


def sort_rank(ranks: Dict[str, int], key: Hashable) -> int:
    """Real rank for *key*, or :data:`SENTINEL_RANK` if it has none."""
    return ranks.get(key, SENTINEL_RANK)  # type: ignore[arg-type]


def best_rank(ranks: Dict[str, int], keys: Iterable[Hashable]) -> int:
    """Lowest rank among *keys*; :data:`SENTINEL_RANK` if none is ranked."""
    return min((sort_rank(ranks, k) for k in keys), default=SENTINEL_RANK)
