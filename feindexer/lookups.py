#!/usr/bin/env python3

"""
feindexer.lookups
-----------------
Key → value(s) caches built from auxiliary queries.

* :class:`LookupMap` - multi-valued (set or list flavour), one per relation
  and chunk.  Missing keys read as "no values", never as an error.
* :class:`KeyMap` - single-valued cache with an explicit :class:`TieBreak`
  instead of whatever the query's ORDER BY happened to produce.
* :func:`choose_location` / :func:`format_location` - the named precedence
  used to pick one display location for a marker.

Keys are normalised to ``str`` so ``42`` and ``"42"`` address the same entry.
"""
from __future__ import annotations

import enum
import logging
import time
from typing import (Any, Callable, Dict, Hashable, Iterable, Iterator, List,
                    Mapping, Optional, Sequence, Tuple, Union)

from feindexer.utils.sorting import smart_alpha_key

LOGGER = logging.getLogger(__name__)

#: a column name, or a function computing the value from the whole row
ValueSpec = Union[str, Callable[[Mapping[str, Any]], Any]]


def _norm(key: Any) -> str:
    return str(key)


def _value(row: Mapping[str, Any], spec: ValueSpec) -> Any:
    return spec(row) if callable(spec) else row[spec]


# ───────────────────────────────────────────────────────────────────────────
#  Multi-valued lookups
# ───────────────────────────────────────────────────────────────────────────
class LookupMap:
    """
    Owning key → collection of values.

    ``ordered=False`` (default) keeps distinct values in first-seen order;
    ``ordered=True`` keeps every value, duplicates included, in add order.
    Values are only ever added, never replaced.
    """

    def __init__(self, name: str = "", ordered: bool = False) -> None:
        self.name = name
        self.ordered = ordered
        self._data: Dict[str, List[Any]] = {}
        self._seen: Dict[str, set] = {}

    def add(self, key: Any, value: Any) -> None:
        if key is None or value is None:
            return
        k = _norm(key)
        values = self._data.setdefault(k, [])
        if self.ordered:
            values.append(value)
            return
        seen = self._seen.setdefault(k, set())
        if value not in seen:
            seen.add(value)
            values.append(value)

    def add_all(self, key: Any, values: Iterable[Any]) -> None:
        for value in values:
            self.add(key, value)

    def merge(self, other: "LookupMap") -> None:
        """Fold every entry of *other* into this map."""
        for key, values in other.items():
            self.add_all(key, values)

    def get(self, key: Any) -> Tuple[Any, ...]:
        return tuple(self._data.get(_norm(key), ()))

    def first(self, key: Any, default: Any = None) -> Any:
        values = self._data.get(_norm(key))
        return values[0] if values else default

    def count(self, key: Any) -> int:
        return len(self._data.get(_norm(key), ()))

    def sort_values(self, key: Callable[[Any], Any] = smart_alpha_key) -> None:
        """Sort every value list in place (smart-alpha by default)."""
        for values in self._data.values():
            values.sort(key=key)

    def keys(self) -> List[str]:
        return list(self._data)

    def items(self) -> Iterator[Tuple[str, Tuple[Any, ...]]]:
        for key, values in self._data.items():
            yield key, tuple(values)

    def value_count(self) -> int:
        return sum(len(v) for v in self._data.values())

    def __contains__(self, key: object) -> bool:
        return _norm(key) in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        flavour = "list" if self.ordered else "set"
        return f"LookupMap({self.name!r}, {flavour}, keys={len(self)})"


def populate_lookup(
    db,
    sql: str,
    key_field: str,
    value_field: ValueSpec,
    label: Optional[str] = None,
    into: Optional[LookupMap] = None,
    ordered: bool = False,
    **params: Any,
) -> LookupMap:
    """
    Run *sql* and fold its rows into a :class:`LookupMap`.

    With *into* the rows are merged into an existing map (adding, never
    replacing), which is how several queries feed one logical field.
    """
    lookup = into if into is not None else LookupMap(label or key_field, ordered=ordered)
    t0 = time.perf_counter()
    n_rows = 0
    for row in db.rows(sql, **params):
        lookup.add(row[key_field], _value(row, value_field))
        n_rows += 1
    LOGGER.debug("  - %s: %d rows → %d keys (%.2fs)", label or lookup.name, n_rows,
                 len(lookup), time.perf_counter() - t0)
    return lookup


# ───────────────────────────────────────────────────────────────────────────
#  Single-valued caches
# ───────────────────────────────────────────────────────────────────────────
class TieBreak(enum.Enum):
    """What a :class:`KeyMap` does when two rows share a key."""

    FIRST_WINS = "first"
    LAST_WINS = "last"


class KeyMap:
    """Owning key → one value, with an explicit tie-break policy."""

    def __init__(self, name: str = "", policy: TieBreak = TieBreak.FIRST_WINS) -> None:
        self.name = name
        self.policy = policy
        self._data: Dict[str, Any] = {}

    def add(self, key: Any, value: Any) -> None:
        if key is None or value is None:
            return
        k = _norm(key)
        if self.policy is TieBreak.FIRST_WINS and k in self._data:
            return
        self._data[k] = value

    def get(self, key: Any, default: Any = None) -> Any:
        return self._data.get(_norm(key), default)

    def __contains__(self, key: object) -> bool:
        return _norm(key) in self._data

    def __getitem__(self, key: Any) -> Any:
        return self._data[_norm(key)]

    def __len__(self) -> int:
        return len(self._data)


def populate_key_map(
    db,
    sql: str,
    key_field: str,
    value_field: ValueSpec,
    label: Optional[str] = None,
    policy: TieBreak = TieBreak.FIRST_WINS,
    **params: Any,
) -> KeyMap:
    cache = KeyMap(label or key_field, policy=policy)
    n_rows = 0
    for row in db.rows(sql, **params):
        cache.add(row[key_field], _value(row, value_field))
        n_rows += 1
    LOGGER.debug("  - %s: %d rows → %d keys", label or key_field, n_rows, len(cache))
    return cache


# ───────────────────────────────────────────────────────────────────────────
#  Marker locations
# ───────────────────────────────────────────────────────────────────────────
#: which kind of location wins when a marker has several location rows;
#: a marker with none of these still shows its bare chromosome
LOCATION_PRECEDENCE: Tuple[str, ...] = ("cm_offset", "cytogenetic_offset", "start_coordinate")


def _has_location_part(row: Mapping[str, Any], part: str) -> bool:
    value = row.get(part)
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return value > 0


def choose_location(rows: Iterable[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    """
    Pick one location row following :data:`LOCATION_PRECEDENCE`.  Within one
    precedence level the first row (query order) wins; no rows gives ``None``.
    """
    rows = list(rows)
    for part in LOCATION_PRECEDENCE:
        for row in rows:
            if _has_location_part(row, part):
                return row
    return rows[0] if rows else None


def format_location(row: Optional[Mapping[str, Any]]) -> Optional[str]:
    """``"11 (63.52 cM)"``, ``"11 (B5)"`` or just ``"11"``."""
    if row is None or row.get("chromosome") is None:
        return None
    chromosome = row["chromosome"]
    if _has_location_part(row, "cm_offset"):
        return f"{chromosome} ({float(row['cm_offset']):.2f} cM)"
    if _has_location_part(row, "cytogenetic_offset"):
        return f"{chromosome} ({row['cytogenetic_offset'].strip()})"
    return str(chromosome)


def location_lookup(
    rows: Iterable[Mapping[str, Any]],
    key_field: str = "marker_key",
) -> Dict[str, str]:
    """Group location rows by *key_field* and render one location per key."""
    grouped: Dict[str, List[Mapping[str, Any]]] = {}
    for row in rows:
        grouped.setdefault(_norm(row[key_field]), []).append(row)
    out: Dict[str, str] = {}
    for key, candidates in grouped.items():
        if (text := format_location(choose_location(candidates))) is not None:
            out[key] = text
    return out
