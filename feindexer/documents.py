#!/usr/bin/env python3

"""
feindexer.documents
-------------------
The flattened record sent to the search index.

A :class:`Document` is a field → values multimap with *distinct* semantics:
adding the same ``(field, value)`` twice keeps one copy, so an ID reachable
through two relationship paths is indexed once.  ``None`` is never stored,
which means a field with no data is simply absent from the output.

    >>> doc = Document()
    >>> doc.add_field("alleleKey", 12)
    >>> doc.add_all("markerId", ["MGI:1", "MGI:2", "MGI:1"])
    >>> doc.to_dict()
    {'alleleKey': 12, 'markerId': ['MGI:1', 'MGI:2']}
"""
from __future__ import annotations

import dataclasses
import json
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple

from feindexer.utils.preprocessing import as_flag


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _prune(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        obj = dataclasses.asdict(obj)
    if isinstance(obj, Mapping):
        return {_camel(str(k)): _prune(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, (list, tuple)):
        return [_prune(v) for v in obj]
    return obj


def to_json(obj: Any) -> str:
    """
    Serialise a value object (dataclass or mapping) for a stored JSON field:
    ``None`` members dropped, snake_case keys camelCased, keys sorted.
    """
    return json.dumps(_prune(obj), sort_keys=True, separators=(",", ":"))


class Document:
    """Write-once field → value(s) record."""

    __slots__ = ("_fields", "_seen")

    def __init__(self) -> None:
        self._fields: Dict[str, List[Any]] = {}
        self._seen: Dict[str, set] = {}

    # ────────────────────────────────────────────────────────────────────
    # Builders
    # ────────────────────────────────────────────────────────────────────
    def add_field(self, name: str, value: Any) -> None:
        if value is None:
            return
        seen = self._seen.setdefault(name, set())
        # bool is an int subclass; keep True and 1 apart
        marker = (type(value) is bool, value)
        if marker in seen:
            return
        seen.add(marker)
        self._fields.setdefault(name, []).append(value)

    def add_all(self, name: str, values: Iterable[Any]) -> None:
        for value in values:
            self.add_field(name, value)

    def add_all_from_lookup(self, name: str, key: Any, lookup) -> None:
        """Fan out every value *lookup* holds for *key*; none → field absent."""
        self.add_all(name, lookup.get(key))

    def add_flag(self, name: str, condition: Any) -> None:
        """Presence flag, always written as 1 or 0."""
        self.add_field(name, as_flag(condition))

    def add_json(self, name: str, obj: Any) -> None:
        self.add_field(name, to_json(obj))

    # ────────────────────────────────────────────────────────────────────
    # Readers
    # ────────────────────────────────────────────────────────────────────
    def get(self, name: str) -> Tuple[Any, ...]:
        return tuple(self._fields.get(name, ()))

    def first(self, name: str, default: Any = None) -> Any:
        values = self._fields.get(name)
        return values[0] if values else default

    def fields(self) -> List[str]:
        return list(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def to_dict(self) -> Dict[str, Any]:
        """Single value → scalar, several → list; fields in insertion order."""
        return {name: values[0] if len(values) == 1 else list(values)
                for name, values in self._fields.items()}

    def __repr__(self) -> str:
        return f"Document({self.to_dict()!r})"
