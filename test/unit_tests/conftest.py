#!/usr/bin/env python3

"""
Shared fakes: a source database answering queries by SQL fragment and a
search client that records what it was sent.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Tuple, Union

import pytest

Rows = Union[List[Mapping[str, Any]], Callable[[Dict[str, Any]], List[Mapping[str, Any]]]]


def _flat(sql: str) -> str:
    return " ".join(sql.split()).lower()


class FakeDB:
    """
    Answers ``rows(sql)`` with the first registered response whose fragment
    occurs in the (whitespace-normalised) SQL; anything else returns no rows.
    A response may be a callable taking the bind parameters.
    """

    def __init__(self) -> None:
        self.responses: List[Tuple[str, Rows]] = []
        self.bounds: Dict[str, Tuple[Any, Any]] = {}
        self.queries: List[Tuple[str, Dict[str, Any]]] = []
        self.statements: List[str] = []
        self.temp_tables: List[str] = []

    def on(self, fragment: str, rows: Rows) -> "FakeDB":
        self.responses.append((_flat(fragment), rows))
        return self

    def with_bounds(self, table: str, column: str, lo: Any, hi: Any) -> "FakeDB":
        self.bounds[f"{table}.{column}"] = (lo, hi)
        return self

    def rows(self, sql: str, **params: Any):
        self.queries.append((sql, params))
        flat = _flat(sql)
        for fragment, rows in self.responses:
            if fragment in flat:
                data = rows(params) if callable(rows) else rows
                return iter([dict(r) for r in data])
        return iter([])

    def fetch_all(self, sql: str, **params: Any):
        return list(self.rows(sql, **params))

    def key_bounds(self, table: str, column: str):
        return self.bounds.get(f"{table}.{column}", (None, None))

    def execute(self, sql: str, **params: Any) -> None:
        self.statements.append(_flat(sql))

    def create_temp_table(self, name: str, select_sql: str, **params: Any) -> None:
        self.statements.append(f"create temporary table {name} as {_flat(select_sql)}")
        self.temp_tables.append(name)

    def create_temp_index(self, table: str, column: str) -> None:
        self.statements.append(f"create index tmp_{table}_{column} on {table} ({column})")

    def ran(self, fragment: str) -> bool:
        """Whether any query containing *fragment* was issued."""
        return any(_flat(fragment) in _flat(sql) for sql, _ in self.queries)


class RecordingClient:
    def __init__(self, core: str = "test") -> None:
        self.core = core
        self.batches: List[List[Dict[str, Any]]] = []
        self.deletes = 0
        self.commits = 0
        self.closed = False
        self.calls: List[str] = []

    def add(self, docs) -> None:
        self.batches.append(list(docs))
        self.calls.append("add")

    def delete_all(self) -> None:
        self.deletes += 1
        self.calls.append("delete")

    def commit(self) -> None:
        self.commits += 1
        self.calls.append("commit")

    def close(self) -> None:
        self.closed = True

    @property
    def docs(self) -> List[Dict[str, Any]]:
        return [doc for batch in self.batches for doc in batch]


@pytest.fixture
def fake_db():
    return FakeDB()


@pytest.fixture
def client():
    return RecordingClient()
