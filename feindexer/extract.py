#!/usr/bin/env python3

# feindexer/extract.py
# ───────────────────────────────────────────────────────────────────────────
"""
Extraction stage: one read-only session against the front-end database.

A job holds a single SQLAlchemy connection for its whole life and reuses it
serially, so temp tables created early in ``index()`` stay visible to every
later query and vanish when the session closes.

Usage
-----
>>> with SourceDatabase(settings.db) as db:
...     lo, hi = db.key_bounds("reference", "reference_key")
...     for row in db.rows("select * from reference where reference_key >= :start "
...                        "and reference_key < :end", start=lo, end=lo + 1000):
...         ...

All SQL goes through :func:`sqlalchemy.text`, so values are bound as
``:name`` parameters.  Keep string literals free of ``:word`` sequences
(e.g. ``'MP:0000001'``); pass such values as parameters instead.

A CLI wrapper is provided for ad-hoc runs::

    python -m feindexer.extract --db-url jdbc:postgresql://db/fe \\
        "select count(*) from reference"
"""
from __future__ import annotations

import argparse
import logging
import socket
import time
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sshtunnel import SSHTunnelForwarder

from feindexer.config import DatabaseSettings, jdbc_to_sqlalchemy
from feindexer.errors import ConnectionFailure, QueryError

LOGGER = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10
_DEFAULT_PORTS = {"postgresql": 5432, "mysql": 3306}


# ───────────────────────────────────────────────────────────────────────────
#  Helpers
# ───────────────────────────────────────────────────────────────────────────
def wait_for_port(host: str, port: int, timeout: float = 30.0, interval: float = 1.0) -> None:
    """Poll until host:port accepts connections, or raise ConnectionFailure."""
    deadline = time.time() + timeout
    while True:
        try:
            with socket.create_connection((host, port), timeout=interval):
                return
        except OSError:
            if time.time() > deadline:
                raise ConnectionFailure(f"{host}:{port} not available after {timeout}s",
                                        stage="connect")
            time.sleep(interval)


def _shorten(sql: str, limit: int = 160) -> str:
    flat = " ".join(sql.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


# ───────────────────────────────────────────────────────────────────────────
#  Source database
# ───────────────────────────────────────────────────────────────────────────
class SourceDatabase:
    """
    Serial, read-only access to the source schema.

    Parameters
    ----------
    settings :
        URL, credentials and optional SSH bastion.
    engine :
        Pre-built engine (tests, or callers sharing a pool); when given,
        *settings* is only used for logging.
    """

    def __init__(self, settings: DatabaseSettings, engine: Optional[Engine] = None) -> None:
        self.settings = settings
        self._engine = engine
        self._owns_engine = engine is None
        self._conn: Optional[Connection] = None
        self._tunnel: Optional[SSHTunnelForwarder] = None
        self._temp_tables: List[str] = []

    # ────────────────────────────────────────────────────────────────────
    # Connection lifecycle
    # ────────────────────────────────────────────────────────────────────
    def connect(self) -> "SourceDatabase":
        if self._conn is not None:
            return self
        try:
            if self._engine is None:
                self._engine = create_engine(self._build_url(), pool_pre_ping=True)
            self._conn = self._engine.connect()
        except SQLAlchemyError as exc:
            self._stop_tunnel()
            raise ConnectionFailure(f"cannot connect to source database: {exc}",
                                    stage="connect") from exc
        LOGGER.info("Connected to source database %s", self._engine.url.render_as_string(hide_password=True))
        return self

    def _build_url(self):
        url = make_url(jdbc_to_sqlalchemy(self.settings.url))
        if self.settings.user:
            url = url.set(username=self.settings.user)
        if self.settings.password is not None:
            url = url.set(password=self.settings.password)
        if self.settings.ssh_host:
            remote_port = url.port or _DEFAULT_PORTS.get(url.get_backend_name(), 5432)
            local_port = self._start_tunnel(url.host or "127.0.0.1", remote_port)
            url = url.set(host="127.0.0.1", port=local_port)
        return url

    def _start_tunnel(self, remote_host: str, remote_port: int) -> int:
        LOGGER.info("Opening SSH tunnel %s → %s:%s", self.settings.ssh_host, remote_host, remote_port)
        try:
            self._tunnel = SSHTunnelForwarder(
                (self.settings.ssh_host, self.settings.ssh_port),
                ssh_username=self.settings.ssh_user,
                ssh_pkey=self.settings.ssh_key_path,
                remote_bind_address=(remote_host, remote_port),
                local_bind_address=("127.0.0.1", 0),
            )
            self._tunnel.start()
        except Exception as exc:  # paramiko and socket errors
            raise ConnectionFailure(f"SSH tunnel to {self.settings.ssh_host} failed: {exc}",
                                    stage="connect") from exc
        local_port = self._tunnel.local_bind_port
        wait_for_port("127.0.0.1", local_port, timeout=20)
        LOGGER.info("Tunnel established on localhost:%s", local_port)
        return local_port

    def _stop_tunnel(self) -> None:
        if self._tunnel is not None:
            self._tunnel.stop()
            self._tunnel = None

    def close(self) -> None:
        """Close the session (dropping its temp tables) and any tunnel."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            if self._temp_tables:
                LOGGER.debug("Session closed; dropped temp tables %s", self._temp_tables)
            self._temp_tables = []
        if self._engine is not None and self._owns_engine:
            self._engine.dispose()
            self._engine = None
        self._stop_tunnel()

    def __enter__(self) -> "SourceDatabase":
        return self.connect()

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            self.connect()
        return self._conn  # type: ignore[return-value]

    # ────────────────────────────────────────────────────────────────────
    # Queries
    # ────────────────────────────────────────────────────────────────────
    def rows(self, sql: str, **params: Any) -> Iterator[Mapping[str, Any]]:
        """Stream result rows as read-only mappings (column name → value)."""
        LOGGER.debug("SQL %s %s", _shorten(sql), params or "")
        try:
            result = self.connection.execution_options(stream_results=True).execute(text(sql), params)
            for row in result.mappings():
                yield row
        except SQLAlchemyError as exc:
            raise QueryError(f"query failed: {exc}", stage="extract", detail=sql) from exc

    def fetch_all(self, sql: str, **params: Any) -> List[Mapping[str, Any]]:
        return list(self.rows(sql, **params))

    def scalar(self, sql: str, **params: Any) -> Any:
        LOGGER.debug("SQL %s %s", _shorten(sql), params or "")
        try:
            return self.connection.execute(text(sql), params).scalar()
        except SQLAlchemyError as exc:
            raise QueryError(f"query failed: {exc}", stage="extract", detail=sql) from exc

    def key_bounds(self, table: str, column: str) -> Tuple[Optional[int], Optional[int]]:
        """``(min, max)`` of *column*; ``(None, None)`` for an empty table."""
        sql = f"select min({column}) as min_key, max({column}) as max_key from {table}"
        rows = self.fetch_all(sql)
        if not rows:
            return None, None
        return rows[0]["min_key"], rows[0]["max_key"]

    # ────────────────────────────────────────────────────────────────────
    # Session-scoped temp tables
    # ────────────────────────────────────────────────────────────────────
    def execute(self, sql: str, **params: Any) -> None:
        """Run a statement with no result set (temp-table DDL / inserts)."""
        LOGGER.debug("SQL %s", _shorten(sql))
        try:
            self.connection.execute(text(sql), params)
        except SQLAlchemyError as exc:
            raise QueryError(f"statement failed: {exc}", stage="extract", detail=sql) from exc

    def create_temp_table(self, name: str, select_sql: str, **params: Any) -> None:
        """Materialise *select_sql* as a session-scoped temp table."""
        t0 = time.perf_counter()
        self.execute(f"create temporary table {name} as {select_sql}", **params)
        self._temp_tables.append(name)
        LOGGER.info("Created temp table %s in %.2fs", name, time.perf_counter() - t0)

    def create_temp_index(self, table: str, column: str) -> None:
        self.execute(f"create index tmp_{table}_{column} on {table} ({column})")

    @property
    def temp_tables(self) -> List[str]:
        return list(self._temp_tables)


# ───────────────────────────────────────────────────────────────────────────
#  CLI
# ───────────────────────────────────────────────────────────────────────────
def _cli() -> None:
    ap = argparse.ArgumentParser(description="Run one read-only query against the source DB")
    ap.add_argument("--db-url", required=True, help="JDBC-style or SQLAlchemy URL")
    ap.add_argument("--user", default=None)
    ap.add_argument("--password", default=None)
    ap.add_argument("--limit", type=int, default=20, help="Rows to print")
    ap.add_argument("sql", help="Query text")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    settings = DatabaseSettings(url=args.db_url, user=args.user, password=args.password)
    with SourceDatabase(settings) as db:
        for i, row in enumerate(db.rows(args.sql)):
            if i >= args.limit:
                break
            print(dict(row))


if __name__ == "__main__":
    _cli()
