#!/usr/bin/env python3

"""
feindexer.indexers.base
-----------------------
Shared skeleton of every indexing job.

A job owns one :class:`~feindexer.extract.SourceDatabase` session, one
:class:`~feindexer.load.BatchWriter` and any job-scoped counters.  ``run()``
queues a delete of the core's current content, lets the subclass stream
documents through :meth:`Indexer.add_doc`, then flushes and commits once, so
the old index stays searchable until the rebuild is complete.
"""
from __future__ import annotations

import logging
import time
from typing import Any, ClassVar, Dict, Iterator, Optional

from tqdm import tqdm

from feindexer.chunker import KeyRange, count_ranges, key_ranges
from feindexer.config import DEFAULT_BATCH_SIZE, DEFAULT_CHUNK_SIZE, IndexerSettings
from feindexer.documents import Document
from feindexer.extract import SourceDatabase
from feindexer.load import BatchWriter, SolrClient
from feindexer.lookups import LookupMap, ValueSpec, populate_lookup

LOGGER = logging.getLogger(__name__)


class Counter:
    """Monotonic job-scoped counter (unique keys, sequence numbers)."""

    def __init__(self, start: int = 0) -> None:
        self.value = start

    def next(self) -> int:
        """Return the current value, then advance."""
        current = self.value
        self.value += 1
        return current

    def __repr__(self) -> str:
        return f"Counter({self.value})"


class Indexer:
    """
    Base class; subclasses set ``name`` / ``core`` and implement :meth:`index`.

    ``chunk_size`` and ``batch_size`` are class defaults tuned per job;
    configured values override them.
    """

    name: ClassVar[str] = ""
    core: ClassVar[str] = ""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE

    def __init__(
        self,
        db: SourceDatabase,
        client: SolrClient,
        settings: Optional[IndexerSettings] = None,
    ) -> None:
        self.db = db
        self.client = client
        if settings is not None:
            if settings.chunk_size is not None:
                self.chunk_size = settings.chunk_size
            if settings.batch_size is not None:
                self.batch_size = settings.batch_size
        self.writer = BatchWriter(client, batch_size=self.batch_size)
        self.log = logging.getLogger(type(self).__module__)

    # ────────────────────────────────────────────────────────────────────
    # Job lifecycle
    # ────────────────────────────────────────────────────────────────────
    def run(self) -> Dict[str, int]:
        """Full rebuild of the core; any exception aborts before the commit."""
        t0 = time.perf_counter()
        self.log.info("🚀  %s: rebuilding core %r (chunk %d, batch %d)",
                      self.name, self.core, self.chunk_size, self.batch_size)
        self.client.delete_all()
        self.index()
        stats = self.writer.finish()
        self.log.info("✅  %s finished in %.2fs", self.name, time.perf_counter() - t0)
        return stats

    def index(self) -> None:
        raise NotImplementedError

    # ────────────────────────────────────────────────────────────────────
    # Helpers for subclasses
    # ────────────────────────────────────────────────────────────────────
    def chunks(self, table: str, column: str, chunk_size: Optional[int] = None) -> Iterator[KeyRange]:
        """Key ranges over ``table.column`` with a progress bar."""
        size = chunk_size or self.chunk_size
        lo, hi = self.db.key_bounds(table, column)
        total = count_ranges(lo, hi, size)
        self.log.info("Processing %s.%s keys %s to %s in %d chunk(s)", table, column, lo, hi, total)
        for rng in tqdm(key_ranges(lo, hi, size), total=total, desc=f"{self.name} chunks", unit="chunk"):
            self.log.debug("Starting chunk %s", rng)
            yield rng

    def populate_lookup(
        self,
        sql: str,
        key_field: str,
        value_field: ValueSpec,
        label: Optional[str] = None,
        into: Optional[LookupMap] = None,
        ordered: bool = False,
        **params: Any,
    ) -> LookupMap:
        return populate_lookup(self.db, sql, key_field, value_field, label=label,
                               into=into, ordered=ordered, **params)

    def temp_table(self, name: str, select_sql: str, *indexed: str) -> None:
        """Create a session temp table and index the given columns."""
        self.db.create_temp_table(name, select_sql)
        for column in indexed:
            self.db.create_temp_index(name, column)

    def add_doc(self, doc: Document) -> None:
        self.writer.add(doc)
