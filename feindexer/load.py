#!/usr/bin/env python3
"""feindexer.load
-------------------
Batch writer that streams assembled documents into one Solr core.

Goals
-----
* **Batch** – documents are buffered and posted ``batch_size`` at a time.
* **Synchronous** – a flush finishes before the next document is built; no
  worker threads, no overlap.
* **One commit** – documents become visible only after the final commit, so
  a failed rebuild leaves the previous index searchable.
* **Fail fast** – any HTTP or connection error is a :class:`FlushError`; the
  job aborts and is re-run from scratch.

Typical use from an indexer::

    client = SolrClient(settings.index.base_url, "reference")
    writer = BatchWriter(client, batch_size=1_000)
    client.delete_all()
    for doc in docs:
        writer.add(doc)
    writer.finish()                       # last partial batch + commit

A CLI wrapper is provided for ad‑hoc loading::

    python -m feindexer.load \
        --index-url http://solr:8983/solr --core reference \
        docs.jsonl
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import requests

from feindexer.config import DEFAULT_BATCH_SIZE, DEFAULT_TIMEOUT
from feindexer.documents import Document
from feindexer.errors import FlushError

LOGGER = logging.getLogger(__name__)

DocLike = Union[Document, Mapping[str, Any]]


# ---------------------------------------------------------------------------
# Helper – resolve ENV/CLI settings
# ---------------------------------------------------------------------------

def _env_default(key: str, default: str | None = None) -> str | None:
    return os.getenv(key, default)


# ---------------------------------------------------------------------------
# Index client
# ---------------------------------------------------------------------------
class SolrClient:
    """Thin JSON client for one core's ``/update`` handler."""

    def __init__(
        self,
        base_url: str,
        core: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.core = core
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @property
    def update_url(self) -> str:
        return f"{self.base_url}/{self.core}/update"

    def _post(self, payload: Any, params: Optional[Dict[str, str]] = None, what: str = "update") -> None:
        try:
            r = self._session.post(self.update_url, data=json.dumps(payload), params=params,
                                   timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise FlushError(f"{what} on core {self.core!r} failed: {exc}",
                             stage="load", detail=self.update_url) from exc

    def add(self, docs: Sequence[Mapping[str, Any]]) -> None:
        if docs:
            self._post(list(docs), what=f"add of {len(docs)} docs")

    def delete_all(self) -> None:
        """Queue deletion of every document; only visible after :meth:`commit`."""
        self._post({"delete": {"query": "*:*"}}, what="delete")

    def commit(self) -> None:
        self._post({"commit": {}}, what="commit")

    def close(self) -> None:
        self._session.close()


# ---------------------------------------------------------------------------
# Batch writer
# ---------------------------------------------------------------------------
class BatchWriter:
    """
    Buffers documents and posts them synchronously in ``batch_size`` groups.

    For N documents and threshold K there are exactly ``ceil(N / K)`` add
    calls and one commit; concatenating the batches gives the input order.
    """

    def __init__(self, client: SolrClient, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.client = client
        self.batch_size = batch_size
        self._buffer: List[Dict[str, Any]] = []
        self._stats: Dict[str, int] = defaultdict(int)
        self._finished = False

    def add(self, doc: DocLike) -> None:
        if self._finished:
            raise FlushError("writer already finished", stage="load")
        self._buffer.append(doc.to_dict() if isinstance(doc, Document) else dict(doc))
        if len(self._buffer) >= self.batch_size:
            self.flush()

    def add_all(self, docs) -> None:
        for doc in docs:
            self.add(doc)

    def flush(self) -> None:
        """Send whatever is buffered (no commit)."""
        if not self._buffer:
            return
        batch, self._buffer = self._buffer, []
        t0 = time.perf_counter()
        self.client.add(batch)
        self._stats["batches"] += 1
        self._stats["documents"] += len(batch)
        LOGGER.debug("Sent %d docs to %s in %.2fs", len(batch), self.client.core, time.perf_counter() - t0)

    def finish(self) -> Dict[str, int]:
        """Flush the remainder, commit once, and return the statistics."""
        self.flush()
        self.client.commit()
        self._stats["commits"] += 1
        self._finished = True
        LOGGER.info("📈  %s: %d docs in %d batches, committed", self.client.core,
                    self._stats["documents"], self._stats["batches"])
        return self.stats()

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def __enter__(self) -> "BatchWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # an aborted build never commits
        if exc_type is None:
            self.finish()


# ---------------------------------------------------------------------------
# CLI – accepts newline‑delimited JSON documents
# ---------------------------------------------------------------------------

def _cli() -> None:
    p = argparse.ArgumentParser(description="Stream JSONL documents → Solr core")
    p.add_argument("input", type=Path, help="JSONL file, one document per line")
    p.add_argument("--index-url", default=_env_default("SOLR_URL", "http://localhost:8983/solr"))
    p.add_argument("--core", required=True)
    p.add_argument("--batch-size", type=int, default=int(_env_default("SOLR_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))))
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    p.add_argument("--clear", action="store_true", help="Delete existing documents first")
    args = p.parse_args()

    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    client = SolrClient(args.index_url, args.core, timeout=args.timeout)
    writer = BatchWriter(client, batch_size=args.batch_size)
    if args.clear:
        client.delete_all()

    with args.input.open() as fh:
        for line in fh:
            if not line.strip():
                continue
            writer.add(json.loads(line))

    stats = writer.finish()
    LOGGER.info("📈  Load summary: %s", stats)


if __name__ == "__main__":
    _cli()
