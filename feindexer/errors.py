"""
feindexer.errors
----------------
Exception hierarchy.  Every failure here is fatal for the running job: the
exception propagates to ``main.main()``, which logs it and exits non-zero.
A re-run always rebuilds the index from scratch, so nothing is retried.
"""
from __future__ import annotations

from typing import Any, Optional


class IndexerError(Exception):
    """Base class; *stage* names where in the job the failure happened."""

    def __init__(self, message: str, stage: Optional[str] = None, detail: Any = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.detail = detail

    def __str__(self) -> str:
        base = super().__str__()
        return f"[{self.stage}] {base}" if self.stage else base


class ConfigError(IndexerError):
    """Missing or malformed connection / index configuration."""


class ConnectionFailure(IndexerError):
    """Source database or search index unreachable (startup)."""


class QueryError(IndexerError):
    """A source query failed; ``detail`` carries the SQL text."""


class DataAnomalyError(IndexerError):
    """Source data violates an invariant the documents rely on."""


class FlushError(IndexerError):
    """The search index rejected an add, delete or commit request."""
