#!/usr/bin/env python3

"""
feindexer.utils.formatters
--------------------------
"Best match" labels for accession IDs in the quick-search ID bucket.

Each ID is first *classified* into one of a closed set of formatter kinds,
then formatted by a pure function.  Every call returns a fresh, immutable
:class:`AccIDFormat`, so nothing is shared between rows.

    >>> f = format_id("Reference", "MGI", "J:12345")
    >>> f.kind, f.match_type, f.match_display
    (<FormatterKind.REFERENCE: 'reference'>, 'MGI Reference ID', 'J:12345')
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

#: object type whose IDs are shown with their organism
HOMOLOGY = "Homology"


class FormatterKind(enum.Enum):
    GENERAL = "general"
    REFERENCE = "reference"
    TERM = "term"
    HOMOLOGY = "homology"


@dataclass(frozen=True)
class AccIDFormat:
    kind: FormatterKind
    match_type: str
    match_display: str


@dataclass(frozen=True)
class _IDRequest:
    object_type: str
    logical_db: str
    acc_id: str
    organism: Optional[str] = None
    term: Optional[str] = None
    is_subterm: Optional[bool] = None
    stage: Optional[str] = None


# ───────────────────────────────────────────────────────────────────────────
#  Classification
# ───────────────────────────────────────────────────────────────────────────
def classify(
    object_type: str,
    logical_db: str,
    acc_id: str,
    term: Optional[str] = None,
    is_subterm: Optional[bool] = None,
    stage: Optional[str] = None,
) -> FormatterKind:
    """
    Pick the formatter kind for one ID.

    Homology clusters are recognised by object type, J: numbers and DOI links
    by the ID / logical database, and vocabulary annotations by the presence
    of any term-specific argument.
    """
    if object_type == HOMOLOGY:
        return FormatterKind.HOMOLOGY
    if acc_id.startswith("J:") or (logical_db or "").lower() == "journal link":
        return FormatterKind.REFERENCE
    if term is not None or is_subterm is not None or stage is not None:
        return FormatterKind.TERM
    return FormatterKind.GENERAL


# ───────────────────────────────────────────────────────────────────────────
#  Per-kind formatting
# ───────────────────────────────────────────────────────────────────────────
def _general_type(req: _IDRequest) -> str:
    if req.acc_id.startswith(req.logical_db or ""):
        return f"{req.object_type} ID"
    return f"{req.logical_db} ID"


def _reference_type(req: _IDRequest) -> str:
    if req.acc_id.startswith("J:"):
        return "MGI Reference ID"
    if (req.logical_db or "").lower() == "journal link":
        return "doi ID"
    return _general_type(req)


def _term_type(req: _IDRequest) -> str:
    if req.is_subterm:
        return f"{req.object_type} (subterm)"
    return req.object_type


def _plain_display(req: _IDRequest) -> str:
    return req.acc_id


def _homology_display(req: _IDRequest) -> str:
    if req.organism is None:
        return req.acc_id
    return f"{req.acc_id} ({req.organism})"


def _term_display(req: _IDRequest) -> str:
    # only stage-specific anatomy IDs carry their stage
    prefix = f"{req.stage}: " if req.acc_id.startswith("EMAPS") else ""
    label = "ancestor term ID" if req.is_subterm else "term ID"
    return f"{prefix}{req.term} ({label}: {req.acc_id})"


_FORMATTERS: Dict[FormatterKind, Tuple[Callable[[_IDRequest], str], Callable[[_IDRequest], str]]] = {
    FormatterKind.GENERAL: (_general_type, _plain_display),
    FormatterKind.REFERENCE: (_reference_type, _plain_display),
    FormatterKind.TERM: (_term_type, _term_display),
    FormatterKind.HOMOLOGY: (_general_type, _homology_display),
}


def format_id(
    object_type: str,
    logical_db: str,
    acc_id: str,
    *,
    organism: Optional[str] = None,
    term: Optional[str] = None,
    is_subterm: Optional[bool] = None,
    stage: Optional[str] = None,
) -> AccIDFormat:
    """Classify and format a single accession ID."""
    kind = classify(object_type, logical_db, acc_id, term=term, is_subterm=is_subterm, stage=stage)
    req = _IDRequest(object_type, logical_db, acc_id, organism, term, is_subterm, stage)
    type_fn, display_fn = _FORMATTERS[kind]
    return AccIDFormat(kind=kind, match_type=type_fn(req), match_display=display_fn(req))
