#!/usr/bin/env python3

"""
feindexer.utils.preprocessing
-----------------------------
Light-weight, stateless value transforms used by the document assemblers.

Functions here must be *pure*: they never hit the database or the index and
never mutate globals, so they are trivial to unit-test.  Anything that needs
a query lives in the indexer that owns it.
"""
from __future__ import annotations

import re
import string
from typing import Any, List, Optional

_PUNCT_RE = re.compile(f"[{re.escape(string.punctuation)}]")
# every non-word character except the apostrophe (O'Brien stays whole)
_AUTHOR_SPLIT_RE = re.compile(r"[^\w']")

#: joins title and abstract so phrase queries never span the two
TITLE_ABSTRACT_SEPARATOR = " WORDTHATCANTEXIST "
#: at most this many leading name tokens are combined into author prefixes
MAX_AUTHOR_TOKENS = 4

_GO_DAG_NAMES = {
    "Component": "Cellular Component",
    "Function": "Molecular Function",
    "Process": "Biological Process",
}


# ───────────────────────────────────────────────────────────────────────────
#  Text fields
# ───────────────────────────────────────────────────────────────────────────
def strip_punctuation(text: str) -> str:
    """Replace every ASCII punctuation character with a single space."""
    return _PUNCT_RE.sub(" ", text)


def join_title_abstract(title: Optional[str], abstract: Optional[str]) -> str:
    """Punctuation-free title and abstract glued with the separator word."""
    parts = [strip_punctuation(t) for t in (title, abstract) if t]
    return TITLE_ABSTRACT_SEPARATOR.join(parts)


def author_permutations(author: Optional[str]) -> List[str]:
    """
    Cumulative prefixes of an author's name tokens, for partial-name search.

    >>> author_permutations("Smith JA")
    ['Smith', 'Smith JA']

    Single-token names produce nothing (the full name is indexed anyway).
    """
    if author is None:
        return []
    tokens = [t for t in _AUTHOR_SPLIT_RE.split(author) if t]
    if len(tokens) < 2:
        return []
    return [" ".join(tokens[: i + 1]) for i in range(min(len(tokens), MAX_AUTHOR_TOKENS))]


def author_facet(author: Optional[str]) -> str:
    if author is None or not author.strip():
        return "No author listed"
    return author


# ───────────────────────────────────────────────────────────────────────────
#  Accession IDs
# ───────────────────────────────────────────────────────────────────────────
def jnum_numeric(jnum_id: Optional[str]) -> Optional[str]:
    """``"J:12345"`` → ``"12345"``; anything without a prefix gives ``None``."""
    if not jnum_id or ":" not in jnum_id:
        return None
    return jnum_id.split(":", 1)[1] or None


def omim_number(acc_id: Optional[str]) -> Optional[str]:
    """Numeric part of an ``OMIM:`` ID so it is searchable without the prefix."""
    if acc_id and acc_id.startswith("OMIM:"):
        return acc_id[len("OMIM:"):] or None
    return None


def clean_logical_db(logical_db: Optional[str]) -> Optional[str]:
    """Display name for a logical database."""
    if logical_db == "Sequence DB":
        return "GenBank, EMBL, DDBJ"
    return logical_db


# ───────────────────────────────────────────────────────────────────────────
#  Controlled values
# ───────────────────────────────────────────────────────────────────────────
def go_dag_name(abbrev: Optional[str]) -> Optional[str]:
    """``"Process"`` → ``"Biological Process"``; unknown names pass through."""
    return _GO_DAG_NAMES.get(abbrev, abbrev)  # type: ignore[arg-type]


def searchable_provider(provider: Optional[str]) -> Optional[str]:
    if provider in ("SWISS-PROT", "TrEMBL"):
        return "UniProt"
    return provider


def searchable_segment_type(segment_type: Optional[str]) -> str:
    """Collapse probe segment types to genomic / cDNA / primer / other."""
    lowered = (segment_type or "").lower()
    if lowered in ("genomic", "cdna"):
        return segment_type  # type: ignore[return-value]
    if lowered in ("primer", "primer pair"):
        return "primer"
    return "other"


def split_subtypes(subtypes: Optional[str]) -> List[str]:
    """Allele subtypes arrive as one comma+space separated string."""
    if not subtypes:
        return []
    return [s for s in subtypes.split(", ") if s]


def as_flag(condition: Any) -> int:
    return 1 if condition else 0
