#!/usr/bin/env python3

"""
feindexer.models
----------------
Value objects stored as JSON inside documents (``sequence``, ``probe``,
``vbBrowserTerm``).  They are serialised with
:func:`feindexer.documents.to_json`, so ``None`` members are omitted and
attribute names come out camelCased (``primary_id`` → ``primaryId``).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


# ───────────────────────────────────────────────────────────────────────────
#  Shared
# ───────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class AccessionID:
    acc_id: str
    logical_db: Optional[str] = None


@dataclass(frozen=True)
class SimpleMarker:
    symbol: str
    primary_id: str


@dataclass(frozen=True)
class GenomicLocation:
    chromosome: Optional[str]
    start_coordinate: Optional[str] = None
    end_coordinate: Optional[str] = None
    strand: Optional[str] = None


# ───────────────────────────────────────────────────────────────────────────
#  sequence / probe
# ───────────────────────────────────────────────────────────────────────────
@dataclass
class SimpleSequence:
    sequence_key: int
    primary_id: Optional[str]
    provider: Optional[str]
    sequence_type: Optional[str]
    length: Optional[str]
    organism: Optional[str]
    description: Optional[str]
    location: Optional[GenomicLocation] = None
    preferred_genbank_id: Optional[str] = None
    markers: Optional[List[SimpleMarker]] = None
    clone_collections: Optional[List[str]] = None
    other_ids: Optional[List[AccessionID]] = None
    strain: Optional[str] = None


@dataclass(frozen=True)
class ProbeMarker:
    symbol: str
    primary_id: str
    is_putative: Optional[bool] = None
    location: Optional[str] = None


@dataclass
class MolecularProbe:
    name: Optional[str]
    primary_id: Optional[str]
    segment_type: Optional[str]
    markers: Optional[List[ProbeMarker]] = None
    collections: Optional[List[str]] = None


# ───────────────────────────────────────────────────────────────────────────
#  vocabulary browser
# ───────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class BrowserSynonym:
    synonym: str
    synonym_type: Optional[str] = None


@dataclass(frozen=True)
class BrowserParent:
    primary_id: str
    logical_db: Optional[str]
    term: Optional[str]
    edge_label: Optional[str] = None


@dataclass
class BrowserChild:
    primary_id: str
    logical_db: Optional[str]
    term: Optional[str]
    edge_label: Optional[str]
    has_children: int = 0
    annotation_count: Optional[int] = None
    annotation_label: Optional[str] = None
    annotation_url: Optional[str] = None


@dataclass
class BrowserTerm:
    primary_id: AccessionID
    term: Optional[str]
    definition: Optional[str] = None
    related_to_tissues: bool = False
    default_parent: Optional[BrowserParent] = None
    synonyms: Optional[List[BrowserSynonym]] = None
    secondary_ids: Optional[List[AccessionID]] = None
    all_parents: Optional[List[BrowserParent]] = None
    children: Optional[List[BrowserChild]] = None
    annotation_count: Optional[int] = None
    annotation_label: Optional[str] = None
    annotation_url: Optional[str] = None
    dag_name: Optional[str] = None
    comment: Optional[str] = None
