#!/usr/bin/env python3

"""
feindexer.indexers.probe
------------------------
Populates the ``probe`` core (molecular probes and clones).

Marker locations shown next to each probe's markers follow the explicit
:data:`~feindexer.lookups.LOCATION_PRECEDENCE` rather than row order.
"""
from __future__ import annotations

from typing import Dict, Mapping

from feindexer import fields as F
from feindexer.chunker import KeyRange, range_predicate
from feindexer.documents import Document
from feindexer.indexers.base import Indexer
from feindexer.lookups import LookupMap, location_lookup
from feindexer.models import MolecularProbe, ProbeMarker
from feindexer.utils.preprocessing import searchable_segment_type

PUTATIVE = "P"


class ProbeIndexer(Indexer):
    name = "probe"
    core = "probe"
    chunk_size = 50_000
    batch_size = 5_000

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.locations: Dict[str, str] = {}

    def cache_locations(self) -> None:
        """Display location of every official mouse marker that has a probe."""
        sql = """
            select distinct ml.marker_key, ml.chromosome, ml.cm_offset,
                   ml.cytogenetic_offset, ml.start_coordinate
            from marker_to_probe p, marker_location ml, marker m
            where p.marker_key = m.marker_key
              and m.organism = 'mouse'
              and m.status = 'official'
              and m.marker_key = ml.marker_key
            order by ml.marker_key
        """
        self.locations = location_lookup(self.db.rows(sql))
        self.log.info("Cached %d marker locations", len(self.locations))

    def _marker(self, row: Mapping) -> ProbeMarker:
        return ProbeMarker(
            symbol=row["symbol"],
            primary_id=row["marker_id"],
            is_putative=True if row["qualifier"] == PUTATIVE else None,
            location=self.locations.get(str(row["marker_key"])),
        )

    def build_lookups(self, rng: KeyRange) -> Dict[str, LookupMap]:
        p = rng.params
        marker_sql = f"""
            select distinct mtp.probe_key, m.symbol, m.primary_id as marker_id,
                   s.by_symbol, mtp.qualifier, m.marker_key
            from marker_to_probe mtp, marker m, marker_sequence_num s
            where mtp.marker_key = m.marker_key
              and m.marker_key = s.marker_key
              and {range_predicate('mtp.probe_key')}
            order by s.by_symbol
        """
        lookups = {
            "markers": self.populate_lookup(marker_sql, "probe_key", self._marker, "markers",
                                            ordered=True, **p),
            "marker_ids": self.populate_lookup(marker_sql, "probe_key", "marker_id",
                                               "searchable marker IDs", ordered=True, **p),
            "reference_ids": self.populate_lookup(
                f"""select p.probe_key, r.acc_id
                    from reference_id r, probe_to_reference p
                    where r.logical_db in ('PubMed', 'MGI')
                      and r.reference_key = p.reference_key
                      and {range_predicate('p.probe_key')}""",
                "probe_key", "acc_id", "searchable reference IDs", **p),
            "collections": self.populate_lookup(
                f"""select distinct c.probe_key, c.collection
                    from probe_clone_collection c
                    where {range_predicate('c.probe_key')}""",
                "probe_key", "collection", "clone collections", **p),
        }
        lookups["collections"].sort_values()
        return lookups

    def build_document(self, row: Mapping, lookups: Dict[str, LookupMap]) -> Document:
        key = str(row["probe_key"])
        probe = MolecularProbe(
            name=row["name"],
            primary_id=row["primary_id"],
            segment_type=row["segment_type"],
            markers=list(lookups["markers"].get(key)) or None,
            collections=list(lookups["collections"].get(key)) or None,
        )
        doc = Document()
        doc.add_field(F.PRB_KEY, row["probe_key"])
        doc.add_field(F.PRB_BY_NAME, row["by_name"])
        doc.add_field(F.PRB_BY_TYPE, row["by_type"])
        doc.add_field(F.PRB_SEGMENT_TYPE, searchable_segment_type(row["segment_type"]))
        doc.add_all_from_lookup(F.PRB_MARKER_ID, key, lookups["marker_ids"])
        doc.add_all_from_lookup(F.PRB_REFERENCE_ID, key, lookups["reference_ids"])
        doc.add_json(F.PRB_PROBE, probe)
        return doc

    def index(self) -> None:
        self.cache_locations()
        for rng in self.chunks("probe", "probe_key"):
            lookups = self.build_lookups(rng)
            sql = f"""
                select p.probe_key, p.name, p.primary_id, p.segment_type, s.by_name, s.by_type
                from probe p, probe_sequence_num s
                where p.probe_key = s.probe_key
                  and {range_predicate('p.probe_key')}
            """
            for row in self.db.rows(sql, **rng.params):
                self.add_doc(self.build_document(row, lookups))
