#!/usr/bin/env python3

"""
feindexer.indexers.sequence
---------------------------
Populates the ``sequence`` core: a few searchable fields plus a JSON
:class:`~feindexer.models.SimpleSequence` used to render summary rows.
"""
from __future__ import annotations

from typing import Dict, Mapping

from feindexer import fields as F
from feindexer.chunker import KeyRange, range_predicate
from feindexer.documents import Document
from feindexer.indexers.base import Indexer
from feindexer.lookups import KeyMap, LookupMap, TieBreak, populate_key_map
from feindexer.models import AccessionID, GenomicLocation, SimpleMarker, SimpleSequence
from feindexer.utils.preprocessing import searchable_provider
from feindexer.utils.sorting import sort_rank


class SequenceIndexer(Indexer):
    name = "sequence"
    core = "sequence"
    chunk_size = 225_000
    batch_size = 5_000

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.sequence_num: Dict[str, int] = {}

    def cache_sequence_num(self) -> None:
        """Global default ordering: type, then provider, then length."""
        sql = """
            select sequence_key from sequence_sequence_num
            order by by_sequence_type, by_provider, by_length
        """
        self.sequence_num = {str(row["sequence_key"]): i
                             for i, row in enumerate(self.db.rows(sql), start=1)}
        self.log.info("Computed ordering for %d sequences", len(self.sequence_num))

    def build_lookups(self, rng: KeyRange) -> Dict[str, LookupMap]:
        p = rng.params
        lookups = {
            "markers": self.populate_lookup(
                f"""select s.sequence_key, m.symbol, m.primary_id, n.by_symbol, s.marker_key
                    from marker_to_sequence s, marker m, marker_sequence_num n
                    where s.marker_key = m.marker_key
                      and s.marker_key = n.marker_key
                      and {range_predicate('s.sequence_key')}
                    order by n.by_symbol""",
                "sequence_key", lambda r: SimpleMarker(r["symbol"], r["primary_id"]),
                "markers", ordered=True, **p),
            "marker_keys": self.populate_lookup(
                f"""select s.sequence_key, s.marker_key, n.by_symbol
                    from marker_to_sequence s, marker_sequence_num n
                    where s.marker_key = n.marker_key
                      and {range_predicate('s.sequence_key')}
                    order by n.by_symbol""",
                "sequence_key", lambda r: str(r["marker_key"]), "marker keys", ordered=True, **p),
            "reference_keys": self.populate_lookup(
                f"""select sequence_key, reference_key from reference_to_sequence
                    where {range_predicate('sequence_key')}""",
                "sequence_key", lambda r: str(r["reference_key"]), "reference keys",
                ordered=True, **p),
            "collections": self.populate_lookup(
                f"""select sequence_key, collection from sequence_clone_collection
                    where {range_predicate('sequence_key')}""",
                "sequence_key", "collection", "clone collections", ordered=True, **p),
            "strains": self.populate_lookup(
                f"""select s.sequence_key, o.strain
                    from sequence s, sequence_source o
                    where s.sequence_key = o.sequence_key
                      and {range_predicate('s.sequence_key')}""",
                "sequence_key", "strain", "strains", ordered=True, **p),
            "other_ids": self.populate_lookup(
                f"""select i.sequence_key, i.acc_id, i.logical_db
                    from sequence_id i, sequence s
                    where i.sequence_key = s.sequence_key
                      and (i.acc_id != s.primary_id or i.logical_db != s.logical_db)
                      and i.private = 0
                      and {range_predicate('i.sequence_key')}""",
                "sequence_key", lambda r: AccessionID(r["acc_id"], r["logical_db"]),
                "other IDs", ordered=True, **p),
        }
        lookups["collections"].sort_values()
        lookups["strains"].sort_values()
        return lookups

    def cache_locations(self, rng: KeyRange) -> KeyMap:
        return populate_key_map(
            self.db,
            f"""select sequence_key, chromosome, start_coordinate, end_coordinate, strand
                from sequence_location
                where sequence_num = 1 and {range_predicate('sequence_key')}""",
            "sequence_key",
            lambda r: GenomicLocation(
                r["chromosome"],
                None if r["start_coordinate"] is None else str(r["start_coordinate"]),
                None if r["end_coordinate"] is None else str(r["end_coordinate"]),
                r["strand"]),
            "locations", policy=TieBreak.LAST_WINS, **rng.params)

    def build_document(self, row: Mapping, lookups: Dict[str, LookupMap], locations: KeyMap) -> Document:
        key = str(row["sequence_key"])
        strains = lookups["strains"].get(key)
        seq = SimpleSequence(
            sequence_key=row["sequence_key"],
            primary_id=row["primary_id"],
            provider=row["provider"],
            sequence_type=row["sequence_type"],
            length=None if row["length"] is None else str(row["length"]),
            organism=row["organism"],
            description=row["description"],
            location=locations.get(key),
            preferred_genbank_id=row["genbank_id"],
            markers=list(lookups["markers"].get(key)) or None,
            clone_collections=list(lookups["collections"].get(key)) or None,
            other_ids=list(lookups["other_ids"].get(key)) or None,
            # the summary shows a single strain: the last in smart-alpha order
            strain=strains[-1] if strains else None,
        )

        doc = Document()
        doc.add_field(F.SEQ_KEY, row["sequence_key"])
        doc.add_field(F.BY_DEFAULT, sort_rank(self.sequence_num, key))
        doc.add_field(F.SEQ_PROVIDER, searchable_provider(row["provider"]))
        doc.add_field(F.SEQ_TYPE, row["sequence_type"])
        doc.add_all_from_lookup(F.MRK_KEY, key, lookups["marker_keys"])
        doc.add_all_from_lookup(F.REF_KEY, key, lookups["reference_keys"])
        doc.add_all(F.SEQ_STRAIN, strains)
        doc.add_json(F.SEQ_SEQUENCE, seq)
        return doc

    def index(self) -> None:
        self.cache_sequence_num()
        for rng in self.chunks("sequence", "sequence_key"):
            lookups = self.build_lookups(rng)
            locations = self.cache_locations(rng)
            sql = f"""
                select s.sequence_key, s.sequence_type, s.provider, s.length, s.description,
                       s.primary_id, s.organism, i.acc_id as genbank_id
                from sequence s
                left outer join sequence_id i on (s.sequence_key = i.sequence_key
                                                  and i.logical_db = 'Sequence DB'
                                                  and i.preferred = 1)
                where {range_predicate('s.sequence_key')}
            """
            for row in self.db.rows(sql, **rng.params):
                self.add_doc(self.build_document(row, lookups, locations))
