#!/usr/bin/env python3

"""
feindexer.indexers.reference
----------------------------
Populates the ``reference`` core: one document per literature reference,
with author search variants, punctuation-free title/abstract fields and
"has data" facets derived from the curated-data counts.
"""
from __future__ import annotations

from typing import Dict, Mapping, Tuple

from feindexer import fields as F
from feindexer.chunker import KeyRange, range_predicate
from feindexer.documents import Document
from feindexer.indexers.base import Indexer
from feindexer.lookups import LookupMap
from feindexer.utils.preprocessing import (author_facet, author_permutations,
                                           jnum_numeric, join_title_abstract,
                                           strip_punctuation)

#: (count column, document field, "has data" facet label)
COUNT_FACETS: Tuple[Tuple[str, str, str], ...] = (
    ("marker_count", F.MRK_COUNT, "Genome features"),
    ("disease_model_count", F.DO_MODEL_COUNT, "Disease models"),
    ("probe_count", F.PRB_COUNT, "Molecular probes and clones"),
    ("mapping_expt_count", F.MAP_EXPT_COUNT, "Mapping data"),
    ("gxd_index_count", F.GXD_INDEX_COUNT, "Expression literature records"),
    ("gxd_result_count", F.GXD_RESULT_COUNT, "Expression: assays results"),
    ("gxd_structure_count", F.GXD_STRUCT_COUNT, "Expression: assays results"),
    ("gxd_assay_count", F.GXD_ASSAY_COUNT, "Expression: assays results"),
    ("allele_count", F.ALL_COUNT, "Phenotypic alleles"),
    ("sequence_count", F.SEQ_COUNT, "Sequences"),
    ("go_annotation_count", F.GO_ANNOT_COUNT, "Functional annotations (GO)"),
)
NO_CURATED_DATA = "No curated data"

_CLOSURE_SQL = """
    select ha.term_key, t.term_key as ancestor_key, s.ancestor_primary_id
    from term ha, term_ancestor s, term t
    where ha.term_key = s.term_key
      and ha.vocab_name = 'Disease Ontology'
      and s.ancestor_primary_id = t.primary_id
      and t.vocab_name = 'Disease Ontology'
    union
    select ha.term_key, ha.term_key, ha.primary_id
    from term ha
    where ha.vocab_name = 'Disease Ontology'
"""

_PAIRS_SQL = """
    select marker_key, allele_key
    from marker_to_allele
    union
    select related_marker_key, allele_key
    from allele_related_marker
    where relationship_category in ('mutation_involves', 'expresses_component')
"""


def handle_count(doc: Document, field: str, count, label: str) -> bool:
    """Write *field* as a 1/0 flag; a positive count also adds its facet label."""
    found = bool(count) and count > 0
    doc.add_flag(field, found)
    if found:
        doc.add_field(F.REF_HAS_DATA, label)
    return found


def add_author_data(doc: Document, field: str, authors, facet: bool) -> None:
    for author in authors:
        doc.add_field(field, author)
        doc.add_all(field, author_permutations(author))
        if facet:
            doc.add_field(F.REF_AUTHOR_FACET, author_facet(author))


class ReferenceIndexer(Indexer):
    name = "reference"
    core = "reference"
    chunk_size = 50_000
    batch_size = 1_000

    def create_temp_tables(self) -> None:
        # DO terms with their ancestors, plus each term as its own ancestor
        self.temp_table("closure", _CLOSURE_SQL, "term_key", "ancestor_key")
        # marker → allele, following mutation-involves / expresses-component links
        self.temp_table("pairs", _PAIRS_SQL, "marker_key", "allele_key")

    def build_lookups(self, rng: KeyRange) -> Dict[str, LookupMap]:
        p = rng.params
        ref_in = range_predicate("reference_key")
        lookups = {
            "strain_ids": self.populate_lookup(
                f"""select r.reference_key, s.primary_id
                    from strain_to_reference r, strain s
                    where s.strain_key = r.strain_key
                      and {range_predicate('r.reference_key')}""",
                "reference_key", "primary_id", "strain IDs", **p),
            "disease_markers": self.populate_lookup(
                f"""select mtr.reference_key, m.primary_id as marker_id
                    from hdp_marker_to_reference mtr, marker m
                    where m.marker_key = mtr.marker_key
                      and {range_predicate('mtr.reference_key')}""",
                "reference_key", "marker_id", "disease relevant marker IDs", **p),
            "disease_ids": self.populate_lookup(
                f"""select distinct trt.reference_key, c.ancestor_primary_id as disease_id
                    from hdp_term_to_reference trt, term ha, closure c
                    where ha.term_key = c.term_key
                      and c.term_key = trt.term_key
                      and ha.vocab_name = 'Disease Ontology'
                      and {range_predicate('trt.reference_key')}""",
                "reference_key", "disease_id", "disease IDs", **p),
            "go_markers": self.populate_lookup(
                f"""select distinct m.primary_id, r.reference_key
                    from marker_to_annotation mta, annotation a, annotation_reference r, marker m
                    where mta.annotation_key = a.annotation_key
                      and a.annotation_key = r.annotation_key
                      and mta.marker_key = m.marker_key
                      and a.evidence_code != 'ND'
                      and m.organism = 'mouse'
                      and a.vocab_name = 'GO'
                      and {range_predicate('r.reference_key')}""",
                "reference_key", "primary_id", "GO/marker annotations", **p),
            "pheno_markers": self.populate_lookup(
                f"""select distinct m.primary_id, atr.reference_key
                    from marker m, pairs mta, allele a, allele_to_reference atr
                    where m.marker_key = mta.marker_key
                      and mta.allele_key = a.allele_key
                      and a.is_wild_type = 0
                      and a.allele_key = atr.allele_key
                      and {range_predicate('atr.reference_key')}""",
                "reference_key", "primary_id", "MP/marker associations", **p),
            "markers": self.populate_lookup(
                f"select reference_key, marker_key from marker_to_reference where {ref_in}",
                "reference_key", "marker_key", "associated markers", **p),
            "publishers": self.populate_lookup(
                f"select reference_key, publisher from reference_book where {ref_in}",
                "reference_key", "publisher", "book publishers", **p),
            "alleles": self.populate_lookup(
                f"select reference_key, allele_key from allele_to_reference where {ref_in}",
                "reference_key", "allele_key", "allele keys", **p),
            "authors": self.populate_lookup(
                f"select reference_key, author from reference_individual_authors where {ref_in}",
                "reference_key", "author", "authors", **p),
            "first_authors": self.populate_lookup(
                f"""select reference_key, author from reference_individual_authors
                    where sequence_num = 1 and {ref_in}""",
                "reference_key", "author", "first authors", **p),
            "last_authors": self.populate_lookup(
                f"""select reference_key, author from reference_individual_authors
                    where is_last = 1 and {ref_in}""",
                "reference_key", "author", "last authors", **p),
            "ref_ids": self.populate_lookup(
                f"select reference_key, acc_id from reference_id where {ref_in}",
                "reference_key", "acc_id", "reference IDs", **p),
        }
        return lookups

    def build_document(self, row: Mapping, lookups: Dict[str, LookupMap]) -> Document:
        doc = Document()
        ref_key = str(row["reference_key"])

        doc.add_field(F.REF_KEY, ref_key)
        doc.add_field(F.REF_AUTHOR, row["authors"])
        doc.add_field(F.REF_JOURNAL, row["journal"])
        doc.add_field(F.REF_JOURNAL_FACET, row["journal"])
        doc.add_field(F.REF_GROUPING, row["reference_group"])
        doc.add_field(F.REF_TITLE, row["title"])
        doc.add_field(F.REF_YEAR, None if row["year"] is None else str(row["year"]))
        doc.add_field(F.REF_ISSUE, row["issue"])
        doc.add_field(F.REF_VOLUME, row["vol"])
        doc.add_field(F.REF_ABSTRACT, row["abstract"])

        doc.add_all_from_lookup(F.STRAIN_ID, ref_key, lookups["strain_ids"])
        doc.add_all_from_lookup(F.REF_DISEASE_RELEVANT_MARKER_ID, ref_key, lookups["disease_markers"])
        doc.add_all_from_lookup(F.REF_DISEASE_ID, ref_key, lookups["disease_ids"])
        doc.add_all_from_lookup(F.REF_GO_MARKER_ID, ref_key, lookups["go_markers"])
        doc.add_all_from_lookup(F.REF_PHENO_MARKER_ID, ref_key, lookups["pheno_markers"])
        doc.add_all_from_lookup(F.MRK_KEY, ref_key, lookups["markers"])
        doc.add_all_from_lookup(F.REF_JOURNAL_FACET, ref_key, lookups["publishers"])
        doc.add_all_from_lookup(F.ALL_KEY, ref_key, lookups["alleles"])
        doc.add_all_from_lookup(F.REF_ID, ref_key, lookups["ref_ids"])

        add_author_data(doc, F.REF_AUTHOR_FORMATTED, lookups["authors"].get(ref_key), facet=True)
        add_author_data(doc, F.REF_FIRST_AUTHOR, lookups["first_authors"].get(ref_key), facet=False)
        add_author_data(doc, F.REF_LAST_AUTHOR, lookups["last_authors"].get(ref_key), facet=False)

        if row["title"] is not None:
            title = strip_punctuation(row["title"])
            doc.add_field(F.REF_TITLE_STEMMED, title)
            doc.add_field(F.REF_TITLE_UNSTEMMED, title)
        if row["abstract"] is not None:
            abstract = strip_punctuation(row["abstract"])
            doc.add_field(F.REF_ABSTRACT_STEMMED, abstract)
            doc.add_field(F.REF_ABSTRACT_UNSTEMMED, abstract)
        title_abstract = join_title_abstract(row["title"], row["abstract"])
        doc.add_field(F.REF_TITLE_ABSTRACT_STEMMED, title_abstract)
        doc.add_field(F.REF_TITLE_ABSTRACT_UNSTEMMED, title_abstract)

        # J:12345 is also searchable as 12345
        doc.add_field(F.REF_ID, jnum_numeric(row["jnum_id"]))

        found = False
        for column, field, label in COUNT_FACETS:
            found = handle_count(doc, field, row[column], label) or found
        if not found:
            doc.add_field(F.REF_HAS_DATA, NO_CURATED_DATA)
        doc.add_field(F.ORTHO_COUNT, 0)
        return doc

    def index(self) -> None:
        self.create_temp_tables()
        for rng in self.chunks("reference", "reference_key"):
            lookups = self.build_lookups(rng)
            self.log.info("Getting basic reference data for %s", rng)
            sql = f"""
                select r.reference_key, r.year, r.jnum_id, r.pubmed_id, r.authors, r.title,
                       r.journal, r.vol, r.issue, ra.abstract,
                       rc.marker_count, rc.disease_model_count, rc.probe_count,
                       rc.mapping_expt_count, rc.gxd_index_count, rc.gxd_result_count,
                       rc.gxd_structure_count, rc.gxd_assay_count, rc.allele_count,
                       rc.sequence_count, rc.go_annotation_count, r.reference_group
                from reference r
                inner join reference_abstract ra on r.reference_key = ra.reference_key
                inner join reference_counts rc on r.reference_key = rc.reference_key
                where {range_predicate('r.reference_key')}
            """
            for row in self.db.rows(sql, **rng.params):
                self.add_doc(self.build_document(row, lookups))
