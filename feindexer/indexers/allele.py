#!/usr/bin/env python3

"""
feindexer.indexers.allele
-------------------------
Populates the ``allele`` core.

Phenotype IDs and text are merged from several relations (direct MP terms,
their ancestors, disease terms and their ancestors, alternate IDs and
synonyms) into one lookup each.  Disease sorting uses a global smart-alpha
rank table; alleles with no disease sort last.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Set

from feindexer import fields as F
from feindexer.chunker import KeyRange, range_predicate
from feindexer.documents import Document
from feindexer.indexers.base import Indexer
from feindexer.lookups import LookupMap
from feindexer.utils.preprocessing import omim_number, split_subtypes
from feindexer.utils.sorting import best_rank, rank_table

CELL_LINE = "Cell Line"

MARKER_NOMEN_TYPES = (
    "human name", "human synonym", "human symbol", "current symbol", "current name",
    "old symbol", "synonym", "related synonym", "old name",
)


@dataclass
class AlleleLocation:
    chromosome: Optional[str] = None
    genomic_chromosome: Optional[str] = None
    genetic_chromosome: Optional[str] = None
    start_coordinate: Optional[int] = None
    end_coordinate: Optional[int] = None
    cm_offset: Optional[float] = None
    cytogenetic_offset: Optional[str] = None

    def update(self, row: Mapping) -> None:
        """Fold one marker_location row in (rows arrive by sequence_num)."""
        chromosome = row["chromosome"]
        start = row["start_coordinate"] or 0
        if chromosome is not None:
            if self.chromosome is None:
                self.chromosome = chromosome
            if start > 0:
                self.genomic_chromosome = chromosome
            else:
                self.genetic_chromosome = chromosome
        if start > 0:
            self.start_coordinate = int(start)
        if (row["end_coordinate"] or 0) > 0:
            self.end_coordinate = int(row["end_coordinate"])
        if (row["cm_offset"] or 0) > 0:
            self.cm_offset = float(row["cm_offset"])
        if row["cytogenetic_offset"] is not None:
            self.cytogenetic_offset = row["cytogenetic_offset"]

    def add_to(self, doc: Document) -> None:
        doc.add_field(F.CHROMOSOME, self.chromosome)
        doc.add_field(F.GENOMIC_CHROMOSOME, self.genomic_chromosome)
        doc.add_field(F.GENETIC_CHROMOSOME, self.genetic_chromosome)
        doc.add_field(F.START_COORD, self.start_coordinate)
        doc.add_field(F.END_COORD, self.end_coordinate)
        doc.add_field(F.CM_OFFSET, self.cm_offset)
        doc.add_field(F.CYTOGENETIC_OFFSET, self.cytogenetic_offset)


def add_omim_numbers(lookup: LookupMap) -> None:
    """Make every ``OMIM:nnn`` value searchable as ``nnn`` too."""
    for key, values in list(lookup.items()):
        lookup.add_all(key, filter(None, (omim_number(v) for v in values)))


class AlleleIndexer(Indexer):
    name = "allele"
    core = "allele"
    chunk_size = 50_000
    batch_size = 500

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.disease_ranks: Dict[str, int] = {}

    # ────────────────────────────────────────────────────────────────────
    # Job-wide setup
    # ────────────────────────────────────────────────────────────────────
    def create_temp_tables(self) -> None:
        self.log.info("Creating allele temp tables")
        self.temp_table("tmp_allele_mp_term", """
            select atg.allele_key, mpt.term, mpt.term_id, mpt.mp_term_key
            from allele_to_genotype atg
            join mp_system ms on ms.genotype_key = atg.genotype_key
            join mp_term mpt on mpt.mp_system_key = ms.mp_system_key
            join mp_annot mpa on mpa.mp_term_key = mpt.mp_term_key
            where mpa.call = 1
        """, "allele_key", "term_id", "mp_term_key")

        self.temp_table("tmp_allele_do_term", """
            select asg.allele_key, gd.term, gd.term_id
            from allele_to_genotype asg
            join genotype_disease gd on gd.genotype_key = asg.genotype_key
        """, "allele_key", "term_id")

        self.db.create_temp_table("tmp_allele_term", """
            select mpt.allele_key, t.term_key
            from tmp_allele_mp_term mpt join term t on t.primary_id = mpt.term_id
        """)
        self.db.execute("""
            insert into tmp_allele_term (allele_key, term_key)
            select aot.allele_key, t.term_key
            from tmp_allele_do_term aot join term t on t.primary_id = aot.term_id
        """)
        self.db.create_temp_index("tmp_allele_term", "allele_key")

        self.db.create_temp_table("tmp_allele_note", """
            select distinct mpt.allele_key, replace(mpan.note, 'Background Sensitivity: ', '') as note
            from tmp_allele_mp_term mpt
            join mp_reference mpr on mpr.mp_term_key = mpt.mp_term_key
            join mp_annotation_note mpan on (mpan.mp_reference_key = mpr.mp_reference_key
                                             and mpan.note_type != 'Normal'
                                             and mpan.has_normal_qualifier = 0)
            join mp_annot ma on (mpr.mp_annotation_key = ma.mp_annotation_key and ma.call = 1)
        """)
        self.db.execute("""
            insert into tmp_allele_note (allele_key, note)
            select mn.allele_key, mn.note from allele_note mn where mn.note_type = 'General'
        """)
        self.db.execute("""
            insert into tmp_allele_note (allele_key, note)
            select mta.allele_key, mqtl.note
            from allele a
            join marker_to_allele mta on mta.allele_key = a.allele_key
            join marker_qtl_experiments mqtl on mqtl.marker_key = mta.marker_key
            where mqtl.note_type = 'TEXT-QTL' and a.allele_type = 'QTL'
        """)
        self.db.create_temp_index("tmp_allele_note", "allele_key")

        self.db.create_temp_table("tmp_allele_nomen",
                                  "select allele_key, synonym as nomen from allele_synonym")
        self.db.execute("insert into tmp_allele_nomen (allele_key, nomen) "
                        "select allele_key, name from allele")
        self.db.execute("insert into tmp_allele_nomen (allele_key, nomen) "
                        "select allele_key, symbol from allele")
        self.db.create_temp_index("tmp_allele_nomen", "allele_key")

    def init_disease_ranks(self) -> None:
        diseases = [row["disease"] for row in self.db.rows("select distinct disease from disease")]
        self.disease_ranks = rank_table(diseases)
        self.log.info("Ranked %d diseases", len(self.disease_ranks))

    # ────────────────────────────────────────────────────────────────────
    # Chunk lookups
    # ────────────────────────────────────────────────────────────────────
    def pheno_id_lookup(self, rng: KeyRange) -> LookupMap:
        p = rng.params
        ids = self.populate_lookup(
            f"select mpt.allele_key, mpt.term_id from tmp_allele_mp_term mpt "
            f"where {range_predicate('mpt.allele_key')}",
            "allele_key", "term_id", "MP IDs", **p)
        self.populate_lookup(
            f"""select mpt.allele_key, tas.ancestor_primary_id
                from tmp_allele_mp_term mpt
                join term t on t.primary_id = mpt.term_id
                join term_ancestor tas on tas.term_key = t.term_key
                where {range_predicate('mpt.allele_key')}""",
            "allele_key", "ancestor_primary_id", "MP ancestor IDs", into=ids, **p)
        self.populate_lookup(
            f"""select aot.allele_key, tas.ancestor_primary_id
                from tmp_allele_do_term aot
                join term t on t.primary_id = aot.term_id
                join term_ancestor tas on tas.term_key = t.term_key
                where {range_predicate('aot.allele_key')}""",
            "allele_key", "ancestor_primary_id", "DO ancestor IDs", into=ids, **p)
        self.populate_lookup(
            f"""select at.allele_key, ti.acc_id
                from tmp_allele_term at
                join term_ancestor tas on tas.term_key = at.term_key
                join term anc_t on anc_t.primary_id = tas.ancestor_primary_id
                join term_id ti on ti.term_key = anc_t.term_key
                where {range_predicate('at.allele_key')}""",
            "allele_key", "acc_id", "ancestor alt IDs", into=ids, **p)
        self.populate_lookup(
            f"""select at.allele_key, ti.acc_id
                from tmp_allele_term at join term_id ti on ti.term_key = at.term_key
                where {range_predicate('at.allele_key')}""",
            "allele_key", "acc_id", "alt IDs", into=ids, **p)
        add_omim_numbers(ids)
        return ids

    def pheno_text_lookup(self, rng: KeyRange) -> LookupMap:
        p = rng.params
        text = self.populate_lookup(
            f"select allele_key, note from tmp_allele_note where {range_predicate('allele_key')}",
            "allele_key", "note", "annotation notes", **p)
        self.populate_lookup(
            f"select mpt.allele_key, mpt.term from tmp_allele_mp_term mpt "
            f"where {range_predicate('mpt.allele_key')}",
            "allele_key", "term", "MP terms", into=text, **p)
        self.populate_lookup(
            f"""select aot.allele_key, tas.ancestor_term as term
                from tmp_allele_do_term aot
                join term t on t.primary_id = aot.term_id
                join term_ancestor tas on tas.term_key = t.term_key
                where {range_predicate('aot.allele_key')}""",
            "allele_key", "term", "DO ancestor terms", into=text, **p)
        self.populate_lookup(
            f"select aot.allele_key, aot.term from tmp_allele_do_term aot "
            f"where {range_predicate('aot.allele_key')}",
            "allele_key", "term", "DO terms", into=text, **p)
        self.populate_lookup(
            f"""select mpt.allele_key, tas.ancestor_term
                from tmp_allele_mp_term mpt
                join term t on t.primary_id = mpt.term_id
                join term_ancestor tas on tas.term_key = t.term_key
                where {range_predicate('mpt.allele_key')}""",
            "allele_key", "ancestor_term", "MP ancestor terms", into=text, **p)
        self.populate_lookup(
            f"""select at.allele_key, ti.synonym
                from tmp_allele_term at
                join term_ancestor tas on tas.term_key = at.term_key
                join term anc_t on anc_t.primary_id = tas.ancestor_primary_id
                join term_synonym ti on ti.term_key = anc_t.term_key
                where {range_predicate('at.allele_key')}""",
            "allele_key", "synonym", "ancestor synonyms", into=text, **p)
        self.populate_lookup(
            f"""select at.allele_key, ti.synonym
                from tmp_allele_term at join term_synonym ti on ti.term_key = at.term_key
                where {range_predicate('at.allele_key')}""",
            "allele_key", "synonym", "term synonyms", into=text, **p)
        return text

    def build_lookups(self, rng: KeyRange) -> Dict[str, LookupMap]:
        p = rng.params
        in_range = range_predicate("allele_key")
        nomen_types = ", ".join(f"'{t}'" for t in MARKER_NOMEN_TYPES)
        return {
            "pheno_ids": self.pheno_id_lookup(rng),
            "pheno_text": self.pheno_text_lookup(rng),
            "mutations": self.populate_lookup(
                f"select allele_key, mutation from allele_mutation where {in_range}",
                "allele_key", "mutation", "mutations", **p),
            "mutation_involves": self.populate_lookup(
                f"""select allele_key, related_marker_id from allele_related_marker
                    where relationship_category = 'mutation_involves' and {in_range}""",
                "allele_key", "related_marker_id", "mutation involves markers", **p),
            "expresses_component": self.populate_lookup(
                f"""select allele_key, related_marker_id from allele_related_marker
                    where relationship_category = 'expresses_component' and {in_range}""",
                "allele_key", "related_marker_id", "expresses component markers", **p),
            "marker_nomen": self.populate_lookup(
                f"""select msn.marker_key, msn.term as nomen
                    from marker_searchable_nomenclature msn
                    where msn.term_type in ({nomen_types})
                      and msn.marker_key in (select mta.marker_key from marker_to_allele mta
                                             where {range_predicate('mta.allele_key')})""",
                "marker_key", "nomen", "marker nomenclature", **p),
            "allele_nomen": self.populate_lookup(
                f"select allele_key, nomen from tmp_allele_nomen where {in_range}",
                "allele_key", "nomen", "allele nomenclature", **p),
            "ref_keys": self.populate_lookup(
                f"select allele_key, reference_key from allele_to_reference where {in_range}",
                "allele_key", "reference_key", "reference keys", **p),
            "jnum_ids": self.populate_lookup(
                f"""select atr.allele_key, r.jnum_id
                    from allele_to_reference atr join reference r on r.reference_key = atr.reference_key
                    where {range_predicate('atr.allele_key')}""",
                "allele_key", "jnum_id", "J: numbers", **p),
            "allele_ids": self.populate_lookup(
                f"select allele_key, acc_id from allele_id where {in_range}",
                "allele_key", "acc_id", "allele accession IDs", **p),
            "diseases": self.populate_lookup(
                f"select asd.allele_key, asd.disease from allele_summary_disease asd "
                f"where {range_predicate('asd.allele_key')}",
                "allele_key", "disease", "summary diseases", **p),
        }

    def alleles_with_do(self, rng: KeyRange) -> Set[str]:
        sql = f"""
            select dtd.allele_key from diseasetable_disease dtd
            where exists (select 1 from diseasetable_disease_cell dtdc
                          where dtdc.diseasetable_disease_key = dtd.diseasetable_disease_key)
              and {range_predicate('dtd.allele_key')}
        """
        return {str(row["allele_key"]) for row in self.db.rows(sql, **rng.params)}

    def allele_locations(self, rng: KeyRange) -> Dict[str, AlleleLocation]:
        sql = f"""
            select mta.allele_key, ml.chromosome, ml.start_coordinate, ml.end_coordinate,
                   ml.cm_offset, ml.cytogenetic_offset
            from marker_to_allele mta
            join marker_location ml on ml.marker_key = mta.marker_key
            where {range_predicate('mta.allele_key')}
            order by ml.sequence_num
        """
        locations: Dict[str, AlleleLocation] = {}
        for row in self.db.rows(sql, **rng.params):
            locations.setdefault(str(row["allele_key"]), AlleleLocation()).update(row)
        return locations

    # ────────────────────────────────────────────────────────────────────
    # Documents
    # ────────────────────────────────────────────────────────────────────
    def build_document(
        self,
        row: Mapping,
        lookups: Dict[str, LookupMap],
        with_do: Set[str],
        locations: Dict[str, AlleleLocation],
    ) -> Document:
        doc = Document()
        allele_key = str(row["allele_key"])
        marker_key = None if row["marker_key"] is None else str(row["marker_key"])
        is_cell_line = CELL_LINE.lower() == (row["transmission_type"] or "").lower()

        doc.add_field(F.MRK_KEY, marker_key)
        doc.add_field(F.MRK_ID, row["marker_id"])
        # mutation-involves markers find the allele through markerId and allMiMarkerIds,
        # expresses-component markers only through markerId
        doc.add_all_from_lookup(F.MRK_ID, allele_key, lookups["mutation_involves"])
        doc.add_all_from_lookup(F.ALL_MI_MARKER_IDS, allele_key, lookups["mutation_involves"])
        doc.add_all_from_lookup(F.MRK_ID, allele_key, lookups["expresses_component"])

        doc.add_field(F.ALL_KEY, allele_key)
        doc.add_field(F.ALL_SYMBOL, row["symbol"])
        doc.add_field(F.ALL_NAME, row["name"])
        doc.add_field(F.ALL_TYPE, row["allele_type"])
        doc.add_field(F.ALL_IS_WILD_TYPE, row["is_wild_type"])
        doc.add_field(F.ALL_COLLECTION, row["collection"])
        doc.add_flag(F.ALL_IS_CELLLINE, is_cell_line)
        doc.add_all(F.ALL_SUBTYPE, split_subtypes(row["allele_subtype"]))

        doc.add_flag(F.ALL_TRANSMISSION_SORT, is_cell_line)
        doc.add_field(F.ALL_SYMBOL_SORT, row["by_symbol"])
        doc.add_field(F.ALL_TYPE_SORT, row["by_allele_type"])
        doc.add_field(F.ALL_CHR_SORT, row["by_chromosome"])
        doc.add_field(F.ALL_DISEASE_SORT,
                      best_rank(self.disease_ranks, lookups["diseases"].get(allele_key)))

        doc.add_all_from_lookup(F.ALL_PHENO_ID, allele_key, lookups["pheno_ids"])
        doc.add_all_from_lookup(F.ALL_PHENO_TEXT, allele_key, lookups["pheno_text"])

        if marker_key is not None:
            doc.add_all_from_lookup(F.ALL_NOMEN, marker_key, lookups["marker_nomen"])
        doc.add_all_from_lookup(F.ALL_NOMEN, allele_key, lookups["allele_nomen"])

        doc.add_all_from_lookup(F.REF_KEY, allele_key, lookups["ref_keys"])
        doc.add_all_from_lookup(F.JNUM_ID, allele_key, lookups["jnum_ids"])
        doc.add_flag(F.ALL_HAS_DO, allele_key in with_do)

        if (location := locations.get(allele_key)) is not None:
            location.add_to(doc)

        doc.add_all_from_lookup(F.ALL_MUTATION, allele_key, lookups["mutations"])
        doc.add_all_from_lookup(F.ALL_ID, allele_key, lookups["allele_ids"])
        return doc

    def index(self) -> None:
        self.create_temp_tables()
        self.init_disease_ranks()
        for rng in self.chunks("allele", "allele_key"):
            lookups = self.build_lookups(rng)
            with_do = self.alleles_with_do(rng)
            locations = self.allele_locations(rng)
            sql = f"""
                select m.marker_key, m.primary_id as marker_id, a.allele_key, a.symbol, a.name,
                       a.allele_type, a.allele_subtype, a.collection, a.is_wild_type,
                       a.transmission_type, asn.by_symbol, asn.by_chromosome, asn.by_allele_type
                from allele a
                left join marker_to_allele mta on a.allele_key = mta.allele_key
                left join marker m on m.marker_key = mta.marker_key
                join allele_sequence_num asn on asn.allele_key = a.allele_key
                where {range_predicate('a.allele_key')}
            """
            for row in self.db.rows(sql, **rng.params):
                self.add_doc(self.build_document(row, lookups, with_do, locations))
