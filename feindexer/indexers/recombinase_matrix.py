#!/usr/bin/env python3

"""
feindexer.indexers.recombinase_matrix
-------------------------------------
Populates the ``recombinaseMatrix`` core: one document per cell of the
anatomy × recombinase-allele grid shown on driver (marker) pages.

Results are annotated to stage-specific EMAPS structures.  Walking up the
EMAPS DAG keeps ancestors unreachable at a given stage out of the counts;
cells are only mapped to their EMAPA terms once a chunk is fully
aggregated (see :mod:`feindexer.aggregate`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from feindexer import fields as F
from feindexer.aggregate import CellBlock, Outcome
from feindexer.chunker import KeyRange, range_predicate
from feindexer.documents import Document
from feindexer.indexers.base import Counter, Indexer
from feindexer.lookups import LookupMap
from feindexer.utils.preprocessing import as_flag
from feindexer.utils.sorting import smart_alpha_key

MARKER = "marker"
ALLELE = "allele"
MOUSE = "mouse"

_TYPE_ORDER = {MARKER: 0, ALLELE: 1}
_ORGANISM_ORDER = {"mouse": 0, "human": 1, "rat": 2}
_SUBTYPE_ORDER = {"Targeted": 0, "Endonuclease-mediated": 1}


@dataclass(frozen=True)
class ColumnHeader:
    object_type: str
    object_key: int
    symbol: str
    organism: Optional[str]
    object_subtype: Optional[str]


def column_sort_key(col: ColumnHeader) -> Tuple[Any, ...]:
    """
    Matrix column order: the marker column first, then alleles by driver
    organism (mouse, human, rat, others, "Not Specified"), by kind (targeted,
    endonuclease-mediated, transgenic allele, transgene, anything else), by
    smart-alpha symbol and finally by key.
    """
    if col.organism in _ORGANISM_ORDER:
        organism = _ORGANISM_ORDER[col.organism]
    else:
        organism = 4 if col.organism == "Not Specified" else 3

    if col.object_subtype in _SUBTYPE_ORDER:
        subtype = _SUBTYPE_ORDER[col.object_subtype]
    elif col.object_subtype == "Transgenic":
        subtype = 3 if (col.symbol or "").startswith("Tg(") else 2
    else:
        subtype = 4

    return (_TYPE_ORDER.get(col.object_type, 2), organism, subtype,
            smart_alpha_key(col.symbol), col.object_key)


@dataclass
class DriverInfo:
    primary_id: str
    symbol: str
    organism: Optional[str]
    mouse_marker_id: Optional[str] = None

    @property
    def display_id(self) -> Optional[str]:
        """ID shown for the driver: non-mouse drivers use their mouse ortholog."""
        if self.organism == MOUSE:
            return self.primary_id
        return self.mouse_marker_id


@dataclass
class AlleleInfo:
    symbol: str
    primary_id: str
    allele_type: Optional[str]
    driver_organism: Optional[str]
    seq_num: int = 0


class RecombinaseMatrixIndexer(Indexer):
    name = "recombinaseMatrix"
    core = "recombinaseMatrix"
    # drivers are few; one chunk normally covers them all
    chunk_size = 25_000_000
    batch_size = 10_000

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.unique_key = Counter(start=1)
        self.non_mouse = 0
        self.anatomy_term: Dict[str, str] = {}
        self.anatomy_id: Dict[str, str] = {}
        self.emaps_to_emapa: Dict[str, str] = {}
        self.emaps_ancestors = LookupMap("EMAPS ancestors", ordered=True)
        self.anatomy_parents = LookupMap("EMAPA parent IDs", ordered=True)
        self.anatomy_ancestors = LookupMap("EMAPA ancestor keys", ordered=True)

    # ────────────────────────────────────────────────────────────────────
    # Global anatomy caches
    # ────────────────────────────────────────────────────────────────────
    def build_anatomy_caches(self) -> None:
        for row in self.db.rows("select term_key, primary_id, term from term where vocab_name = 'EMAPA'"):
            key = str(row["term_key"])
            self.anatomy_term[key] = row["term"]
            self.anatomy_id[key] = row["primary_id"]

        for row in self.db.rows("""select term_key, emapa_term_key from term_emap
                                   where emapa_term_key is not null"""):
            self.emaps_to_emapa[str(row["term_key"])] = str(row["emapa_term_key"])
        self.log.info(" - mapped %d EMAPS terms to EMAPA", len(self.emaps_to_emapa))

        self.populate_lookup(
            """select a.term_key, a.ancestor_term_key
               from term t, term_ancestor a
               where t.vocab_name = 'EMAPS'
                 and t.term_key = a.term_key""",
            "term_key", lambda r: str(r["ancestor_term_key"]), into=self.emaps_ancestors)
        self.populate_lookup(
            """select tc.child_term_key, p.primary_id as parent_id
               from term t, term_child tc, term p
               where t.vocab_name = 'EMAPA'
                 and t.term_key = tc.child_term_key
                 and tc.term_key = p.term_key""",
            "child_term_key", "parent_id", into=self.anatomy_parents)
        self.populate_lookup(
            """select t.term_key, a.ancestor_term_key
               from term t, term_ancestor a
               where t.vocab_name = 'EMAPA'
                 and t.term_key = a.term_key""",
            "term_key", "ancestor_term_key", into=self.anatomy_ancestors)
        self.log.info(" - cached data for %d anatomy terms", len(self.anatomy_term))

    # ────────────────────────────────────────────────────────────────────
    # Per-chunk caches
    # ────────────────────────────────────────────────────────────────────
    def build_marker_cache(self, rng: KeyRange) -> Dict[str, DriverInfo]:
        sql = f"""
            select distinct m.marker_key, m.symbol, m.primary_id, m.organism,
                   m.mouse_marker_key, m.mouse_marker_id
            from marker m, allele a
            where m.marker_key = a.driver_key
              and {range_predicate('m.marker_key')}
        """
        drivers = {
            str(row["marker_key"]): DriverInfo(row["primary_id"], row["symbol"], row["organism"],
                                               row["mouse_marker_id"])
            for row in self.db.rows(sql, **rng.params)
        }
        self.log.info(" - cached data for %d markers", len(drivers))
        return drivers

    def build_allele_cache(self, rng: KeyRange) -> Dict[str, AlleleInfo]:
        sql = f"""
            select distinct a.allele_key, a.symbol, a.primary_id, a.allele_type, m.organism
            from allele a, recombinase_expression e, marker m
            where a.allele_key = e.allele_key
              and e.driver_key = m.marker_key
              and {range_predicate('m.marker_key')}
        """
        alleles: Dict[str, AlleleInfo] = {}
        columns: List[ColumnHeader] = []
        for row in self.db.rows(sql, **rng.params):
            alleles[str(row["allele_key"])] = AlleleInfo(row["symbol"], row["primary_id"],
                                                         row["allele_type"], row["organism"])
            columns.append(ColumnHeader(ALLELE, row["allele_key"], row["symbol"],
                                        row["organism"], row["allele_type"]))
        for seq_num, col in enumerate(sorted(columns, key=column_sort_key), start=1):
            alleles[str(col.object_key)].seq_num = seq_num
        self.log.info(" - cached data for %d alleles", len(alleles))
        return alleles

    def collate_cells(self, rng: KeyRange) -> CellBlock:
        """Aggregate the chunk's results into EMAPS-keyed cells."""
        sql = f"""
            select r.allele_key, r.driver_key, m.organism, r.result_key,
                   r.structure_key, r.is_detected
            from recombinase_expression r, marker m
            where r.driver_key = m.marker_key
              and {range_predicate('r.driver_key')}
        """
        block = CellBlock()
        n = 0
        for n, row in enumerate(self.db.rows(sql, **rng.params), start=1):
            emaps_key = str(row["structure_key"])
            block.observe(str(row["driver_key"]), ALLELE, str(row["allele_key"]), emaps_key,
                          Outcome.parse(row["is_detected"]), self.emaps_ancestors.get(emaps_key))
        self.log.info(" - collated %d results into %d cells", n, len(block))
        return block

    # ────────────────────────────────────────────────────────────────────
    # Documents
    # ────────────────────────────────────────────────────────────────────
    def build_document(self, driver_id: str, allele: AlleleInfo, structure_key: str, cell) -> Document:
        doc = Document()
        doc.add_field(F.CELL_TYPE, "recombinase")
        doc.add_field(F.UNIQUE_KEY, self.unique_key.next())
        doc.add_all_from_lookup(F.PARENT_ANATOMY_ID, structure_key, self.anatomy_parents)
        doc.add_all_from_lookup(F.ANCESTOR_ANATOMY_KEY, structure_key, self.anatomy_ancestors)
        doc.add_field(F.ANATOMY_TERM, self.anatomy_term.get(structure_key))
        doc.add_field(F.ANATOMY_ID, self.anatomy_id.get(structure_key))
        doc.add_field(F.MRK_ID, driver_id)
        doc.add_field(F.SYMBOL, allele.symbol)
        doc.add_field(F.ORGANISM, allele.driver_organism)
        doc.add_field(F.COLUMN_ID, allele.primary_id)
        doc.add_field(F.ALL_RESULTS, cell.all_results)
        doc.add_field(F.DETECTED_RESULTS, cell.detected)
        doc.add_field(F.NOT_DETECTED_RESULTS, cell.not_detected)
        doc.add_field(F.ANY_AMBIGUOUS, as_flag(cell.any_ambiguous))
        doc.add_field(F.CHILDREN, cell.children)
        doc.add_field(F.AMBIGUOUS_OR_NOT_DETECTED_DESCENDANTS, as_flag(cell.questionable_descendants))
        doc.add_field(F.BY_COLUMN, allele.seq_num)
        return doc

    def emit_cells(self, block: CellBlock, drivers: Mapping[str, DriverInfo],
                   alleles: Mapping[str, AlleleInfo]) -> None:
        for key, cell in block.collapse(self.emaps_to_emapa).sorted_items():
            driver = drivers.get(key.entity_key)
            if driver is None or (driver_id := driver.display_id) is None:
                # non-mouse driver without a mouse ortholog
                continue
            allele = alleles[key.object_key]
            if self.anatomy_id.get(key.term_key) is None:
                self.log.info("ID null for structure %s", key.term_key)
            if allele.driver_organism != MOUSE:
                self.non_mouse += 1
            self.add_doc(self.build_document(driver_id, allele, key.term_key, cell))

    def index(self) -> None:
        self.build_anatomy_caches()
        for rng in self.chunks("allele", "driver_key"):
            drivers = self.build_marker_cache(rng)
            if not drivers:
                self.log.info(" - no markers with data in %s; moving on", rng)
                continue
            alleles = self.build_allele_cache(rng)
            self.emit_cells(self.collate_cells(rng), drivers, alleles)
        self.log.info("Built %d cells (%d for non-mouse drivers)", self.unique_key.value - 1, self.non_mouse)
