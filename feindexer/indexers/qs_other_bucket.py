#!/usr/bin/env python3

"""
feindexer.indexers.qs_other_bucket
----------------------------------
Populates the ``qsOtherBucket`` core behind the quick search's "other IDs"
bucket: one document per searchable accession ID of an object that has no
bucket of its own (sequences, probes, mapping experiments, homology classes,
adult anatomy terms, references, genotypes, antibodies, images and
expression assays).

Every section walks one query ordered by the object's primary ID; a change
of primary ID starts a new :class:`QSObject`.  Primary IDs outrank
secondary ones through the search-term weight.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from feindexer import fields as F
from feindexer.documents import Document
from feindexer.indexers.base import Counter, Indexer
from feindexer.lookups import LookupMap
from feindexer.utils.formatters import HOMOLOGY, format_id
from feindexer.utils.preprocessing import clean_logical_db

PRIMARY_ID_WEIGHT = 1000
SECONDARY_ID_WEIGHT = 950

#: homology organisms in the order they appear in a class description
_CLASS_ORGANISMS = ("human", "mouse", "rat", "zebrafish")

#: feature-type ancestors too generic to be useful as facets
_GENERIC_FEATURE_TYPES = ("other feature type", "other genome feature", "all feature types")


@dataclass
class QSObject:
    """Fields shared by every document indexed for one object."""

    primary_id: Optional[str]
    name: Optional[str]
    object_type: str
    object_subtype: Optional[str] = None
    detail_uri: Optional[str] = None
    marker_type_facets: List[str] = field(default_factory=list)

    def new_document(self) -> Document:
        doc = Document()
        doc.add_field(F.QS_PRIMARY_ID, self.primary_id)
        doc.add_field(F.QS_NAME, self.name)
        doc.add_field(F.QS_OBJECT_TYPE, self.object_type)
        doc.add_field(F.QS_OBJECT_SUBTYPE, self.object_subtype)
        doc.add_field(F.QS_DETAIL_URI, self.detail_uri)
        doc.add_all(F.QS_MARKER_TYPE_FACETS, self.marker_type_facets)
        return doc


def homology_class_description(counts: Mapping[str, int], mouse_symbols: Optional[str] = None) -> str:
    """``"Class with 1 human, 1 mouse (Pax6), 1 rat"`` from per-organism counts."""
    parts = []
    for organism in _CLASS_ORGANISMS:
        if (n := counts.get(organism) or 0) <= 0:
            continue
        part = f"{n} {organism}"
        if organism == "mouse" and mouse_symbols:
            part += f" ({mouse_symbols})"
        parts.append(part)
    return "Class with " + ", ".join(parts)


def _grouped(rows: Iterable[Mapping], column: str) -> Iterator[Tuple[str, List[Mapping]]]:
    """Consecutive rows sharing the same value in *column*."""
    for key, group in itertools.groupby(rows, key=lambda r: r[column]):
        yield key, list(group)


class QSOtherBucketIndexer(Indexer):
    name = "qsOtherBucket"
    core = "qsOtherBucket"
    batch_size = 5_000

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.unique_key = Counter(start=0)
        # display order when the search does not boost anything
        self.seq_num = Counter(start=0)

    def add_id(
        self,
        obj: QSObject,
        acc_id: Optional[str],
        logical_db: Optional[str],
        weight: int,
        seq_num: int,
        id_type: Optional[str] = None,
        organism: Optional[str] = None,
    ) -> None:
        """Index *acc_id* as a search term for *obj*."""
        if acc_id is None:
            return
        fmt = format_id(id_type or obj.object_type, logical_db, acc_id, organism=organism)
        doc = obj.new_document()
        doc.add_field(F.QS_SEARCH_TERM_EXACT, acc_id)
        doc.add_field(F.QS_SEARCH_TERM_DISPLAY, fmt.match_display)
        doc.add_field(F.QS_SEARCH_TERM_TYPE, fmt.match_type)
        doc.add_field(F.QS_SEARCH_TERM_WEIGHT, weight)
        doc.add_field(F.QS_SEQUENCE_NUM, seq_num)
        doc.add_field(F.UNIQUE_KEY, self.unique_key.next())
        self.add_doc(doc)

    def add_primary(self, obj: QSObject, logical_db: Optional[str], id_type: Optional[str] = None) -> None:
        self.add_id(obj, obj.primary_id, logical_db, PRIMARY_ID_WEIGHT, self.seq_num.next(), id_type)

    def add_secondary(self, obj: QSObject, acc_id: Optional[str], logical_db: Optional[str],
                      id_type: Optional[str] = None) -> None:
        """Other IDs of *obj*; the primary ID itself is skipped."""
        if acc_id == obj.primary_id:
            return
        self.add_id(obj, acc_id, logical_db, SECONDARY_ID_WEIGHT, self.seq_num.value, id_type)

    def _done(self, label: str, start: int) -> None:
        self.log.info("done with %d %s", self.seq_num.value - start, label)

    # ────────────────────────────────────────────────────────────────────
    # Sequences and probes
    # ────────────────────────────────────────────────────────────────────
    def index_sequences(self) -> None:
        self.log.info(" - indexing sequences")
        start = self.seq_num.value
        sql = """
            select s.primary_id, s.logical_db as primary_ldb, s.sequence_type,
                   s.description, i.acc_id as other_id, i.logical_db as other_ldb,
                   n.by_sequence_type
            from sequence s
            inner join sequence_sequence_num n on (s.sequence_key = n.sequence_key)
            left outer join sequence_id i on (s.sequence_key = i.sequence_key and i.private = 0)
            where s.organism = 'mouse'
            order by n.by_sequence_type, s.sequence_key
        """
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            first = rows[0]
            seq = QSObject(primary_id, first["description"], "Sequence", first["sequence_type"],
                           f"/sequence/{primary_id}")
            self.add_primary(seq, clean_logical_db(first["primary_ldb"]))
            for row in rows:
                self.add_secondary(seq, row["other_id"], clean_logical_db(row["other_ldb"]))
        self._done("sequences", start)

    def index_sequence_ids_for_probes(self) -> None:
        self.log.info(" - indexing sequence IDs for probes and clones")
        start = self.seq_num.value
        sql = """
            select p.primary_id, p.name, p.segment_type, p.logical_db,
                   seq.acc_id, seq.logical_db as other_ldb, s.by_name
            from probe p
            inner join probe_sequence_num s on (p.probe_key = s.probe_key)
            inner join probe_to_sequence pts on (p.probe_key = pts.probe_key)
            inner join sequence_id seq on (pts.sequence_key = seq.sequence_key)
            order by p.primary_id
        """
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            probe = QSObject(primary_id, rows[0]["name"], "Probe/Clone", rows[0]["segment_type"],
                             f"/probe/{primary_id}")
            self.seq_num.next()
            for row in rows:
                self.add_id(probe, row["acc_id"], clean_logical_db(row["other_ldb"]),
                            SECONDARY_ID_WEIGHT, self.seq_num.value, id_type="Sequence")
        self._done("sequence IDs for probes and clones", start)

    def index_probes(self) -> None:
        self.log.info(" - indexing probes and clones")
        start = self.seq_num.value
        sql = """
            select p.primary_id, p.name, p.segment_type, p.logical_db,
                   i.acc_id, i.logical_db as other_ldb, s.by_name
            from probe p
            inner join probe_sequence_num s on (p.probe_key = s.probe_key)
            left outer join probe_id i on (p.probe_key = i.probe_key)
            order by p.primary_id
        """
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            first = rows[0]
            probe = QSObject(primary_id, first["name"], "Probe/Clone", first["segment_type"],
                             f"/probe/{primary_id}")
            self.add_primary(probe, first["logical_db"])
            for row in rows:
                self.add_secondary(probe, row["acc_id"], row["other_ldb"])
        self._done("probes and clones", start)

    def index_probe_ids_for_sequences(self) -> None:
        self.log.info(" - indexing probe IDs for sequences")
        start = self.seq_num.value
        sql = """
            select seq.primary_id, seq.description, seq.sequence_type, s.by_sequence_type,
                   p.acc_id, p.logical_db as other_ldb
            from sequence seq
            inner join probe_to_sequence pts on (pts.sequence_key = seq.sequence_key)
            inner join sequence_sequence_num s on (pts.sequence_key = s.sequence_key)
            inner join probe_id p on (pts.probe_key = p.probe_key)
            order by seq.primary_id
        """
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            seq = QSObject(primary_id, rows[0]["description"], "Sequence", rows[0]["sequence_type"],
                           f"/sequence/{primary_id}")
            for row in rows:
                self.add_id(seq, row["acc_id"], clean_logical_db(row["other_ldb"]),
                            SECONDARY_ID_WEIGHT, self.seq_num.value)
        self._done("probe IDs for sequences", start)

    # ────────────────────────────────────────────────────────────────────
    # Mapping and homology
    # ────────────────────────────────────────────────────────────────────
    def index_mapping(self) -> None:
        self.log.info(" - indexing mapping")
        start = self.seq_num.value
        # mini-citation without "et al." for display
        sql = """
            select s.primary_id, s.experiment_type,
                   replace(r.mini_citation, 'et al.,', '') as description,
                   i.acc_id as other_id, i.logical_db as other_ldb
            from mapping_experiment s
            inner join reference r on (s.reference_key = r.reference_key)
            left outer join mapping_id i on (s.experiment_key = i.experiment_key and i.private = 0)
            order by s.primary_id
        """
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            expt = QSObject(primary_id, rows[0]["description"], "Mapping Experiment",
                            rows[0]["experiment_type"], f"/mapping/{primary_id}")
            self.add_primary(expt, "MGI")
            for row in rows:
                self.add_secondary(expt, row["other_id"], row["other_ldb"])
        self._done("mapping experiments", start)

    def mouse_symbols_by_cluster(self) -> Dict[str, str]:
        """Comma-separated mouse marker symbols per homology cluster."""
        sql = """
            select hc.cluster_key, m.symbol
            from homology_cluster hc, homology_cluster_organism hco,
                 homology_cluster_organism_to_marker hcom, marker m
            where hc.source = 'Alliance Direct'
              and hc.cluster_key = hco.cluster_key
              and hco.organism = 'mouse'
              and hco.cluster_organism_key = hcom.cluster_organism_key
              and hcom.marker_key = m.marker_key
            order by 1, 2
        """
        symbols = self.populate_lookup(sql, "cluster_key", "symbol", "mouse symbols per cluster",
                                       ordered=True)
        return {key: ", ".join(values) for key, values in symbols.items()}

    def feature_type_facets(self) -> LookupMap:
        """Feature types (and their useful ancestors) of each cluster's mouse marker."""
        facets = LookupMap("feature type facets")
        mouse_markers = """
              m.organism = 'mouse'
              and m.status != 'withdrawn'
              and m.marker_key = otm.marker_key
              and otm.cluster_organism_key = o.cluster_organism_key
              and o.cluster_key = hc.cluster_key
              and hc.source = 'Alliance Direct'
        """
        self.populate_lookup(
            f"""select hc.cluster_key, m.marker_subtype as term
                from marker m, homology_cluster_organism_to_marker otm,
                     homology_cluster_organism o, homology_cluster hc
                where {mouse_markers}""",
            "cluster_key", "term", into=facets)
        excluded = ", ".join(f"'{t}'" for t in _GENERIC_FEATURE_TYPES)
        self.populate_lookup(
            f"""select hc.cluster_key, a.ancestor_term as term
                from term t, term_ancestor a, marker m, homology_cluster_organism_to_marker otm,
                     homology_cluster_organism o, homology_cluster hc
                where t.vocab_name = 'Marker Category'
                  and t.term_key = a.term_key
                  and a.ancestor_term not in ({excluded})
                  and m.marker_subtype = t.term
                  and {mouse_markers}""",
            "cluster_key", "term", into=facets)
        self.log.info("Collected Feature Type facets for %d clusters", len(facets))
        return facets

    def index_homology_classes(self) -> None:
        self.log.info(" - indexing homology clusters")
        mouse_symbols = self.mouse_symbols_by_cluster()
        facets = self.feature_type_facets()
        start = self.seq_num.value
        sql = """
            select c.cluster_key, ct.mouse_marker_count, ct.human_marker_count,
                   ct.rat_marker_count, ct.zebrafish_marker_count, i.acc_id, i.logical_db, hco.organism
            from homology_cluster c, homology_cluster_counts ct, marker_id i,
                 homology_cluster_organism hco, homology_cluster_organism_to_marker hm
            where c.source = 'Alliance Direct'
              and c.cluster_key = ct.cluster_key
              and c.cluster_key = hco.cluster_key
              and hco.organism in ('rat', 'human', 'zebrafish')
              and hco.cluster_organism_key = hm.cluster_organism_key
              and hm.marker_key = i.marker_key
              and (i.private = 0 or i.logical_db = 'Rat Genome Database')
            order by c.cluster_key, hco.organism, i.acc_id
        """
        for cluster_key, rows in _grouped(self.db.rows(sql), "cluster_key"):
            key = str(cluster_key)
            first = rows[0]
            counts = {org: first[f"{org}_marker_count"] for org in _CLASS_ORGANISMS}
            cluster = QSObject(key, homology_class_description(counts, mouse_symbols.get(key)), HOMOLOGY,
                               detail_uri=f"/homology/cluster/key/{key}",
                               marker_type_facets=sorted(facets.get(key)))
            self.seq_num.next()
            for row in rows:
                acc_id = row["acc_id"]
                self.add_id(cluster, acc_id, row["logical_db"], PRIMARY_ID_WEIGHT,
                            self.seq_num.value, organism=row["organism"])
                # OMIM IDs are also searchable without their prefix
                if acc_id.startswith("OMIM:"):
                    self.add_id(cluster, acc_id.replace("OMIM:", ""), row["logical_db"],
                                PRIMARY_ID_WEIGHT, self.seq_num.value, organism=row["organism"])
        self._done("homology clusters", start)

    # ────────────────────────────────────────────────────────────────────
    # Vocabulary terms and references
    # ────────────────────────────────────────────────────────────────────
    def index_adult_mouse_anatomy(self) -> None:
        self.log.info(" - indexing Adult Mouse Anatomy")
        start = self.seq_num.value
        sql = """
            select t.primary_id, t.term, i.acc_id, t.vocab_name, s.by_dfs
            from term t, term_id i, term_sequence_num s
            where t.vocab_name = 'Adult Mouse Anatomy'
              and t.term_key = i.term_key
              and t.term_key = s.term_key
            order by s.by_dfs
        """
        vocab = "Adult Mouse Anatomy"
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            term = QSObject(primary_id, rows[0]["term"], "MA Browser Detail",
                            detail_uri=f"/vocab/gxd/ma_ontology/{primary_id}")
            self.add_primary(term, vocab, id_type=vocab)
            for row in rows:
                self.add_secondary(term, row["acc_id"], vocab, id_type=vocab)
        self._done("AMA terms", start)

    def index_references(self) -> None:
        self.log.info(" - indexing references")
        start = self.seq_num.value
        # citation without "et al." and with "()" between ";:"
        sql = """
            select r.jnum_id as primary_id, i.logical_db, i.acc_id, s.by_primary_id,
                   replace(replace(r.mini_citation, 'et al.,', ''), ';:', ';():') as description
            from reference r, reference_sequence_num s, reference_id i
            where r.reference_key = s.reference_key
              and r.reference_key = i.reference_key
            order by s.by_primary_id
        """
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            ref = QSObject(primary_id, rows[0]["description"], "Reference",
                           detail_uri=f"/reference/{primary_id}")
            self.add_primary(ref, "MGI")
            for row in rows:
                self.add_secondary(ref, row["acc_id"], row["logical_db"])
        self._done("references", start)

    # ────────────────────────────────────────────────────────────────────
    # Single-ID objects
    # ────────────────────────────────────────────────────────────────────
    def index_genotypes(self) -> None:
        self.log.info(" - indexing genotypes")
        start = self.seq_num.value
        sql = """
            select g.primary_id
            from genotype g
            where exists (select 1 from genotype_to_annotation r where g.genotype_key = r.genotype_key)
            order by g.primary_id
        """
        for row in self.db.rows(sql):
            primary_id = row["primary_id"]
            self.add_primary(QSObject(primary_id, primary_id, "Genotype",
                                      detail_uri=f"/accession/{primary_id}"), "MGI")
        self._done("genotypes", start)

    def index_antibodies(self) -> None:
        self.log.info(" - indexing antibodies")
        start = self.seq_num.value
        for row in self.db.rows("select primary_id, name from antibody order by primary_id"):
            primary_id = row["primary_id"]
            self.add_primary(QSObject(primary_id, row["name"], "Antibody",
                                      detail_uri=f"/antibody/{primary_id}"), "MGI")
        self._done("antibodies", start)

    def index_images(self) -> None:
        self.log.info(" - indexing expression and phenotype images")
        start = self.seq_num.value
        # at most one non-MGI ID per image
        sql = """
            select replace(i.image_class, 'Phenotypes', 'Phenotype') as image_type,
                   i.mgi_id, d.logical_db, d.acc_id, s.by_default
            from image i
            inner join image_sequence_num s on (i.image_key = s.image_key)
            left outer join image_id d on (i.image_key = d.image_key and d.logical_db not like 'MGI%')
            where i.image_class in ('Expression', 'Phenotypes')
            order by s.by_default, d.acc_id
        """
        for mgi_id, rows in _grouped(self.db.rows(sql), "mgi_id"):
            first = rows[0]
            image = QSObject(mgi_id, first["acc_id"] or mgi_id, f"{first['image_type']} Image",
                             detail_uri=f"/image/{mgi_id}")
            self.add_primary(image, "MGI", id_type="Image")
            for row in rows:
                if (secondary_id := row["acc_id"]) is None:
                    continue
                self.add_id(image, secondary_id, row["logical_db"], SECONDARY_ID_WEIGHT,
                            self.seq_num.value, id_type="Image")
                # GenePaint IDs carry a pane suffix after the slash
                if "/" in secondary_id and row["logical_db"] == "GenePaint":
                    self.add_id(image, secondary_id.split("/")[0], row["logical_db"],
                                SECONDARY_ID_WEIGHT, self.seq_num.value, id_type="Image")
        self._done("expression and phenotype images", start)

    def index_classical_assays(self) -> None:
        self.log.info(" - indexing classical expression assays")
        start = self.seq_num.value
        for row in self.db.rows("select a.primary_id, a.marker_symbol, a.marker_name from expression_assay a"):
            primary_id = row["primary_id"]
            assay = QSObject(primary_id, f"{row['marker_symbol']}, {row['marker_name']}",
                             "Expression Assay", detail_uri=f"/assay/{primary_id}")
            self.add_primary(assay, "MGI")
        self._done("classical expression assays", start)

    def index_ht_assays(self) -> None:
        self.log.info(" - indexing high-throughput expression assays")
        start = self.seq_num.value
        sql = """
            select e.primary_id, e.name, i.acc_id, i.logical_db
            from expression_ht_experiment e, expression_ht_experiment_id i
            where e.experiment_key = i.experiment_key
            order by e.primary_id
        """
        for primary_id, rows in _grouped(self.db.rows(sql), "primary_id"):
            experiment = QSObject(primary_id, rows[0]["name"], "RNA-Seq/Array Experiment",
                                  detail_uri=f"/gxd/htexp_index/summary?arrayExpressID={primary_id}")
            for row in rows:
                self.add_id(experiment, row["acc_id"], row["logical_db"], SECONDARY_ID_WEIGHT,
                            self.seq_num.value)
        self._done("high-throughput expression assays", start)

    def index(self) -> None:
        self.log.info("beginning other bucket")
        self.index_sequences()
        self.index_sequence_ids_for_probes()
        self.index_probes()
        self.index_probe_ids_for_sequences()
        self.index_mapping()
        self.index_homology_classes()
        self.index_adult_mouse_anatomy()
        self.index_references()
        self.index_genotypes()
        self.index_antibodies()
        self.index_images()
        self.index_classical_assays()
        self.index_ht_assays()
        self.log.info("finished other bucket with %d documents", self.unique_key.value)
