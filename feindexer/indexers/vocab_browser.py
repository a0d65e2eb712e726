#!/usr/bin/env python3

"""
feindexer.indexers.vocab_browser
--------------------------------
Populates the ``vocabBrowser`` core: one document per non-obsolete term of
each browsable vocabulary, carrying a JSON :class:`~feindexer.models.BrowserTerm`
with the term's IDs, synonyms, parents, children and annotation link.

Vocabularies are processed one at a time; every cache below is rebuilt per
vocabulary and dropped before the next one starts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from feindexer import fields as F
from feindexer.documents import Document
from feindexer.errors import DataAnomalyError
from feindexer.indexers.base import Indexer
from feindexer.lookups import LookupMap
from feindexer.models import (AccessionID, BrowserChild, BrowserParent,
                              BrowserSynonym, BrowserTerm)
from feindexer.utils.preprocessing import go_dag_name

MA_VOCAB = "Adult Mouse Anatomy"
MP_VOCAB = "Mammalian Phenotype"
GO_VOCAB = "GO"
HPO_VOCAB = "Human Phenotype Ontology"
DO_VOCAB = "Disease Ontology"

VOCABULARIES: Tuple[str, ...] = (MA_VOCAB, MP_VOCAB, GO_VOCAB, HPO_VOCAB, DO_VOCAB)

#: vocabularies whose terms carry curator comments
COMMENTED_VOCABS = frozenset({GO_VOCAB, MP_VOCAB, DO_VOCAB, HPO_VOCAB})
#: the MP root has counts but no label
MP_ROOT_ID = "MP:0000001"


@dataclass(frozen=True)
class AnnotationLink:
    count: int
    label: Optional[str]
    url: Optional[str]


def annotation_link(vocab: str, term_id: str, object_count: int, annot_count: int) -> Optional[AnnotationLink]:
    """
    Count, label and URL of the "view annotations" link for one term.
    ``None`` when the term gets no link at all (MA, or the MP root).
    """
    has_annots = annot_count > 0
    if vocab == MP_VOCAB:
        if term_id == MP_ROOT_ID:
            return None
        return AnnotationLink(annot_count, f"{object_count} genotypes, {annot_count} annotations",
                              f"mp/annotations/{term_id}" if has_annots else None)
    if vocab == DO_VOCAB:
        return AnnotationLink(annot_count, "view human &amp; mouse annotations",
                              f"diseasePortal?termID={term_id}")
    if vocab == HPO_VOCAB:
        return AnnotationLink(annot_count, f"{object_count} diseases with annotations",
                              f"diseasePortal?termID={term_id}" if has_annots else None)
    if vocab == GO_VOCAB:
        return AnnotationLink(annot_count, f"{object_count} genes, {annot_count} annotations",
                              f"go/term/{term_id}" if has_annots else None)
    return None


@dataclass
class VocabCaches:
    """Everything known about one vocabulary's terms, keyed by term key."""

    primary_ids: Dict[str, AccessionID] = field(default_factory=dict)
    all_ids: Dict[str, List[AccessionID]] = field(default_factory=dict)
    synonyms: Dict[str, List[BrowserSynonym]] = field(default_factory=dict)
    default_parent: Dict[str, BrowserParent] = field(default_factory=dict)
    all_parents: Dict[str, List[BrowserParent]] = field(default_factory=dict)
    children: Dict[str, List[BrowserChild]] = field(default_factory=dict)
    annotations: Dict[str, AnnotationLink] = field(default_factory=dict)
    comments: Dict[str, str] = field(default_factory=dict)
    cross_refs: LookupMap = field(default_factory=lambda: LookupMap("cross references", ordered=True))

    def primary_id(self, term_key) -> Optional[AccessionID]:
        return self.primary_ids.get(str(term_key))

    def require_primary_id(self, term_key) -> AccessionID:
        if (found := self.primary_id(term_key)) is None:
            raise DataAnomalyError(f"Unexpected term key ({term_key}) with no primary ID",
                                   stage="vocabBrowser", detail=term_key)
        return found

    def secondary_ids(self, term_key) -> List[AccessionID]:
        ids = self.all_ids.get(str(term_key), [])
        primary = self.primary_id(term_key)
        if primary is None:
            return list(ids)
        return [i for i in ids if i != primary]


class VocabBrowserIndexer(Indexer):
    name = "vocabBrowser"
    core = "vocabBrowser"
    batch_size = 5_000

    # ────────────────────────────────────────────────────────────────────
    # Per-vocabulary caches
    # ────────────────────────────────────────────────────────────────────
    def cache_ids(self, vocab: str, caches: VocabCaches) -> None:
        sql = """
            select distinct t.term_key, i.acc_id, i.logical_db,
                   case when (i.preferred = 1 and t.primary_id = i.acc_id) then 1 else 0 end as is_primary
            from term t, term_id i
            where t.vocab_name = :vocab
              and t.term_key = i.term_key
              and t.is_obsolete = 0
            order by 1, 2
        """
        n = 0
        for row in self.db.rows(sql, vocab=vocab):
            key = str(row["term_key"])
            acc_id = AccessionID(row["acc_id"], row["logical_db"])
            if row["is_primary"] == 1 and key not in caches.primary_ids:
                caches.primary_ids[key] = acc_id
            caches.all_ids.setdefault(key, []).append(acc_id)
            n += 1
        self.log.info(" - cached %d IDs for %d terms", n, len(caches.primary_ids))

    def cache_synonyms(self, vocab: str, caches: VocabCaches) -> None:
        sql = """
            select distinct t.term_key, s.synonym, s.synonym_type
            from term t, term_synonym s
            where t.vocab_name = :vocab
              and t.term_key = s.term_key
              and t.is_obsolete = 0
              and s.synonym_type not in ('Synonym Type 1', 'Synonym Type 2')
            order by 1, 2, 3
        """
        for row in self.db.rows(sql, vocab=vocab):
            caches.synonyms.setdefault(str(row["term_key"]), []).append(
                BrowserSynonym(row["synonym"], row["synonym_type"]))
        self.log.info(" - cached synonyms for %d terms", len(caches.synonyms))

    def cache_parents(self, vocab: str, caches: VocabCaches) -> None:
        sql = """
            select distinct c.child_term_key, c.edge_label, p.term_key, p.term,
                   case when (d.default_parent_key is not null and p.term_key = d.default_parent_key)
                        then 1 else 0 end as is_default
            from term p
            inner join term_child c on (p.term_key = c.term_key)
            left outer join term_default_parent d on (c.child_term_key = d.term_key)
            where p.vocab_name = :vocab
              and p.is_obsolete = 0
            order by 1, 4
        """
        for row in self.db.rows(sql, vocab=vocab):
            child_key = str(row["child_term_key"])
            parent_id = caches.require_primary_id(row["term_key"])
            parent = BrowserParent(parent_id.acc_id, parent_id.logical_db, row["term"], row["edge_label"])
            if row["is_default"] == 1 and child_key not in caches.default_parent:
                caches.default_parent[child_key] = parent
            caches.all_parents.setdefault(child_key, []).append(parent)
        self.log.info(" - cached parents for %d terms", len(caches.all_parents))

    def cache_annotations(self, vocab: str, caches: VocabCaches) -> None:
        if vocab == MA_VOCAB:
            return
        sql = """
            select c.term_key, t.primary_id, c.object_count_with_descendents,
                   c.annot_count_with_descendents
            from term t, term_annotation_counts c
            where t.term_key = c.term_key
              and t.is_obsolete = 0
              and t.vocab_name = :vocab
        """
        for row in self.db.rows(sql, vocab=vocab):
            link = annotation_link(vocab, row["primary_id"],
                                   row["object_count_with_descendents"] or 0,
                                   row["annot_count_with_descendents"] or 0)
            if link is not None:
                caches.annotations[str(row["term_key"])] = link
        self.log.info(" - cached annotations for %d terms", len(caches.annotations))

    def cache_children(self, vocab: str, caches: VocabCaches) -> None:
        # terms that are themselves parents, for the expand/collapse widget
        parents_sql = """
            select distinct c.term_key
            from term t inner join term_child c on (t.term_key = c.term_key)
            where t.vocab_name = :vocab
        """
        with_children: Set[str] = {str(r["term_key"]) for r in self.db.rows(parents_sql, vocab=vocab)}
        sql = """
            select distinct p.term_key, c.child_term_key, c.edge_label, c.child_term
            from term p
            inner join term_child c on (p.term_key = c.term_key)
            where p.vocab_name = :vocab
              and p.is_obsolete = 0
            order by 1, 4
        """
        for row in self.db.rows(sql, vocab=vocab):
            child_key = str(row["child_term_key"])
            child_id = caches.primary_id(child_key)
            if child_id is None:
                # obsolete children have no primary ID
                continue
            child = BrowserChild(child_id.acc_id, child_id.logical_db, row["child_term"],
                                 row["edge_label"], has_children=int(child_key in with_children))
            if (link := caches.annotations.get(child_key)) is not None:
                child.annotation_count = link.count
                child.annotation_label = link.label
                child.annotation_url = link.url
            caches.children.setdefault(str(row["term_key"]), []).append(child)
        self.log.info(" - cached children for %d terms", len(caches.children))

    def cache_comments(self, vocab: str, caches: VocabCaches) -> None:
        if vocab not in COMMENTED_VOCABS:
            return
        sql = """
            select n.term_key, n.note
            from term t, term_note n
            where t.term_key = n.term_key
              and t.vocab_name = :vocab
              and n.note is not null
              and n.note_type = 'Comment'
        """
        for row in self.db.rows(sql, vocab=vocab):
            caches.comments[str(row["term_key"])] = row["note"]
        self.log.info(" - cached %d comments", len(caches.comments))

    def cache_cross_refs(self, vocab: str, caches: VocabCaches) -> None:
        if vocab != MP_VOCAB:
            return
        self.populate_lookup(
            """select tt.term_key_1 as term_key, e.primary_id as cross_ref
               from term_to_term tt, term e
               where tt.relationship_type = 'MP to EMAPA'
                 and tt.term_key_2 = e.term_key""",
            "term_key", "cross_ref", "MP to EMAPA cross references", into=caches.cross_refs)

    def build_caches(self, vocab: str) -> VocabCaches:
        caches = VocabCaches()
        self.cache_ids(vocab, caches)
        self.cache_synonyms(vocab, caches)
        self.cache_parents(vocab, caches)
        self.cache_annotations(vocab, caches)
        self.cache_children(vocab, caches)
        self.cache_comments(vocab, caches)
        self.cache_cross_refs(vocab, caches)
        return caches

    # ────────────────────────────────────────────────────────────────────
    # Documents
    # ────────────────────────────────────────────────────────────────────
    def build_browser_term(self, row: Mapping, caches: VocabCaches) -> BrowserTerm:
        key = str(row["term_key"])
        term = BrowserTerm(
            primary_id=caches.require_primary_id(key),
            term=row["term"],
            definition=row["definition"],
            related_to_tissues=key in caches.cross_refs,
            default_parent=caches.default_parent.get(key),
            synonyms=caches.synonyms.get(key),
            secondary_ids=caches.secondary_ids(key) or None,
            all_parents=caches.all_parents.get(key),
            children=caches.children.get(key),
            comment=caches.comments.get(key),
        )
        if (link := caches.annotations.get(key)) is not None:
            term.annotation_count = link.count
            term.annotation_label = link.label
            term.annotation_url = link.url
        if row["dag_name"] is not None:
            term.dag_name = go_dag_name(row["dag_name"])
        return term

    def build_document(self, row: Mapping, caches: VocabCaches) -> Document:
        key = str(row["term_key"])
        doc = Document()
        # raw abbreviation for filtering; the browser term shows the full name
        doc.add_field(F.VB_DAG_NAME, row["dag_name"])
        doc.add_field(F.VB_PRIMARY_ID, row["primary_id"])
        doc.add_field(F.VB_TERM, row["term"])
        doc.add_field(F.VB_SEQUENCE_NUM, row["by_default"])
        doc.add_json(F.VB_BROWSER_TERM, self.build_browser_term(row, caches))
        doc.add_field(F.VB_VOCAB_NAME, row["vocab_name"])
        doc.add_all(F.VB_ACC_ID, (i.acc_id for i in caches.all_ids.get(key, ())))
        doc.add_all(F.VB_SYNONYM, (s.synonym for s in caches.synonyms.get(key, ())))
        doc.add_all(F.VB_PARENT_ID, (p.primary_id for p in caches.all_parents.get(key, ())))
        doc.add_all_from_lookup(F.VB_CROSSREF, key, caches.cross_refs)
        return doc

    def process_vocabulary(self, vocab: str) -> None:
        self.log.info("Beginning %s", vocab)
        caches = self.build_caches(vocab)
        sql = """
            select t.term_key, t.primary_id, t.term, t.definition, s.by_default, t.vocab_name,
                   case when t.vocab_name = 'GO' then t.display_vocab_name else null end as dag_name
            from term t, term_sequence_num s
            where t.vocab_name = :vocab
              and t.is_obsolete = 0
              and t.term_key = s.term_key
        """
        n = 0
        for row in self.db.rows(sql, vocab=vocab):
            self.add_doc(self.build_document(row, caches))
            n += 1
        self.log.info("Finished %d terms for %s", n, vocab)

    def index(self) -> None:
        for vocab in VOCABULARIES:
            self.process_vocabulary(vocab)
