#!/usr/bin/env python3

import json

import pytest

from feindexer.errors import DataAnomalyError
from feindexer.indexers.vocab_browser import (DO_VOCAB, GO_VOCAB, HPO_VOCAB, MA_VOCAB, MP_ROOT_ID,
                                              MP_VOCAB, VocabBrowserIndexer, annotation_link)


def test_annotation_links():
    assert annotation_link(MA_VOCAB, "MA:1", 3, 4) is None
    assert annotation_link(MP_VOCAB, MP_ROOT_ID, 3, 4) is None

    mp = annotation_link(MP_VOCAB, "MP:2", 3, 4)
    assert (mp.count, mp.label, mp.url) == (4, "3 genotypes, 4 annotations", "mp/annotations/MP:2")
    assert annotation_link(MP_VOCAB, "MP:2", 0, 0).url is None

    go = annotation_link(GO_VOCAB, "GO:1", 2, 7)
    assert (go.label, go.url) == ("2 genes, 7 annotations", "go/term/GO:1")

    assert annotation_link(HPO_VOCAB, "HP:1", 5, 0).label == "5 diseases with annotations"
    assert annotation_link(HPO_VOCAB, "HP:1", 5, 0).url is None
    # disease terms always link to the portal
    assert annotation_link(DO_VOCAB, "DOID:1", 0, 0).url == "diseasePortal?termID=DOID:1"


def _rows_for(vocab, rows):
    return lambda params: rows if params.get("vocab") == vocab else []


@pytest.fixture
def go_db(fake_db):
    fake_db.on("from term t, term_id i", _rows_for(GO_VOCAB, [
        {"term_key": 1, "acc_id": "GO:1", "logical_db": "GO", "is_primary": 1},
        {"term_key": 1, "acc_id": "GO:1alt", "logical_db": "GO", "is_primary": 0},
        {"term_key": 2, "acc_id": "GO:2", "logical_db": "GO", "is_primary": 1},
    ]))
    fake_db.on("from term t, term_synonym s", _rows_for(GO_VOCAB, [
        {"term_key": 2, "synonym": "kid", "synonym_type": "exact"}]))
    fake_db.on("left outer join term_default_parent", _rows_for(GO_VOCAB, [
        {"child_term_key": 2, "edge_label": "is-a", "term_key": 1, "term": "root", "is_default": 1}]))
    fake_db.on("from term t, term_annotation_counts c", _rows_for(GO_VOCAB, [
        {"term_key": 2, "primary_id": "GO:2", "object_count_with_descendents": 3,
         "annot_count_with_descendents": 5}]))
    fake_db.on("select distinct c.term_key from term t inner join term_child c",
               _rows_for(GO_VOCAB, [{"term_key": 1}]))
    fake_db.on("select distinct p.term_key, c.child_term_key", _rows_for(GO_VOCAB, [
        {"term_key": 1, "child_term_key": 2, "edge_label": "is-a", "child_term": "kid term"},
        {"term_key": 1, "child_term_key": 99, "edge_label": "is-a", "child_term": "obsolete kid"},
    ]))
    fake_db.on("from term t, term_note n", _rows_for(GO_VOCAB, [{"term_key": 1, "note": "curator note"}]))
    fake_db.on("from term t, term_sequence_num s", _rows_for(GO_VOCAB, [
        {"term_key": 1, "primary_id": "GO:1", "term": "root", "definition": "the top",
         "by_default": 1, "vocab_name": "GO", "dag_name": "Process"},
        {"term_key": 2, "primary_id": "GO:2", "term": "kid term", "definition": None,
         "by_default": 2, "vocab_name": "GO", "dag_name": "Process"},
    ]))
    return fake_db


def test_browser_documents(go_db, client):
    VocabBrowserIndexer(go_db, client).run()

    docs = {d["vbPrimaryId"]: d for d in client.docs}
    assert set(docs) == {"GO:1", "GO:2"}

    root, kid = docs["GO:1"], docs["GO:2"]
    assert root["vbAccId"] == ["GO:1", "GO:1alt"]
    assert root["vbDagName"] == "Process"
    assert "vbParentId" not in root
    assert kid["vbParentId"] == "GO:1"
    assert kid["vbSynonym"] == "kid"
    assert kid["vbSequenceNum"] == 2

    term = json.loads(root["vbBrowserTerm"])
    assert term["primaryId"] == {"accId": "GO:1", "logicalDb": "GO"}
    assert term["secondaryIds"] == [{"accId": "GO:1alt", "logicalDb": "GO"}]
    assert term["dagName"] == "Biological Process"
    assert term["comment"] == "curator note"
    assert term["relatedToTissues"] is False
    # the obsolete child has no primary ID and is left out
    assert term["children"] == [{
        "primaryId": "GO:2", "logicalDb": "GO", "term": "kid term", "edgeLabel": "is-a",
        "hasChildren": 0, "annotationCount": 5, "annotationLabel": "3 genes, 5 annotations",
        "annotationUrl": "go/term/GO:2",
    }]

    term = json.loads(kid["vbBrowserTerm"])
    assert term["defaultParent"] == {"primaryId": "GO:1", "logicalDb": "GO", "term": "root",
                                     "edgeLabel": "is-a"}
    assert term["allParents"] == [term["defaultParent"]]
    assert term["synonyms"] == [{"synonym": "kid", "synonymType": "exact"}]
    assert term["annotationUrl"] == "go/term/GO:2"
    assert "definition" not in term


def test_parent_without_primary_id_is_an_anomaly(fake_db, client):
    fake_db.on("left outer join term_default_parent", _rows_for(GO_VOCAB, [
        {"child_term_key": 2, "edge_label": "is-a", "term_key": 1, "term": "root", "is_default": 1}]))
    with pytest.raises(DataAnomalyError):
        VocabBrowserIndexer(fake_db, client).run()
    assert client.commits == 0


def test_mp_cross_references(fake_db, client):
    fake_db.on("from term t, term_id i", _rows_for(MP_VOCAB, [
        {"term_key": 5, "acc_id": "MP:5", "logical_db": "MP", "is_primary": 1}]))
    fake_db.on("from term_to_term tt, term e", [{"term_key": 5, "cross_ref": "EMAPA:16039"}])
    fake_db.on("from term t, term_sequence_num s", _rows_for(MP_VOCAB, [
        {"term_key": 5, "primary_id": "MP:5", "term": "eye", "definition": None,
         "by_default": 1, "vocab_name": MP_VOCAB, "dag_name": None}]))

    VocabBrowserIndexer(fake_db, client).run()

    [doc] = client.docs
    assert doc["vbCrossRef"] == "EMAPA:16039"
    assert json.loads(doc["vbBrowserTerm"])["relatedToTissues"] is True
