#!/usr/bin/env python3

import pytest

from feindexer.errors import DataAnomalyError
from feindexer.indexers.recombinase_matrix import (ALLELE, MARKER, ColumnHeader, DriverInfo,
                                                   RecombinaseMatrixIndexer, column_sort_key)


def test_column_order():
    cols = [
        ColumnHeader(ALLELE, 6, "Tg(Nes-cre)1Kln", "mouse", "Transgenic"),
        ColumnHeader(ALLELE, 5, "Cre<Tg>", "rat", "Targeted"),
        ColumnHeader(ALLELE, 4, "Nes<tm1(cre)>", "mouse", "Transgenic"),
        ColumnHeader(ALLELE, 3, "Pax6<em2(cre)>", "mouse", "Endonuclease-mediated"),
        ColumnHeader(ALLELE, 2, "Pax6<tm10(cre)>", "mouse", "Targeted"),
        ColumnHeader(ALLELE, 1, "Pax6<tm9(cre)>", "mouse", "Targeted"),
        ColumnHeader(ALLELE, 7, "Foo<cre>", "Not Specified", "Targeted"),
        ColumnHeader(ALLELE, 8, "Bar<cre>", "chicken", "Targeted"),
        ColumnHeader(MARKER, 9, "Pax6", "mouse", None),
    ]
    ordered = [c.object_key for c in sorted(cols, key=column_sort_key)]
    assert ordered == [9, 1, 2, 3, 4, 6, 5, 8, 7]


def test_driver_display_id():
    assert DriverInfo("MGI:1", "Nes", "mouse").display_id == "MGI:1"
    assert DriverInfo("HGNC:1", "NES", "human", "MGI:1").display_id == "MGI:1"
    assert DriverInfo("NCBI:1", "cre", "bacteriophage P1").display_id is None


def _anatomy(fake_db):
    fake_db.on("select term_key, primary_id, term from term where vocab_name = 'EMAPA'", [
        {"term_key": 100, "primary_id": "EMAPA:1", "term": "embryo"},
        {"term_key": 101, "primary_id": "EMAPA:2", "term": "heart"},
    ])
    # heart at two stages, both below the embryo
    fake_db.on("from term_emap", [
        {"term_key": 10, "emapa_term_key": 100},
        {"term_key": 11, "emapa_term_key": 101},
        {"term_key": 12, "emapa_term_key": 101},
    ])
    fake_db.on("where t.vocab_name = 'EMAPS'", [
        {"term_key": 11, "ancestor_term_key": 10},
        {"term_key": 12, "ancestor_term_key": 10},
    ])
    fake_db.on("from term t, term_child tc, term p", [{"child_term_key": 101, "parent_id": "EMAPA:1"}])
    fake_db.with_bounds("allele", "driver_key", 5, 5)


def _driver(fake_db, organism="mouse", mouse_marker_id=None):
    fake_db.on("from marker m, allele a", [
        {"marker_key": 5, "symbol": "cre", "primary_id": "MGI:5", "organism": organism,
         "mouse_marker_key": None, "mouse_marker_id": mouse_marker_id}])
    fake_db.on("from allele a, recombinase_expression e, marker m", [
        {"allele_key": 7, "symbol": "Tg(Nes-cre)1Kln", "primary_id": "MGI:7",
         "allele_type": "Transgenic", "organism": organism},
        {"allele_key": 8, "symbol": "Nes<tm1(cre)>", "primary_id": "MGI:8",
         "allele_type": "Targeted", "organism": organism},
    ])


def _results(fake_db, rows):
    fake_db.on("from recombinase_expression r, marker m", [
        {"allele_key": a, "driver_key": 5, "organism": "mouse", "result_key": n,
         "structure_key": s, "is_detected": d}
        for n, (a, s, d) in enumerate(rows)])


def test_cells_are_aggregated_then_collapsed(fake_db, client):
    _anatomy(fake_db)
    _driver(fake_db)
    _results(fake_db, [(8, 11, "Yes"), (8, 12, "No"), (7, 10, "Ambiguous")])

    RecombinaseMatrixIndexer(fake_db, client).run()

    docs = {(d["columnId"], d["anatomyId"]): d for d in client.docs}
    assert [d["uniqueKey"] for d in client.docs] == [1, 2, 3]
    assert list(docs) == [("MGI:7", "EMAPA:1"), ("MGI:8", "EMAPA:1"), ("MGI:8", "EMAPA:2")]

    heart = docs[("MGI:8", "EMAPA:2")]
    assert (heart["allResults"], heart["detectedResults"], heart["notDetectedResults"]) == (2, 1, 1)
    assert heart["anyAmbiguous"] == 0
    assert heart["children"] == 0
    assert heart["parentAnatomyId"] == "EMAPA:1"
    assert heart["anatomyTerm"] == "heart"
    assert heart["markerId"] == "MGI:5"
    assert heart["cellType"] == "recombinase"

    # only the detected result below is counted; the negative one marks the cell
    embryo = docs[("MGI:8", "EMAPA:1")]
    assert (embryo["allResults"], embryo["detectedResults"], embryo["children"]) == (1, 1, 2)
    assert embryo["ambiguousOrNotDetectedDescendants"] == 1

    direct = docs[("MGI:7", "EMAPA:1")]
    assert direct["anyAmbiguous"] == 1
    assert direct["children"] == 0

    # targeted before transgene
    assert heart["byColumn"] == 1
    assert direct["byColumn"] == 2


def test_non_mouse_driver_uses_mouse_ortholog(fake_db, client):
    _anatomy(fake_db)
    _driver(fake_db, organism="human", mouse_marker_id="MGI:55")
    _results(fake_db, [(8, 11, "Yes")])

    job = RecombinaseMatrixIndexer(fake_db, client)
    job.run()

    assert {d["markerId"] for d in client.docs} == {"MGI:55"}
    assert job.non_mouse == len(client.docs) == 2


def test_driver_without_mouse_ortholog_is_skipped(fake_db, client):
    _anatomy(fake_db)
    _driver(fake_db, organism="human")
    _results(fake_db, [(8, 11, "Yes")])

    RecombinaseMatrixIndexer(fake_db, client).run()

    assert client.docs == []
    assert client.commits == 1


def test_unmapped_stage_structure_aborts(fake_db, client):
    _anatomy(fake_db)
    _driver(fake_db)
    _results(fake_db, [(8, 42, "Yes")])

    with pytest.raises(DataAnomalyError):
        RecombinaseMatrixIndexer(fake_db, client).run()
    assert client.commits == 0
