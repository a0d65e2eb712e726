#!/usr/bin/env python3

import json

from feindexer.chunker import KeyRange
from feindexer.indexers.probe import ProbeIndexer
from feindexer.indexers.sequence import SequenceIndexer
from feindexer.utils.sorting import SENTINEL_RANK


def test_sequence_document(fake_db, client):
    fake_db.with_bounds("sequence", "sequence_key", 1, 1)
    fake_db.on("from sequence_sequence_num order by", [{"sequence_key": 2}, {"sequence_key": 1}])
    fake_db.on("from sequence s left outer join sequence_id i", [{
        "sequence_key": 1, "sequence_type": "DNA", "provider": "SWISS-PROT", "length": 1000,
        "description": "Pax6 mRNA", "primary_id": "P12345", "organism": "mouse", "genbank_id": None,
    }])
    fake_db.on("from sequence s, sequence_source o",
               [{"sequence_key": 1, "strain": "C57BL/6J"}, {"sequence_key": 1, "strain": "A/J"}])
    fake_db.on("from sequence_location", [{"sequence_key": 1, "chromosome": "2", "start_coordinate": 100,
                                           "end_coordinate": 200, "strand": "+"}])
    fake_db.on("from marker_to_sequence s, marker m,", [
        {"sequence_key": 1, "symbol": "Pax6", "primary_id": "MGI:97490", "by_symbol": 1, "marker_key": 9}])
    fake_db.on("from marker_to_sequence s, marker_sequence_num n",
               [{"sequence_key": 1, "marker_key": 9, "by_symbol": 1}])

    SequenceIndexer(fake_db, client).run()

    [doc] = client.docs
    assert doc["sequenceKey"] == 1
    assert doc["byDefault"] == 2
    assert doc["provider"] == "UniProt"
    assert doc["markerKey"] == "9"
    assert doc["strain"] == ["A/J", "C57BL/6J"]
    assert json.loads(doc["sequence"]) == {
        "sequenceKey": 1,
        "primaryId": "P12345",
        "provider": "SWISS-PROT",
        "sequenceType": "DNA",
        "length": "1000",
        "organism": "mouse",
        "description": "Pax6 mRNA",
        "location": {"chromosome": "2", "startCoordinate": "100", "endCoordinate": "200", "strand": "+"},
        "markers": [{"symbol": "Pax6", "primaryId": "MGI:97490"}],
        "strain": "C57BL/6J",
    }


def test_unordered_sequence_gets_sentinel_rank(fake_db, client):
    fake_db.with_bounds("sequence", "sequence_key", 1, 2)
    fake_db.on("from sequence_sequence_num order by", [{"sequence_key": 1}])
    base = {"sequence_type": "DNA", "provider": "GenBank", "length": 10, "description": None,
            "organism": "mouse", "genbank_id": None}
    fake_db.on("from sequence s left outer join sequence_id i", [
        dict(base, sequence_key=1, primary_id="AB1"),
        dict(base, sequence_key=2, primary_id="AB2"),
    ])

    SequenceIndexer(fake_db, client).run()

    assert {d["sequenceKey"]: d["byDefault"] for d in client.docs} == {1: 1, 2: SENTINEL_RANK}


def test_probe_document(fake_db, client):
    fake_db.with_bounds("probe", "probe_key", 1, 1)
    fake_db.on("from marker_to_probe p, marker_location ml, marker m", [
        {"marker_key": 3, "chromosome": "2", "cm_offset": None, "cytogenetic_offset": "E3",
         "start_coordinate": 105.0},
        {"marker_key": 3, "chromosome": "2", "cm_offset": 52.5, "cytogenetic_offset": None,
         "start_coordinate": None},
    ])
    fake_db.on("from marker_to_probe mtp, marker m, marker_sequence_num s", [
        {"probe_key": 1, "symbol": "Pax6", "marker_id": "MGI:3", "by_symbol": 1,
         "qualifier": "P", "marker_key": 3}])
    fake_db.on("from probe_clone_collection c",
               [{"probe_key": 1, "collection": "RIKEN"}, {"probe_key": 1, "collection": "IMAGE"}])
    fake_db.on("from probe p, probe_sequence_num s", [
        {"probe_key": 1, "name": "p1", "primary_id": "MGI:9", "segment_type": "primer pair",
         "by_name": 4, "by_type": 5}])

    ProbeIndexer(fake_db, client).run()

    [doc] = client.docs
    assert doc["segmentType"] == "primer"
    assert doc["markerId"] == "MGI:3"
    assert json.loads(doc["probe"]) == {
        "name": "p1",
        "primaryId": "MGI:9",
        "segmentType": "primer pair",
        "markers": [{"symbol": "Pax6", "primaryId": "MGI:3", "isPutative": True, "location": "2 (52.50 cM)"}],
        "collections": ["IMAGE", "RIKEN"],
    }


def test_sequence_location_last_row_wins(fake_db, client):
    fake_db.on("from sequence_location", [
        {"sequence_key": 1, "chromosome": "2", "start_coordinate": 100, "end_coordinate": 200, "strand": "+"},
        {"sequence_key": 1, "chromosome": "2", "start_coordinate": 150, "end_coordinate": 250, "strand": "-"},
    ])
    job = SequenceIndexer(fake_db, client)
    locations = job.cache_locations(KeyRange(1, 2))
    assert locations.get(1).start_coordinate == "150"
    assert locations.get(1).strand == "-"
