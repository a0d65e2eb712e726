#!/usr/bin/env python3

from feindexer.indexers.allele import AlleleIndexer, AlleleLocation, add_omim_numbers
from feindexer.lookups import LookupMap
from feindexer.utils.sorting import SENTINEL_RANK

LOOKUP_NAMES = (
    "pheno_ids", "pheno_text", "mutations", "mutation_involves", "expresses_component",
    "marker_nomen", "allele_nomen", "ref_keys", "jnum_ids", "allele_ids", "diseases",
)


def _row(**overrides):
    row = {
        "marker_key": 5, "marker_id": "MGI:5", "allele_key": 1, "symbol": "Pax6<tm1>",
        "name": "targeted mutation 1", "allele_type": "Targeted", "allele_subtype": "Null/knockout, Reporter",
        "collection": "KOMP", "is_wild_type": 0, "transmission_type": "Germline",
        "by_symbol": 10, "by_chromosome": 20, "by_allele_type": 30,
    }
    row.update(overrides)
    return row


def _lookups():
    return {name: LookupMap(name) for name in LOOKUP_NAMES}


def test_related_markers_fan_out(fake_db, client):
    lookups = _lookups()
    lookups["mutation_involves"].add(1, "MGI:7")
    lookups["expresses_component"].add(1, "MGI:8")
    lookups["expresses_component"].add(1, "MGI:5")

    doc = AlleleIndexer(fake_db, client).build_document(_row(), lookups, set(), {}).to_dict()

    assert doc["markerId"] == ["MGI:5", "MGI:7", "MGI:8"]
    assert doc["allMiMarkerIds"] == "MGI:7"
    assert doc["alleleSubType"] == ["Null/knockout", "Reporter"]
    assert doc["isCellLine"] == 0
    assert doc["hasDO"] == 0


def test_cell_line_and_disease_sort(fake_db, client):
    job = AlleleIndexer(fake_db, client)
    job.disease_ranks = {"Aniridia": 1, "Zellweger syndrome": 2}
    lookups = _lookups()
    lookups["diseases"].add_all(1, ["Zellweger syndrome", "Aniridia"])

    doc = job.build_document(_row(transmission_type="Cell line"), lookups, {"1"}, {}).to_dict()
    assert doc["isCellLine"] == 1
    assert doc["byTransmission"] == 1
    assert doc["byDisease"] == 1
    assert doc["hasDO"] == 1

    doc = job.build_document(_row(allele_key=2), lookups, set(), {}).to_dict()
    assert doc["byDisease"] == SENTINEL_RANK


def test_allele_without_marker(fake_db, client):
    doc = AlleleIndexer(fake_db, client).build_document(
        _row(marker_key=None, marker_id=None), _lookups(), set(), {}).to_dict()
    assert "markerKey" not in doc
    assert "markerId" not in doc


def test_location_rows_fold_in_order():
    loc = AlleleLocation()
    loc.update({"chromosome": "2", "start_coordinate": None, "end_coordinate": None,
                "cm_offset": 52.0, "cytogenetic_offset": None})
    loc.update({"chromosome": "2", "start_coordinate": 105.0, "end_coordinate": 120.0,
                "cm_offset": -1.0, "cytogenetic_offset": "E3"})
    assert loc.chromosome == "2"
    assert loc.genetic_chromosome == "2"
    assert loc.genomic_chromosome == "2"
    assert (loc.start_coordinate, loc.end_coordinate) == (105, 120)
    assert loc.cm_offset == 52.0
    assert loc.cytogenetic_offset == "E3"


def test_omim_ids_searchable_without_prefix():
    ids = LookupMap("pheno")
    ids.add_all(1, ["MP:0001", "OMIM:601"])
    add_omim_numbers(ids)
    assert ids.get(1) == ("MP:0001", "OMIM:601", "601")


def test_index_builds_temp_tables_and_documents(fake_db, client):
    fake_db.with_bounds("allele", "allele_key", 1, 1)
    fake_db.on("join allele_sequence_num asn", [_row()])
    fake_db.on("select distinct disease from disease", [{"disease": "Aniridia"}])
    fake_db.on("from tmp_allele_mp_term mpt where", [{"allele_key": 1, "term_id": "MP:0002", "term": "small eye"}])
    fake_db.on("from marker_to_allele mta join marker_location ml",
               [{"allele_key": 1, "chromosome": "2", "start_coordinate": 105.0, "end_coordinate": 120.0,
                 "cm_offset": None, "cytogenetic_offset": None}])

    AlleleIndexer(fake_db, client).run()

    assert {"tmp_allele_mp_term", "tmp_allele_do_term", "tmp_allele_term",
            "tmp_allele_note", "tmp_allele_nomen"} <= set(fake_db.temp_tables)
    [doc] = client.docs
    assert doc["alleleKey"] == "1"
    assert doc["phenoId"] == "MP:0002"
    assert doc["phenoText"] == "small eye"
    assert doc["genomicChromosome"] == "2"
    assert doc["startCoordinate"] == 105
