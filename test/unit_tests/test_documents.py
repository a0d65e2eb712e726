#!/usr/bin/env python3

from feindexer.documents import Document, to_json
from feindexer.lookups import LookupMap
from feindexer.models import AccessionID, BrowserParent, BrowserTerm


def _assemble(rows, lookup):
    doc = Document()
    for row in rows:
        doc.add_field("alleleKey", row["allele_key"])
        doc.add_all("markerId", row["marker_ids"])
        doc.add_all_from_lookup("refKey", row["allele_key"], lookup)
    return doc


def test_fan_out_dedups_and_is_deterministic():
    lookup = LookupMap("refs")
    lookup.add_all(5, ["10", "11"])
    rows = [{"allele_key": 5, "marker_ids": ["MGI:1", "MGI:2"]},
            {"allele_key": 5, "marker_ids": ["MGI:2"]}]
    first, second = _assemble(rows, lookup), _assemble(rows, lookup)
    assert first.to_dict() == second.to_dict() == {
        "alleleKey": 5, "markerId": ["MGI:1", "MGI:2"], "refKey": ["10", "11"]}


def test_absent_values_leave_field_out():
    doc = Document()
    doc.add_field("symbol", None)
    doc.add_all_from_lookup("refKey", 99, LookupMap())
    assert len(doc) == 0
    assert "symbol" not in doc
    assert doc.first("symbol", "dflt") == "dflt"


def test_flags_and_bools():
    doc = Document()
    doc.add_flag("hasDO", ["x"])
    doc.add_flag("hasOMIM", None)
    doc.add_field("mixed", True)
    doc.add_field("mixed", 1)
    assert doc.get("hasDO") == (1,)
    assert doc.get("hasOMIM") == (0,)
    assert doc.get("mixed") == (True, 1)


def test_to_json_camel_cases_and_drops_none():
    assert to_json(AccessionID("MGI:1", "MGI")) == '{"accId":"MGI:1","logicalDb":"MGI"}'
    assert to_json(AccessionID("X:1")) == '{"accId":"X:1"}'
    term = BrowserTerm(primary_id=AccessionID("MP:2"), term="cell",
                       all_parents=[BrowserParent("MP:1", "MP", "root")])
    assert to_json(term) == ('{"allParents":[{"logicalDb":"MP","primaryId":"MP:1","term":"root"}],'
                             '"primaryId":{"accId":"MP:2"},"relatedToTissues":false,"term":"cell"}')
