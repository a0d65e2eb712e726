#!/usr/bin/env python3

from feindexer.utils import preprocessing as pp


def test_strip_punctuation():
    assert pp.strip_punctuation("Pax6-dependent, (eye)") == "Pax6 dependent   eye "


def test_join_title_abstract():
    sep = pp.TITLE_ABSTRACT_SEPARATOR
    assert pp.join_title_abstract("A.B", "C") == "A B" + sep + "C"
    assert pp.join_title_abstract(None, "only abstract") == "only abstract"
    assert pp.join_title_abstract("", None) == ""


def test_author_permutations():
    assert pp.author_permutations("Smith JA") == ["Smith", "Smith JA"]
    assert pp.author_permutations("Smith") == []
    assert pp.author_permutations(None) == []
    assert pp.author_permutations("O'Brien-Lee A B C D") == ["O'Brien", "O'Brien Lee", "O'Brien Lee A", "O'Brien Lee A B"]


def test_author_facet():
    assert pp.author_facet(None) == "No author listed"
    assert pp.author_facet("  ") == "No author listed"
    assert pp.author_facet("Smith J") == "Smith J"


def test_accession_helpers():
    assert pp.jnum_numeric("J:12345") == "12345"
    assert pp.jnum_numeric("12345") is None
    assert pp.omim_number("OMIM:601234") == "601234"
    assert pp.omim_number("DOID:14330") is None
    assert pp.clean_logical_db("Sequence DB") == "GenBank, EMBL, DDBJ"
    assert pp.clean_logical_db("RefSeq") == "RefSeq"


def test_controlled_values():
    assert pp.go_dag_name("Process") == "Biological Process"
    assert pp.go_dag_name("Other") == "Other"
    assert pp.searchable_provider("TrEMBL") == "UniProt"
    assert pp.searchable_provider("GenBank") == "GenBank"
    assert pp.searchable_segment_type("primer pair") == "primer"
    assert pp.searchable_segment_type("cDNA") == "cDNA"
    assert pp.searchable_segment_type(None) == "other"
    assert pp.split_subtypes("Null/knockout, Reporter") == ["Null/knockout", "Reporter"]
    assert pp.split_subtypes(None) == []
    assert pp.as_flag([]) == 0 and pp.as_flag("x") == 1
