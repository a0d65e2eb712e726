#!/usr/bin/env python3


def test_smart_alpha_numeric_runs():
    from feindexer.utils.sorting import smart_alpha_compare, smart_alpha_sorted

    assert smart_alpha_sorted(["Chr10", "chr1", "Chr2"]) == ["chr1", "Chr2", "Chr10"]
    assert smart_alpha_compare("Chr2", "Chr10") == -1
    assert smart_alpha_compare("Chr10", "Chr2") == 1
    assert smart_alpha_compare("Pax6", "Pax6") == 0


def test_smart_alpha_case_and_none():
    from feindexer.utils.sorting import smart_alpha_sorted

    assert smart_alpha_sorted(["beta", "Alpha", None]) == [None, "Alpha", "beta"]
    # case-insensitive first, exact string as tiebreak
    assert smart_alpha_sorted(["abc", "ABC"]) == ["ABC", "abc"]


def test_rank_table_skips_nulls_and_duplicates():
    from feindexer.utils.sorting import rank_table

    assert rank_table(["disease 10", "disease 2", None, "disease 2"]) == {"disease 2": 1, "disease 10": 2}


def test_sentinel_rank_sorts_last():
    from feindexer.utils.sorting import SENTINEL_RANK, best_rank, sort_rank

    ranks = {"a": 3, "b": 1}
    assert SENTINEL_RANK == 9_999_999
    assert sort_rank(ranks, "missing") == SENTINEL_RANK
    assert best_rank(ranks, ["a", "b", "zzz"]) == 1
    assert best_rank(ranks, []) == SENTINEL_RANK
    assert max(ranks.values()) < SENTINEL_RANK


def test_smart_alpha_non_ascii_digits_compare_as_text():
    from feindexer.utils.sorting import smart_alpha_key, smart_alpha_sorted

    assert smart_alpha_sorted(["10²", "Chr2", "9"]) == ["9", "10²", "Chr2"]
    # Arabic-Indic digits are letters here, not numbers
    assert smart_alpha_key("٣") == (1, ((1, 0, "٣"),), "٣")
    assert smart_alpha_sorted(["x٣", "x2"]) == ["x2", "x٣"]
