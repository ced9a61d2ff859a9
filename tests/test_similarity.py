import pytest

from headline_ranker.similarity import jaro_winkler, token_overlap_ratio


def test_overlap_divides_by_smaller_set():
    assert token_overlap_ratio({"a", "b"}, {"a", "b", "c", "d"}) == 1.0
    assert token_overlap_ratio({"a", "b", "c", "d"}, {"a", "b"}) == 1.0


def test_overlap_partial():
    assert token_overlap_ratio({"a", "b", "c", "d"}, {"a", "x", "y", "z"}) == 0.25


def test_overlap_empty_sets():
    assert token_overlap_ratio(set(), {"a"}) == 0.0
    assert token_overlap_ratio({"a"}, set()) == 0.0


def test_jaro_winkler_identical():
    assert jaro_winkler("mars rover", "mars rover") == 1.0


def test_jaro_winkler_empty_or_disjoint():
    assert jaro_winkler("", "abc") == 0.0
    assert jaro_winkler("abc", "xyz") == 0.0


def test_jaro_winkler_known_values():
    assert jaro_winkler("martha", "marhta") == pytest.approx(0.9611, abs=1e-3)
    assert jaro_winkler("dwayne", "duane") == pytest.approx(0.84, abs=1e-3)


def test_jaro_winkler_symmetric():
    assert jaro_winkler("martha", "marhta") == pytest.approx(jaro_winkler("marhta", "martha"))
