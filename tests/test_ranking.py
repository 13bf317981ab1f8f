"""
Tests for top-K word ranking.
"""

import pytest

from wordcrawler.crawler.ranking import rank_word_counts


def test_equal_counts_and_lengths_break_alphabetically():
    counts = {"cat": 5, "dog": 5, "ox": 2}

    assert rank_word_counts(counts, 2) == [("cat", 5), ("dog", 5)]


def test_higher_count_first():
    counts = {"rare": 1, "common": 9, "medium": 4}

    assert rank_word_counts(counts, 3) == [("common", 9), ("medium", 4), ("rare", 1)]


def test_longer_word_wins_count_tie():
    counts = {"a": 3, "bb": 3, "ccc": 2}

    assert rank_word_counts(counts, 2) == [("bb", 3), ("a", 3)]


def test_full_ordering():
    counts = {"zeta": 2, "alpha": 2, "beta": 2, "omega": 7, "pi": 2}

    assert rank_word_counts(counts, 10) == [
        ("omega", 7), ("alpha", 2), ("beta", 2), ("zeta", 2), ("pi", 2),
    ]


def test_k_larger_than_map_returns_everything():
    assert rank_word_counts({"one": 1, "two": 2}, 50) == [("two", 2), ("one", 1)]


def test_k_zero_returns_nothing():
    assert rank_word_counts({"one": 1}, 0) == []


def test_empty_counts():
    assert rank_word_counts({}, 5) == []


def test_negative_k_rejected():
    with pytest.raises(ValueError):
        rank_word_counts({"one": 1}, -1)


def test_input_not_modified():
    counts = {"b": 1, "a": 2}

    rank_word_counts(counts, 1)

    assert counts == {"b": 1, "a": 2}
