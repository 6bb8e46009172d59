"""Tests for manual ranking."""

import pytest

from question_bank.core.ranking.sequencer import initial_order, resequence


class TestResequence:
    def test_reordered_list(self):
        assert resequence(["Q3", "Q1", "Q2"]) == {"Q3": 1, "Q1": 2, "Q2": 3}

    def test_ranks_are_dense_and_total(self):
        ids = [f"q{i}" for i in range(7)]
        ranks = resequence(ids)
        assert sorted(ranks.values()) == list(range(1, 8))
        assert set(ranks) == set(ids)

    def test_empty(self):
        assert resequence([]) == {}

    def test_duplicates_rejected(self):
        with pytest.raises(ValueError):
            resequence(["a", "b", "a"])


class TestInitialOrder:
    def test_ranked_first_unranked_last(self):
        items = [("a", None), ("b", 2), ("c", 1), ("d", None)]
        ordered = initial_order(items, lambda item: item[1])
        assert [i[0] for i in ordered] == ["c", "b", "a", "d"]

    def test_ties_keep_input_order(self):
        items = [("a", 1), ("b", 1), ("c", 1)]
        assert [i[0] for i in initial_order(items, lambda item: item[1])] == ["a", "b", "c"]
