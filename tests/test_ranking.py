import pytest

from symbol_oracle.analytics.ranking import top_k


def test_top3_ascending_tie_break():
    dist = [0.5, 0.2, 0.05, 0.05, 0.05, 0.05, 0.05, 0.05]
    assert top_k(dist, 3) == [0, 1, 2]


def test_all_equal_keeps_index_order():
    assert top_k([0.125] * 8, 4) == [0, 1, 2, 3]


def test_descending():
    assert top_k([0.1, 0.05, 0.3, 0.05, 0.2, 0.1, 0.1, 0.1], 4) == [2, 4, 0, 5]


def test_k_larger_than_distribution():
    assert top_k([0.7, 0.3], 5) == [0, 1]


def test_k_zero_and_negative():
    assert top_k([0.5, 0.5], 0) == []
    with pytest.raises(ValueError):
        top_k([0.5, 0.5], -1)
