import json

import pytest

from scholarship.services.scoring import compute_total_score, item_score


def test_total_score_sums_numeric_scores():
    items = [
        {"type": "competition", "level": "national", "name": "ACM-ICPC", "score": 10},
        {"type": "paper", "level": "core", "name": "Journal article", "score": 5},
    ]
    assert compute_total_score(items) == 15


def test_total_score_of_empty_or_missing_items_is_zero():
    assert compute_total_score([]) == 0
    assert compute_total_score(None) == 0
    assert compute_total_score({"score": 3}) == 0


def test_non_numeric_scores_count_as_zero():
    items = [
        {"score": "7"},
        {"score": "abc"},
        {"score": None},
        {"name": "no score"},
        {"score": True},
        {"score": [1, 2]},
        "not an item",
    ]
    assert compute_total_score(items) == 7


def test_fractional_scores_are_kept():
    assert compute_total_score([{"score": 2.5}, {"score": "1.5"}]) == 4


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "inf", "NaN"])
def test_non_finite_scores_count_as_zero(value):
    assert item_score(value) == 0


def test_integers_beyond_float_range_count_as_zero():
    assert item_score(10 ** 400) == 0
    assert item_score(-(10 ** 400)) == 0
    assert compute_total_score([{"score": 10 ** 400}, {"score": 2}]) == 2


def test_total_score_accepts_stored_json_text():
    raw = json.dumps([{"score": 3}, {"score": 4}])
    assert compute_total_score(raw) == 7
    assert compute_total_score("{broken") == 0
