#!/usr/bin/env python3
"""
Tests for the statistics helpers used by column analysis and query summaries.
"""

import math

import numpy as np
import pytest

from src.honeycomb.statistics import (
    add_percentages,
    calculate_numeric_statistics,
    calculate_std_dev,
    count_values,
    get_top_values,
    is_numeric,
    row_weight,
    to_number,
    to_scalar,
    unique_count,
    value_key,
)


class TestStdDev:
    def test_empty_and_single_values_are_zero(self):
        assert calculate_std_dev([], 0) == 0
        assert calculate_std_dev([42], 42) == 0

    def test_population_std_dev(self):
        values = [2, 4, 4, 4, 5, 5, 7, 9]
        assert calculate_std_dev(values, 5) == pytest.approx(2.0)

    def test_uses_supplied_mean(self):
        # Mean is taken as given, not recomputed
        assert calculate_std_dev([1, 1], 0) == pytest.approx(1.0)

    def test_weights_repeat_values(self):
        assert calculate_std_dev([2, 4, 5, 7, 9], 5, [1, 3, 2, 1, 1]) == pytest.approx(2.0)


class TestTopValues:
    def test_counts_repeated_values(self):
        rows = [{"c": 1}, {"c": 1}, {"c": 2}]
        assert get_top_values(rows, "c", 5) == [
            {"value": 1, "count": 2},
            {"value": 2, "count": 1},
        ]

    def test_null_and_absent_values_are_skipped(self):
        rows = [{"c": None}, {}, {"c": "a"}, {"c": "a"}]
        table = count_values(rows, "c")
        assert table == [{"value": "a", "count": 2}]
        assert sum(entry["count"] for entry in table) == 2

    def test_no_coercion_between_types(self):
        rows = [{"c": 1}, {"c": "1"}, {"c": True}, {"c": 1.0}]
        table = count_values(rows, "c")
        assert len(table) == 3
        assert table[0] == {"value": 1, "count": 2}
        assert {"value": "1", "count": 1} in table
        assert table[2]["value"] is True

    def test_ties_keep_first_seen_order(self):
        rows = [{"c": "b"}, {"c": "a"}, {"c": "a"}, {"c": "b"}, {"c": "z"}]
        assert [entry["value"] for entry in get_top_values(rows, "c")] == ["b", "a", "z"]

    def test_limit_truncates_to_most_frequent(self):
        rows = [{"c": "x"}] * 3 + [{"c": "y"}] * 2 + [{"c": "z"}]
        top = get_top_values(rows, "c", limit=2)
        assert len(top) == 2
        assert [entry["count"] for entry in top] == [3, 2]

    def test_nan_values_group_together(self):
        rows = [{"c": float("nan")}, {"c": float("nan")}]
        table = count_values(rows, "c")
        assert len(table) == 1
        assert table[0]["count"] == 2

    def test_breakdown_rows_weighted_by_count(self):
        rows = [
            {"c": "ok", "COUNT": 9990},
            {"c": "error", "COUNT": 10},
            {"c": "slow", "COUNT": "n/a"},
        ]
        assert get_top_values(rows, "c", weight_column="COUNT") == [
            {"value": "ok", "count": 9990},
            {"value": "error", "count": 10},
            {"value": "slow", "count": 0},
        ]

    def test_row_weight(self):
        assert row_weight({"COUNT": 7}) == 1
        assert row_weight({"COUNT": 7}, "COUNT") == 7
        assert row_weight({}, "COUNT") == 0
        assert row_weight({"COUNT": True}, "COUNT") == 0
        assert row_weight({"COUNT": -3}, "COUNT") == 0


class TestPercentages:
    def test_formats_two_decimals(self):
        annotated = add_percentages([{"value": "a", "count": 2}], 3)
        assert annotated == [{"value": "a", "count": 2, "percentage": "66.67%"}]

    def test_denominator_includes_null_rows(self):
        rows = [{"c": "a"}, {"c": None}, {"c": None}, {}]
        annotated = add_percentages(get_top_values(rows, "c"), len(rows))
        assert annotated[0]["percentage"] == "25.00%"

    def test_zero_rows(self):
        assert add_percentages([{"value": "a", "count": 1}], 0)[0]["percentage"] == "0%"


class TestNumericStatistics:
    def test_skewed_values(self):
        stats = calculate_numeric_statistics([10, 10, 10, 10, 100])
        assert stats["min"] == 10
        assert stats["max"] == 100
        assert stats["avg"] == pytest.approx(28)
        assert stats["range"] == 90
        assert stats["sum"] == 140
        assert stats["median"] == 10
        assert stats["p95"] == pytest.approx(82)
        assert stats["stdDev"] == pytest.approx(36)

    def test_empty_list(self):
        assert calculate_numeric_statistics([]) == {}

    def test_range_matches_min_max(self):
        stats = calculate_numeric_statistics([3.5, -1.5, 7.25])
        assert stats["range"] == stats["max"] - stats["min"]
        assert stats["stdDev"] >= 0

    def test_weighted_matches_expanded_values(self):
        expanded = calculate_numeric_statistics([1, 1, 1, 4, 4, 9, 20])
        weighted = calculate_numeric_statistics([20, 1, 4, 9], [1, 3, 2, 1])
        for key in ("min", "max", "avg", "p95", "median", "sum", "range", "stdDev"):
            assert weighted[key] == pytest.approx(expanded[key])
        assert weighted["p95"] == pytest.approx(np.percentile([1, 1, 1, 4, 4, 9, 20], 95))
        assert weighted["median"] == pytest.approx(np.median([1, 1, 1, 4, 4, 9, 20]))

    def test_heavy_tail_is_event_weighted(self):
        stats = calculate_numeric_statistics([10, 1000], [999, 1])
        assert stats["avg"] == pytest.approx(10.99)
        assert stats["p95"] == 10
        assert stats["max"] == 1000

    def test_unweighted_values_are_dropped(self):
        stats = calculate_numeric_statistics([5, 500], [2, 0])
        assert stats["max"] == 5
        assert calculate_numeric_statistics([5], [0]) == {}


class TestScalars:
    def test_to_number(self):
        assert to_number(3) == 3.0
        assert to_number(" 2.5 ") == 2.5

    @pytest.mark.parametrize("value", [True, None, "abc", float("nan")])
    def test_to_number_rejects(self, value):
        with pytest.raises(ValueError):
            to_number(value)

    def test_is_numeric(self):
        assert is_numeric(1)
        assert is_numeric(1.5)
        assert not is_numeric(True)
        assert not is_numeric("1")
        assert not is_numeric(None)

    def test_value_keys(self):
        assert value_key(True) != value_key(1)
        assert value_key(1) == value_key(1.0)
        assert value_key("1") != value_key(1)
        assert value_key(float("nan")) == value_key(math.nan)

    def test_to_scalar_rejects_nested_values(self):
        assert to_scalar("x") == "x"
        assert to_scalar(None) is None
        with pytest.raises(ValueError):
            to_scalar([1, 2])
        with pytest.raises(ValueError):
            to_scalar({"a": 1})

    def test_unique_count(self):
        rows = [{"c": 1}, {"c": 1.0}, {"c": True}, {"c": None}, {"c": "1"}]
        assert unique_count(rows, "c") == 3
