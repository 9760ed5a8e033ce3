#!/usr/bin/env python3
"""
Tests for query construction, query validation and result summaries.
"""

import pytest

from src.honeycomb.errors import ToolInputError
from src.honeycomb.queries import (
    build_column_analysis_query,
    build_query,
    has_count_calculation,
    has_heatmap,
    query_references_column,
    validate_query,
)
from src.honeycomb.summaries import summarize_results


class TestBuildQuery:
    def test_defaults(self):
        assert build_query() == {"calculations": [{"op": "COUNT"}], "limit": 100}

    def test_unset_parameters_are_dropped(self):
        query = build_query(breakdowns=["service"], time_range=600)
        assert query == {
            "calculations": [{"op": "COUNT"}],
            "breakdowns": ["service"],
            "limit": 100,
            "time_range": 600,
        }

    def test_column_analysis_query(self):
        query = build_column_analysis_query(["a", "b"], 7200)
        assert query["breakdowns"] == ["a", "b"]
        assert query["time_range"] == 7200
        assert query["limit"] == 1000

    def test_helpers(self):
        query = {"calculations": [{"op": "HEATMAP", "column": "duration_ms"}], "breakdowns": ["service"]}
        assert query_references_column(query, "duration_ms")
        assert query_references_column(query, "service")
        assert not query_references_column(query, "status")
        assert has_heatmap(query)
        assert not has_count_calculation(query)


class TestValidateQuery:
    def test_valid_query(self):
        validate_query({
            "calculations": [{"op": "COUNT"}, {"op": "P99", "column": "duration_ms"}],
            "breakdowns": ["service"],
            "orders": [{"op": "P99", "column": "duration_ms", "order": "descending"}],
            "having": [{"calculate_op": "COUNT", "op": ">", "value": 10}],
            "time_range": 3600,
        })

    def test_time_parameters_conflict(self):
        with pytest.raises(ToolInputError, match="simultaneously"):
            validate_query({"calculations": [{"op": "COUNT"}], "time_range": 60, "start_time": 1, "end_time": 61})

    def test_start_and_end_without_range_is_allowed(self):
        validate_query({"calculations": [{"op": "COUNT"}], "start_time": 1, "end_time": 61})

    def test_calculation_needs_column(self):
        with pytest.raises(ToolInputError, match="P95 requires a column"):
            validate_query({"calculations": [{"op": "P95"}]})

    def test_heatmap_order(self):
        with pytest.raises(ToolInputError, match="HEATMAP"):
            validate_query({
                "calculations": [{"op": "HEATMAP", "column": "duration_ms"}],
                "orders": [{"op": "HEATMAP", "column": "duration_ms"}],
            })

    def test_order_column_outside_breakdowns(self):
        with pytest.raises(ToolInputError, match="must be in breakdowns"):
            validate_query({
                "calculations": [{"op": "COUNT"}],
                "breakdowns": ["service"],
                "orders": [{"column": "status"}],
            })

    def test_order_op_without_column(self):
        with pytest.raises(ToolInputError, match="requires a column"):
            validate_query({
                "calculations": [{"op": "AVG", "column": "duration_ms"}],
                "orders": [{"op": "AVG"}],
            })

    def test_order_references_missing_calculation(self):
        with pytest.raises(ToolInputError, match="non-existent calculation"):
            validate_query({
                "calculations": [{"op": "AVG", "column": "duration_ms"}],
                "orders": [{"op": "MAX", "column": "duration_ms"}],
            })

    def test_having_must_match_calculation(self):
        with pytest.raises(ToolInputError) as exc:
            validate_query({
                "calculations": [{"op": "COUNT"}],
                "having": [{"calculate_op": "AVG", "column": "duration_ms", "op": ">", "value": 1}],
            })
        assert exc.value.parameter == "having"


class TestSummarizeResults:
    def test_empty(self):
        assert summarize_results([], {"calculations": [{"op": "COUNT"}]}) == {"count": 0}

    def test_calculation_count_and_breakdown_summaries(self):
        rows = [
            {"service": "api", "COUNT": 5, "AVG(duration_ms)": 10},
            {"service": "web", "COUNT": 3, "AVG(duration_ms)": 20},
        ]
        query = {
            "calculations": [{"op": "COUNT"}, {"op": "AVG", "column": "duration_ms"}],
            "breakdowns": ["service"],
        }
        summary = summarize_results(rows, query)

        assert summary["count"] == 2
        avg = summary["AVG(duration_ms)"]
        assert avg["min"] == 10
        assert avg["max"] == 20
        assert avg["avg"] == pytest.approx(15)
        assert avg["median"] == pytest.approx(15)
        assert avg["sum"] == 30
        assert avg["range"] == 10
        assert avg["stdDev"] == pytest.approx(5)
        assert summary["countStats"] == {"total": 8, "max": 5, "min": 3, "avg": 4}
        assert summary["breakdowns"]["service"] == {
            "uniqueCount": 2,
            "topValues": [{"value": "api", "count": 1}, {"value": "web", "count": 1}],
        }

    def test_calculation_missing_from_rows_is_skipped(self):
        rows = [{"COUNT": 1}]
        query = {"calculations": [{"op": "COUNT"}, {"op": "MAX", "column": "size"}]}
        summary = summarize_results(rows, query)
        assert "MAX(size)" not in summary
        assert summary["countStats"]["total"] == 1
