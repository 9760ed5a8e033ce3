#!/usr/bin/env python3
"""
Tests for the MCP tool functions, run against a mocked Honeycomb client.

Tools never raise: failures come back as text starting with
"Failed to execute tool '<name>':".
"""

import json
from unittest.mock import AsyncMock

import pytest

from src.honeycomb import (
    analyze_column,
    analyze_columns,
    get_board,
    get_dataset_resource,
    get_slo,
    get_trace_link,
    get_trigger,
    list_boards,
    list_columns,
    list_datasets,
    list_markers,
    list_recipients,
    list_slos,
    list_triggers,
    run_query,
    set_api,
)
from src.honeycomb.errors import HoneycombAPIError
from src.honeycomb.queries import QueryResult
from src.honeycomb.traces import build_trace_url
from src.telemetry import metrics
from src.telemetry.decorators import trace_mcp_tool


@pytest.fixture
def api():
    return AsyncMock()


class TestDatasetTools:
    @pytest.mark.asyncio
    async def test_list_datasets(self, api):
        api.list_datasets.return_value = [
            {"name": "Web", "slug": "web", "description": None, "created_at": "2024-01-01"},
            {"name": "api", "slug": "api", "description": "API traffic"},
        ]
        datasets = json.loads(await list_datasets("prod", api=api))

        assert [d["slug"] for d in datasets] == ["web", "api"]
        assert datasets[0]["description"] == ""
        api.list_datasets.assert_awaited_once_with("prod")

    @pytest.mark.asyncio
    async def test_list_datasets_sorted_and_paged(self, api):
        api.list_datasets.return_value = [
            {"name": "Web", "slug": "web"},
            {"name": "api", "slug": "api"},
            {"name": "jobs", "slug": "jobs"},
        ]
        page = json.loads(await list_datasets("prod", sort_by="name", limit=2, api=api))

        assert [d["name"] for d in page["data"]] == ["api", "jobs"]
        assert page["metadata"] == {"total": 3, "page": 1, "pages": 2, "limit": 2}

    @pytest.mark.asyncio
    async def test_list_columns(self, api):
        api.get_visible_columns.return_value = [
            {"key_name": "duration_ms", "type": "float", "description": None},
        ]
        columns = json.loads(await list_columns("prod", "web", api=api))

        assert columns == [{
            "name": "duration_ms",
            "type": "float",
            "description": "",
            "hidden": False,
            "last_written": None,
            "created_at": None,
        }]

    @pytest.mark.asyncio
    async def test_missing_parameter(self, api):
        result = await list_columns("prod", "", api=api)

        assert result.startswith("Failed to execute tool 'list_columns': Missing required parameter: dataset")
        api.get_visible_columns.assert_not_called()

    @pytest.mark.asyncio
    async def test_dataset_resource(self, api):
        api.get_dataset.return_value = {"name": "Web", "slug": "web", "description": "frontend"}
        api.get_visible_columns.return_value = [{"key_name": "status", "type": "string"}]

        resource = json.loads(await get_dataset_resource("prod", "web", api=api))

        assert resource["slug"] == "web"
        assert resource["columns"] == [{"name": "status", "type": "string", "description": ""}]

    @pytest.mark.asyncio
    async def test_dataset_resource_raises(self, api):
        api.get_dataset.side_effect = HoneycombAPIError("dataset not found", status_code=404)
        with pytest.raises(HoneycombAPIError):
            await get_dataset_resource("prod", "missing", api=api)


class TestQueryTools:
    @pytest.mark.asyncio
    async def test_run_query(self, api):
        api.run_analysis_query.return_value = QueryResult(
            rows=[{"service": "api", "COUNT": 4}],
            series=[{"time": 1}],
            query_url="https://ui.honeycomb.io/acme/q/1",
        )
        response = json.loads(await run_query("prod", "web", breakdowns=["service"], time_range=600, api=api))

        assert response["results"] == [{"service": "api", "COUNT": 4}]
        assert "series" not in response
        assert response["query_url"] == "https://ui.honeycomb.io/acme/q/1"
        assert response["summary"]["countStats"]["total"] == 4
        assert response["metadata"]["resultCount"] == 1
        assert response["metadata"]["environment"] == "prod"

        query = api.run_analysis_query.await_args.args[2]
        assert query["breakdowns"] == ["service"]
        assert query["time_range"] == 600

    @pytest.mark.asyncio
    async def test_run_query_heatmap_includes_series(self, api):
        api.run_analysis_query.return_value = QueryResult(rows=[], series=[{"time": 1}])
        response = json.loads(await run_query(
            "prod", "web", calculations=[{"op": "HEATMAP", "column": "duration_ms"}], api=api
        ))
        assert response["series"] == [{"time": 1}]

    @pytest.mark.asyncio
    async def test_run_query_rejects_invalid_query(self, api):
        result = await run_query("prod", "web", calculations=[{"op": "P99"}], api=api)

        assert result.startswith("Failed to execute tool 'run_query': Calculation P99 requires a column.")
        api.run_analysis_query.assert_not_called()

    @pytest.mark.asyncio
    async def test_analyze_column(self, api):
        api.run_analysis_query.return_value = QueryResult(rows=[
            {"status": "ok", "COUNT": 90},
            {"status": "error", "COUNT": 10},
        ])
        report = json.loads(await analyze_column("prod", "web", "status", api=api))

        assert report["column"] == "status"
        assert report["totalEvents"] == 100
        assert report["topValues"][0] == {"value": "ok", "count": 90, "percentage": "90.00%"}
        assert report["cardinality"] == {"uniqueCount": 2, "classification": "low"}

    @pytest.mark.asyncio
    async def test_analyze_column_upstream_failure(self, api):
        api.run_analysis_query.side_effect = HoneycombAPIError("dataset not found", status_code=404)
        result = await analyze_column("prod", "missing", "status", api=api)

        assert result.startswith(
            "Failed to execute tool 'analyze_column': Honeycomb API error (404): dataset not found"
        )
        assert "Please verify:" in result
        assert "Verify the dataset exists" in result

    @pytest.mark.asyncio
    async def test_analyze_columns_limit(self, api):
        result = await analyze_columns("prod", "web", [f"c{i}" for i in range(11)], api=api)

        assert "Too many columns requested. Maximum is 10." in result
        api.run_analysis_query.assert_not_called()


class TestCatalogTools:
    @pytest.mark.asyncio
    async def test_list_boards(self, api):
        api.get_boards.return_value = [{"id": "b1", "name": None, "description": None}]
        boards = json.loads(await list_boards("prod", api=api))
        assert boards == [{
            "id": "b1",
            "name": "Unnamed Board",
            "description": "",
            "created_at": None,
            "updated_at": None,
        }]

    @pytest.mark.asyncio
    async def test_get_board(self, api):
        api.get_board.return_value = {"id": "b1", "name": "Latency", "description": None, "queries": []}
        board = json.loads(await get_board("prod", "b1", api=api))
        assert board["description"] == ""
        assert board["queries"] == []

    @pytest.mark.asyncio
    async def test_markers_and_recipients(self, api):
        api.get_markers.return_value = [{"id": "m1", "message": "deploy", "type": "deploy", "url": None}]
        api.get_recipients.return_value = [{"id": "r1", "type": "email", "target": None}]

        markers = json.loads(await list_markers("prod", api=api))
        recipients = json.loads(await list_recipients("prod", api=api))

        assert markers[0]["url"] == ""
        assert markers[0]["end_time"] == ""
        assert recipients[0]["target"] == ""

    @pytest.mark.asyncio
    async def test_slos(self, api):
        api.get_slos.return_value = [{"id": "s1", "name": "Availability", "target_per_million": 999000}]
        api.get_slo.return_value = {
            "id": "s1",
            "name": "Availability",
            "compliance": 99.95,
            "budget_remaining": 42.0,
            "sli": {"alias": "sli_ok"},
        }

        slos = json.loads(await list_slos("prod", "web", api=api))
        slo = json.loads(await get_slo("prod", "web", "s1", api=api))

        assert slos[0]["description"] == ""
        assert slo["sli"] == "sli_ok"
        assert slo["compliance"] == 99.95

    @pytest.mark.asyncio
    async def test_list_triggers(self, api):
        api.get_triggers.return_value = [
            {"id": "t1", "name": "errors", "triggered": True, "threshold": {"op": ">", "value": 5}},
            {"id": "t2", "name": "latency", "disabled": True},
            {"id": "t3", "name": "throughput"},
        ]
        response = json.loads(await list_triggers("prod", "web", api=api))

        assert response["metadata"] == {
            "count": 3,
            "activeCount": 2,
            "triggeredCount": 1,
            "dataset": "web",
            "environment": "prod",
        }
        assert response["triggers"][0]["threshold"] == {"op": ">", "value": 5}

    @pytest.mark.asyncio
    async def test_get_trigger(self, api):
        api.get_trigger.return_value = {
            "id": "t2",
            "name": "latency",
            "disabled": True,
            "recipients": [{"type": "slack", "target": "#alerts"}],
        }
        trigger = json.loads(await get_trigger("prod", "web", "t2", api=api))

        assert trigger["status"] == "DISABLED"
        assert trigger["recipients"] == [{"type": "slack", "target": "#alerts"}]


class TestSharedClient:
    @pytest.mark.asyncio
    async def test_tools_use_shared_client_by_default(self, api):
        api.get_markers.return_value = []
        set_api(api)
        try:
            assert json.loads(await list_markers("prod")) == []
            api.get_markers.assert_awaited_once_with("prod")
        finally:
            set_api(None)


class TestToolTracing:
    @pytest.mark.asyncio
    async def test_failure_text_is_recorded_as_unsuccessful(self, monkeypatch):
        calls = []
        monkeypatch.setattr(
            metrics, "record_tool_invocation",
            lambda name, duration, success, **attrs: calls.append((name, success, attrs))
        )

        @trace_mcp_tool(tool_name="lookup_tool")
        async def lookup_tool(ctx, environment, fail=False):
            return "Failed to execute tool 'lookup_tool': boom" if fail else "{}"

        assert await lookup_tool(None, environment="prod") == "{}"
        await lookup_tool(None, environment="prod", fail=True)

        assert calls == [
            ("lookup_tool", True, {"environment": "prod"}),
            ("lookup_tool", False, {"environment": "prod"}),
        ]


class TestTraceLinks:
    def test_build_trace_url(self):
        url = build_trace_url("acme", "prod", "web", "abc", span_id="s1", trace_start_ts=100, trace_end_ts=200)
        assert url == (
            "https://ui.honeycomb.io/acme/environments/prod/datasets/web/trace"
            "?trace_id=abc&span=s1&trace_start_ts=100&trace_end_ts=200"
        )

    @pytest.mark.asyncio
    async def test_get_trace_link(self, api):
        api.get_team_slug.return_value = "acme"
        link = json.loads(await get_trace_link("prod", "web", "abc", api=api))

        assert link["url"] == "https://ui.honeycomb.io/acme/environments/prod/datasets/web/trace?trace_id=abc"
        assert link["team"] == "acme"
        assert link["traceId"] == "abc"
