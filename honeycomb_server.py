#!/usr/bin/env python3
"""
Honeycomb MCP Server
A Model Context Protocol server that exposes Honeycomb query and metadata APIs
as tools, using organized modules for better maintainability and reusability.
"""

import os
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

# Initialize OpenTelemetry instrumentation early
from src.telemetry import initialize_telemetry, initialize_metrics, get_telemetry_status, get_metrics_status
from src.telemetry.decorators import trace_mcp_tool
telemetry_enabled = initialize_telemetry()

# Initialize metrics if telemetry is enabled
if telemetry_enabled:
    metrics_enabled = initialize_metrics()
else:
    metrics_enabled = False

# Import organized Honeycomb API modules
from src.honeycomb import (
    run_query as honeycomb_run_query,
    analyze_column as honeycomb_analyze_column,
    analyze_columns as honeycomb_analyze_columns,
    list_datasets as honeycomb_list_datasets,
    list_columns as honeycomb_list_columns,
    get_dataset_resource,
    list_boards as honeycomb_list_boards,
    get_board as honeycomb_get_board,
    list_markers as honeycomb_list_markers,
    list_recipients as honeycomb_list_recipients,
    list_slos as honeycomb_list_slos,
    get_slo as honeycomb_get_slo,
    list_triggers as honeycomb_list_triggers,
    get_trigger as honeycomb_get_trigger,
    get_trace_link as honeycomb_get_trace_link,
    instrumentation_guidance_prompt,
    validate_honeycomb_config
)

from src.logging import honeycomb_logger as logger, log_tool_call

from fastmcp import Context, FastMCP

mcp = FastMCP(name="honeycomb")

config_error = validate_honeycomb_config()
if config_error:
    # Tools still register; each call reports the configuration problem
    logger.warning(config_error)


@mcp.tool()
@trace_mcp_tool(tool_name="list_datasets", record_args=True, record_result=False)
async def list_datasets(
    ctx: Context,
    environment: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    search: Optional[str] = None,
    search_fields: Optional[Union[str, List[str]]] = None
) -> str:
    """
    List the datasets in a Honeycomb environment.

    Returns names, slugs, descriptions and timestamps. Pass page/limit, sort_by
    (with sort_order "asc" or "desc") or search (over search_fields, default
    name, slug and description) to get a paginated {data, metadata} response.

    Args:
        environment: Configured Honeycomb environment name
        page: Page number, starting at 1
        limit: Items per page (default 10 when paging)
        sort_by: Field to sort by, e.g. "name" or "last_written_at"
        sort_order: "asc" or "desc"
        search: Case-insensitive substring to search for
        search_fields: Field or fields to search
    """
    log_tool_call("list_datasets", environment=environment, page=page, limit=limit, search=search)
    return await honeycomb_list_datasets(
        environment, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
        search=search, search_fields=search_fields
    )


@mcp.tool()
@trace_mcp_tool(tool_name="list_columns", record_args=True, record_result=False)
async def list_columns(
    ctx: Context,
    environment: str,
    dataset: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    search: Optional[str] = None,
    search_fields: Optional[Union[str, List[str]]] = None
) -> str:
    """
    List the visible columns of a dataset with their types and descriptions.

    Supports the same paging, sorting and search options as list_datasets
    (search defaults to name and description).

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
    """
    log_tool_call("list_columns", environment=environment, dataset=dataset, page=page, limit=limit, search=search)
    return await honeycomb_list_columns(
        environment, dataset, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
        search=search, search_fields=search_fields
    )


@mcp.tool()
@trace_mcp_tool(tool_name="run_query", record_args=True, record_result=False)
async def run_query(
    ctx: Context,
    environment: str,
    dataset: str,
    calculations: Optional[List[Dict[str, Any]]] = None,
    breakdowns: Optional[List[str]] = None,
    filters: Optional[List[Dict[str, Any]]] = None,
    filter_combination: Optional[str] = None,
    orders: Optional[List[Dict[str, Any]]] = None,
    limit: Optional[int] = None,
    having: Optional[List[Dict[str, Any]]] = None,
    time_range: Optional[int] = None,
    start_time: Optional[int] = None,
    end_time: Optional[int] = None,
    granularity: Optional[int] = None
) -> str:
    """
    Run a Honeycomb query and return the results with statistical summaries.

    Use "__all__" as the dataset to query the whole environment.

    ## Query parts

    - calculations: [{"op": "COUNT"}, {"op": "P95", "column": "duration_ms"}].
      Every op except COUNT and CONCURRENCY needs a column.
    - breakdowns: columns to group by, e.g. ["service.name"]
    - filters: [{"column": "http.status_code", "op": ">=", "value": 500}]
    - filter_combination: "AND" (default) or "OR"
    - orders: [{"op": "COUNT", "order": "descending"}]; an order column must be a
      breakdown or a calculated column, and HEATMAP cannot be ordered
    - having: [{"calculate_op": "COUNT", "op": ">", "value": 100}]; must match a calculation
    - time_range: seconds before now (default 7200). Combine with at most one of
      start_time/end_time (unix seconds), never both.
    - granularity: bucket size in seconds; keep it at least time_range / 1000

    ## Result

    results, series (HEATMAP queries only), query_url, summary (per-calculation
    min/max/avg/median/sum/range/stdDev, COUNT totals, breakdown cardinality and
    top values) and metadata.

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug or "__all__"
    """
    log_tool_call("run_query", environment=environment, dataset=dataset, time_range=time_range)
    return await honeycomb_run_query(
        environment, dataset,
        calculations=calculations, breakdowns=breakdowns, filters=filters,
        filter_combination=filter_combination, orders=orders, limit=limit, having=having,
        time_range=time_range, start_time=start_time, end_time=end_time, granularity=granularity
    )


@mcp.tool()
@trace_mcp_tool(tool_name="analyze_column", record_args=True, record_result=False)
async def analyze_column(
    ctx: Context,
    environment: str,
    dataset: str,
    column: str,
    time_range: Optional[int] = None,
    query: Optional[Dict[str, Any]] = None
) -> str:
    """
    Profile one column of a dataset before writing queries against it.

    Runs a single query (by default COUNT grouped by the column over the last
    hour, most frequent first, up to 1000 groups) and reports:

    - count / totalEvents: rows examined and events they represent
    - cardinality: distinct values and a low / medium / high / very high band
    - topValues with percentages (text columns), or
    - stats: min, max, avg, p95, median, sum, range, stdDev and an
      interpretation (numeric columns)
    - processingError: present when some rows could not be used

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
        column: Column to analyze
        time_range: Seconds to look back (default 3600)
        query: Optional query to use instead; it must reference the column
    """
    log_tool_call("analyze_column", environment=environment, dataset=dataset, column=column)
    return await honeycomb_analyze_column(environment, dataset, column, time_range=time_range, query=query)


@mcp.tool()
@trace_mcp_tool(tool_name="analyze_columns", record_args=True, record_result=False)
async def analyze_columns(
    ctx: Context,
    environment: str,
    dataset: str,
    columns: List[str],
    time_range: Optional[int] = None
) -> str:
    """
    Profile up to 10 columns together from one query grouped by all of them.

    Returns one column report per column (as analyze_column) plus the
    cardinality of their value combinations.

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
        columns: Column names, at most 10
        time_range: Seconds to look back (default 3600)
    """
    log_tool_call("analyze_columns", environment=environment, dataset=dataset, columns=len(columns or []))
    return await honeycomb_analyze_columns(environment, dataset, columns, time_range=time_range)


@mcp.tool()
@trace_mcp_tool(tool_name="list_boards", record_args=True, record_result=False)
async def list_boards(
    ctx: Context,
    environment: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    search: Optional[str] = None,
    search_fields: Optional[Union[str, List[str]]] = None
) -> str:
    """
    List the boards of an environment. Supports paging, sorting and search.

    Args:
        environment: Configured Honeycomb environment name
    """
    log_tool_call("list_boards", environment=environment, page=page, limit=limit, search=search)
    return await honeycomb_list_boards(
        environment, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
        search=search, search_fields=search_fields
    )


@mcp.tool()
@trace_mcp_tool(tool_name="get_board", record_args=True, record_result=False)
async def get_board(ctx: Context, environment: str, board_id: str) -> str:
    """
    Get a board with its queries and layout.

    Args:
        environment: Configured Honeycomb environment name
        board_id: Board ID from list_boards
    """
    log_tool_call("get_board", environment=environment, board_id=board_id)
    return await honeycomb_get_board(environment, board_id)


@mcp.tool()
@trace_mcp_tool(tool_name="list_markers", record_args=True, record_result=False)
async def list_markers(ctx: Context, environment: str) -> str:
    """
    List the markers (deploys and other events) of an environment.

    Args:
        environment: Configured Honeycomb environment name
    """
    log_tool_call("list_markers", environment=environment)
    return await honeycomb_list_markers(environment)


@mcp.tool()
@trace_mcp_tool(tool_name="list_recipients", record_args=True, record_result=False)
async def list_recipients(ctx: Context, environment: str) -> str:
    """
    List the notification recipients of an environment.

    Args:
        environment: Configured Honeycomb environment name
    """
    log_tool_call("list_recipients", environment=environment)
    return await honeycomb_list_recipients(environment)


@mcp.tool()
@trace_mcp_tool(tool_name="list_slos", record_args=True, record_result=False)
async def list_slos(ctx: Context, environment: str, dataset: str) -> str:
    """
    List the SLOs defined on a dataset.

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
    """
    log_tool_call("list_slos", environment=environment, dataset=dataset)
    return await honeycomb_list_slos(environment, dataset)


@mcp.tool()
@trace_mcp_tool(tool_name="get_slo", record_args=True, record_result=False)
async def get_slo(ctx: Context, environment: str, dataset: str, slo_id: str) -> str:
    """
    Get an SLO with its compliance and remaining error budget.

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
        slo_id: SLO ID from list_slos
    """
    log_tool_call("get_slo", environment=environment, dataset=dataset, slo_id=slo_id)
    return await honeycomb_get_slo(environment, dataset, slo_id)


@mcp.tool()
@trace_mcp_tool(tool_name="list_triggers", record_args=True, record_result=False)
async def list_triggers(ctx: Context, environment: str, dataset: str) -> str:
    """
    List a dataset's triggers with counts of active and currently firing triggers.

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
    """
    log_tool_call("list_triggers", environment=environment, dataset=dataset)
    return await honeycomb_list_triggers(environment, dataset)


@mcp.tool()
@trace_mcp_tool(tool_name="get_trigger", record_args=True, record_result=False)
async def get_trigger(ctx: Context, environment: str, dataset: str, trigger_id: str) -> str:
    """
    Get a trigger with its threshold, recipients and status (TRIGGERED, DISABLED or ACTIVE).

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
        trigger_id: Trigger ID from list_triggers
    """
    log_tool_call("get_trigger", environment=environment, dataset=dataset, trigger_id=trigger_id)
    return await honeycomb_get_trigger(environment, dataset, trigger_id)


@mcp.tool()
@trace_mcp_tool(tool_name="get_trace_link", record_args=True, record_result=False)
async def get_trace_link(
    ctx: Context,
    environment: str,
    dataset: str,
    trace_id: str,
    span_id: Optional[str] = None,
    trace_start_ts: Optional[int] = None,
    trace_end_ts: Optional[int] = None
) -> str:
    """
    Build a Honeycomb UI link to a trace, optionally focused on one span.

    Args:
        environment: Configured Honeycomb environment name
        dataset: Dataset slug
        trace_id: Trace ID
        span_id: Span to highlight
        trace_start_ts: Trace start (unix seconds) to narrow the lookup
        trace_end_ts: Trace end (unix seconds)
    """
    log_tool_call("get_trace_link", environment=environment, dataset=dataset, trace_id=trace_id)
    return await honeycomb_get_trace_link(
        environment, dataset, trace_id,
        span_id=span_id, trace_start_ts=trace_start_ts, trace_end_ts=trace_end_ts
    )


@mcp.resource("honeycomb://{environment}/{dataset}")
async def dataset_resource(environment: str, dataset: str) -> str:
    """Dataset details and visible columns."""
    return await get_dataset_resource(environment, dataset)


@mcp.prompt(name="instrumentation-guidance")
def instrumentation_guidance(language: Optional[str] = None, filepath: Optional[str] = None) -> str:
    """OpenTelemetry instrumentation guidance optimized for Honeycomb"""
    return instrumentation_guidance_prompt(language, filepath)


def main():
    import signal
    import atexit

    # Register shutdown handler for telemetry
    def shutdown_handler():
        if telemetry_enabled:
            from src.telemetry.config import shutdown_telemetry
            shutdown_telemetry()

    # Register shutdown on exit and signal
    atexit.register(shutdown_handler)
    signal.signal(signal.SIGTERM, lambda signum, frame: shutdown_handler())
    signal.signal(signal.SIGINT, lambda signum, frame: shutdown_handler())

    telemetry_status = get_telemetry_status()
    logger.info(
        f"starting server | telemetry:{telemetry_status['enabled']} | "
        f"endpoint:{telemetry_status['endpoint']} | metrics:{get_metrics_status()['enabled']}"
    )

    transport = os.getenv("MCP_TRANSPORT", "stdio")
    if transport == "stdio":
        mcp.run()
    else:
        mcp.run(transport=transport, host=os.getenv("MCP_HOST", "0.0.0.0"), port=int(os.getenv("MCP_PORT", "8000")))


if __name__ == "__main__":
    main()
