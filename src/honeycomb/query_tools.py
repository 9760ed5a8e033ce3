"""
Honeycomb query tools

run_query executes an arbitrary query and summarizes the results;
analyze_column and analyze_columns profile dataset columns.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.logging import query_logger as logger, set_request_context

from .analysis import ColumnAnalyzer
from .client import HoneycombAPI, get_api
from .error_enhancement import handle_tool_error
from .errors import require
from .formatting import to_json
from .queries import build_query, has_heatmap, validate_query
from .summaries import summarize_results


async def run_query(
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
    granularity: Optional[int] = None,
    api: Optional[HoneycombAPI] = None
) -> str:
    """
    Run a query against a dataset (or "__all__" for the whole environment).

    Returns:
        JSON with results, series (HEATMAP queries only), query_url, summary and
        metadata; when summarizing fails the results are still returned with an error
    """
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        set_request_context(environment, dataset)

        query = build_query(
            calculations=calculations, breakdowns=breakdowns, filters=filters,
            filter_combination=filter_combination, orders=orders, limit=limit,
            having=having, time_range=time_range, start_time=start_time,
            end_time=end_time, granularity=granularity
        )
        validate_query(query)
        api = api or get_api()

        logger.info(f"running query | env:{environment} | dataset:{dataset} | calculations:{len(query['calculations'])}")
        result = await api.run_analysis_query(environment, dataset, query)

        try:
            response: Dict[str, Any] = {"results": result.rows}
            if has_heatmap(query):
                response["series"] = result.series
            response["query_url"] = result.query_url
            response["summary"] = summarize_results(result.rows, query)
            response["metadata"] = {
                "environment": environment,
                "dataset": dataset,
                "executedAt": datetime.now(timezone.utc).isoformat(),
                "resultCount": len(result.rows),
            }
            return to_json(response)
        except (TypeError, ValueError, KeyError) as processing_error:
            logger.warning(f"result summary failed | dataset:{dataset} | error:{processing_error}")
            return to_json({
                "results": result.rows,
                "query_url": result.query_url,
                "error": f"Error processing results: {processing_error}",
            })
    except Exception as e:
        return handle_tool_error(e, "run_query", environment=environment, dataset=dataset)
    finally:
        set_request_context()


async def analyze_column(
    environment: str,
    dataset: str,
    column: str,
    time_range: Optional[int] = None,
    query: Optional[Dict[str, Any]] = None,
    api: Optional[HoneycombAPI] = None
) -> str:
    """Profile one column: cardinality, top values or numeric statistics."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        require(column, "column")
        set_request_context(environment, dataset)

        analyzer = ColumnAnalyzer(api or get_api())
        analysis = await analyzer.analyze(environment, dataset, column, query=query, time_range=time_range)
        return to_json(analysis.to_dict())
    except Exception as e:
        return handle_tool_error(e, "analyze_column", environment=environment, dataset=dataset)
    finally:
        set_request_context()


async def analyze_columns(
    environment: str,
    dataset: str,
    columns: List[str],
    time_range: Optional[int] = None,
    api: Optional[HoneycombAPI] = None
) -> str:
    """Profile up to 10 columns from one query grouped by all of them."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        set_request_context(environment, dataset)

        analyzer = ColumnAnalyzer(api or get_api())
        report = await analyzer.analyze_columns(environment, dataset, columns or [], time_range=time_range)
        return to_json(report)
    except Exception as e:
        return handle_tool_error(e, "analyze_columns", environment=environment, dataset=dataset)
    finally:
        set_request_context()
