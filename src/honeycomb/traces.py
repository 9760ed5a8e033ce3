"""
Links into the Honeycomb trace view
"""

from typing import Optional
from urllib.parse import quote, urlencode

from src.logging import get_logger

from .client import HoneycombAPI, get_api
from .config import DEFAULT_UI_ENDPOINT
from .error_enhancement import handle_tool_error
from .errors import require
from .formatting import to_json

logger = get_logger('TRACES')


def build_trace_url(
    team: str,
    environment: str,
    dataset: str,
    trace_id: str,
    span_id: Optional[str] = None,
    trace_start_ts: Optional[int] = None,
    trace_end_ts: Optional[int] = None
) -> str:
    params = {"trace_id": trace_id}
    if span_id:
        params["span"] = span_id
    if trace_start_ts:
        params["trace_start_ts"] = trace_start_ts
    if trace_end_ts:
        params["trace_end_ts"] = trace_end_ts
    return (
        f"{DEFAULT_UI_ENDPOINT}/{quote(team)}/environments/{quote(environment)}"
        f"/datasets/{quote(dataset, safe='')}/trace?{urlencode(params)}"
    )


async def get_trace_link(
    environment: str,
    dataset: str,
    trace_id: str,
    span_id: Optional[str] = None,
    trace_start_ts: Optional[int] = None,
    trace_end_ts: Optional[int] = None,
    api: Optional[HoneycombAPI] = None
) -> str:
    """Deep link to a trace (and optionally a span) in the Honeycomb UI."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        require(trace_id, "trace_id")
        api = api or get_api()

        team = await api.get_team_slug(environment)
        url = build_trace_url(team, environment, dataset, trace_id, span_id, trace_start_ts, trace_end_ts)
        logger.debug(f"trace link built | env:{environment} | dataset:{dataset} | trace:{trace_id}")

        return to_json({
            "url": url,
            "environment": environment,
            "dataset": dataset,
            "traceId": trace_id,
            "team": team,
        })
    except Exception as e:
        return handle_tool_error(e, "get_trace_link", environment=environment, dataset=dataset)
