"""
API Error Enhancement Module

Turns Honeycomb API failures into actionable text: remediation suggestions keyed
by HTTP status, pattern-matched hints for common query mistakes, and the
formatted failure message every tool returns instead of raising.
"""

import re
from typing import List, Optional

from src.logging import get_logger
from src.telemetry.metrics import record_error

from .errors import HoneycombAPIError, ToolInputError

logger = get_logger('ERRORS')


STATUS_SUGGESTIONS = {
    400: [
        "Check the query parameters against the Honeycomb query specification",
    ],
    401: [
        "Verify the API key configured for this environment is valid",
        "Make sure the key has not been revoked or rotated",
    ],
    403: [
        "Verify the API key has the permissions needed (e.g. 'Run Queries', 'Manage Queries and Columns')",
    ],
    404: [
        "Verify the dataset exists in this environment (use list_datasets)",
        "Check the spelling of the dataset slug, board, SLO or trigger ID",
    ],
    422: [
        "Simplify the query: remove granularity, having and orders, then add them back one at a time",
        "Make sure every column used exists in the dataset (use list_columns)",
    ],
    429: [
        "The Honeycomb API rate limit was hit; wait before issuing more queries",
    ],
    504: [
        "Narrow the time range or add filters so the query completes faster",
    ],
}

SERVER_ERROR_SUGGESTIONS = [
    "Honeycomb returned a server error; try again shortly",
]


# Error pattern catalog for query failures
ERROR_PATTERNS = [
    {
        "name": "unknown_column",
        "pattern": r'(?:unknown|invalid|nonexistent) column[:\s]+"?([\w.\-]+)"?',
        "hint": "Column '{0}' does not exist in this dataset. Use list_columns to see the available columns.",
    },
    {
        "name": "time_range_conflict",
        "pattern": r'time_range.*(?:start_time|end_time)',
        "hint": "Specify either time_range alone, time_range with one of start_time/end_time, or start_time with end_time.",
    },
    {
        "name": "granularity_too_small",
        "pattern": r'granularity',
        "hint": "The granularity is too small for the time window; use at least time_range / 1000 seconds.",
    },
    {
        "name": "calculation_requires_column",
        "pattern": r'(\w+) requires a column',
        "hint": "The {0} calculation needs a column; only COUNT and CONCURRENCY work without one.",
    },
]


def suggestions_for_status(status_code: Optional[int]) -> List[str]:
    """Return remediation suggestions for an HTTP status code."""
    if status_code is None:
        return []
    if status_code >= 500 and status_code != 504:
        return list(SERVER_ERROR_SUGGESTIONS)
    return list(STATUS_SUGGESTIONS.get(status_code, []))


def enhance_api_error(message: str) -> List[str]:
    """Return hints for every known pattern found in an API error message."""
    hints = []
    for entry in ERROR_PATTERNS:
        match = re.search(entry["pattern"], message, re.IGNORECASE)
        if match:
            hints.append(entry["hint"].format(*match.groups()))
    return hints


def handle_tool_error(
    error: Exception,
    tool_name: str,
    environment: Optional[str] = None,
    dataset: Optional[str] = None
) -> str:
    """
    Format a tool failure as the text returned to the MCP client.

    Args:
        error: The exception raised while running the tool
        tool_name: Name of the tool that failed
        environment: Honeycomb environment, when known
        dataset: Dataset slug, when known

    Returns:
        Clearly labeled failure text with suggestions
    """
    suggestions: List[str] = []

    if isinstance(error, HoneycombAPIError):
        if not error.suggestions:
            error.suggestions = suggestions_for_status(error.status_code) + enhance_api_error(error.message)
        error_message = error.get_formatted_message()
        error_type = "upstream"
    elif isinstance(error, ToolInputError):
        error_message = str(error)
        error_type = "input"
    else:
        error_message = str(error) or type(error).__name__
        error_type = "internal"
        suggestions = enhance_api_error(error_message)

    if error_type == "input":
        logger.warning(f"tool input rejected | tool:{tool_name} | error:{error_message}")
    else:
        logger.error(f"tool failed | tool:{tool_name} | type:{type(error).__name__} | error:{error_message[:200]}")

    record_error(error_type, tool_name, environment=environment, dataset=dataset)

    help_text = (
        f"Failed to execute tool '{tool_name}': {error_message}\n\n"
        "Please verify:\n"
        "- The environment name is correct and configured (HONEYCOMB_API_KEY or ~/.hny/config.json)\n"
        "- Your API key is valid\n"
        "- The dataset exists and you have access to it\n"
        "- Your query parameters are valid\n"
    )
    if suggestions:
        help_text += "\n" + "\n".join(f"- {s}" for s in suggestions) + "\n"
    return help_text
