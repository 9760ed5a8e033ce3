"""
Honeycomb query construction and validation

Builds query specifications for the Queries API, checks them against the
rules the API enforces, and holds the rows a finished query returned.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.logging import query_logger as logger

from .config import DEFAULT_ANALYSIS_ROW_LIMIT, DEFAULT_ANALYSIS_TIME_RANGE, DEFAULT_QUERY_LIMIT
from .errors import ToolInputError


# Calculations that work without a column
COLUMNLESS_OPS = {"COUNT", "CONCURRENCY"}

COLUMN_OPS = {
    "SUM", "AVG", "COUNT_DISTINCT", "MAX", "MIN",
    "P001", "P01", "P05", "P10", "P20", "P25", "P50", "P75", "P80", "P90", "P95", "P99", "P999",
    "RATE_AVG", "RATE_SUM", "RATE_MAX", "HEATMAP",
}


@dataclass
class QueryResult:
    """Rows and series of a completed query, plus a link to it in the Honeycomb UI."""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    series: List[Dict[str, Any]] = field(default_factory=list)
    query_url: Optional[str] = None


def build_query(
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
) -> Dict[str, Any]:
    """
    Assemble a query specification, leaving out every parameter that is unset.

    Returns:
        Query dict ready to POST to /1/queries/{dataset}
    """
    query = {
        "calculations": calculations or [{"op": "COUNT"}],
        "breakdowns": breakdowns,
        "filters": filters,
        "filter_combination": filter_combination,
        "orders": orders,
        "limit": limit or DEFAULT_QUERY_LIMIT,
        "having": having,
        "time_range": time_range,
        "start_time": start_time,
        "end_time": end_time,
        "granularity": granularity,
    }
    return {key: value for key, value in query.items() if value is not None}


def build_column_analysis_query(columns: List[str], time_range: Optional[int] = None) -> Dict[str, Any]:
    """Query grouping events by the given columns, most frequent groups first."""
    return build_query(
        calculations=[{"op": "COUNT"}],
        breakdowns=list(columns),
        orders=[{"op": "COUNT", "order": "descending"}],
        limit=DEFAULT_ANALYSIS_ROW_LIMIT,
        time_range=time_range or DEFAULT_ANALYSIS_TIME_RANGE,
    )


def query_references_column(query: Dict[str, Any], column: str) -> bool:
    """True if the column is a breakdown or the column of some calculation."""
    if column in (query.get("breakdowns") or []):
        return True
    return any(calc.get("column") == column for calc in query.get("calculations") or [])


def has_count_calculation(query: Dict[str, Any]) -> bool:
    return any(calc.get("op") == "COUNT" for calc in query.get("calculations") or [])


def has_heatmap(query: Dict[str, Any]) -> bool:
    return any(calc.get("op") == "HEATMAP" for calc in query.get("calculations") or [])


def validate_query(query: Dict[str, Any]) -> None:
    """
    Check a query against the Honeycomb query rules before it is sent.

    Raises:
        ToolInputError: Describing the first rule the query breaks
    """
    calculations = query.get("calculations") or []
    breakdowns = query.get("breakdowns") or []
    orders = query.get("orders") or []

    if all(query.get(key) is not None for key in ("time_range", "start_time", "end_time")):
        raise ToolInputError("Cannot specify time_range, start_time, and end_time simultaneously.")

    for calc in calculations:
        op = calc.get("op")
        if not op:
            raise ToolInputError("Every calculation needs an op.", parameter="calculations")
        if op in COLUMN_OPS and not calc.get("column"):
            raise ToolInputError(f"Calculation {op} requires a column.", parameter="calculations")

    calc_columns = {calc.get("column") for calc in calculations if calc.get("column")}
    for order in orders:
        op = order.get("op")
        column = order.get("column")
        if op == "HEATMAP":
            raise ToolInputError("HEATMAP cannot be used in orders.", parameter="orders")
        if column and breakdowns and column not in breakdowns and column not in calc_columns:
            raise ToolInputError(
                f"Order column '{column}' must be in breakdowns or calculations.", parameter="orders"
            )
        if op and not column and op not in COLUMNLESS_OPS:
            raise ToolInputError(
                f"Operation '{op}' requires a column unless it is COUNT or CONCURRENCY.", parameter="orders"
            )
        if op and column and not any(
            calc.get("op") == op and calc.get("column") == column for calc in calculations
        ):
            raise ToolInputError(
                f"Order references non-existent calculation: {op} on {column}", parameter="orders"
            )

    for clause in query.get("having") or []:
        op = clause.get("calculate_op")
        column = clause.get("column")
        matched = any(
            calc.get("op") == op and (op in COLUMNLESS_OPS or calc.get("column") == column)
            for calc in calculations
        )
        if not matched:
            column_text = f" and column '{column}'" if column else ""
            raise ToolInputError(
                f"HAVING clause with calculate_op '{op}'{column_text} must refer to one of the calculations.",
                parameter="having"
            )

    logger.debug(f"query validated | calculations:{len(calculations)} | breakdowns:{len(breakdowns)}")
