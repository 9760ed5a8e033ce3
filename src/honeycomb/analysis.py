"""
Column analysis

Runs one query for a column and reduces the returned rows to a compact report:
cardinality, top values or numeric statistics, and a short interpretation.
A bad row or an unconvertible value never aborts the analysis; it is noted in
the report's processingError and the remaining rows are still used.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.logging import analysis_logger as logger
from src.telemetry.metrics import record_column_analysis
from src.telemetry.utils import add_honeycomb_context, get_current_span, record_processing_error

from .config import CARDINALITY_THRESHOLDS, CARDINALITY_TOP_BAND, DEFAULT_TOP_VALUES_LIMIT, MAX_ANALYZED_COLUMNS
from .errors import ToolInputError, require
from .queries import build_column_analysis_query, has_count_calculation, query_references_column
from .statistics import (
    ResultRow,
    add_percentages,
    calculate_numeric_statistics,
    get_top_values,
    is_numeric,
    row_weight,
    to_number,
    to_scalar,
    unique_count,
    value_key,
)

# Keep processingError readable when many rows fail
MAX_REPORTED_ERRORS = 3


@dataclass
class ColumnAnalysis:
    """Analysis report for one column. Unset optional fields are left out of to_dict()."""
    column: str
    count: int = 0
    total_events: int = 0
    top_values: Optional[List[Dict[str, Any]]] = None
    stats: Optional[Dict[str, Any]] = None
    cardinality: Optional[Dict[str, Any]] = None
    processing_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        report: Dict[str, Any] = {
            "column": self.column,
            "count": self.count,
            "totalEvents": self.total_events,
        }
        if self.top_values is not None:
            report["topValues"] = self.top_values
        if self.stats is not None:
            report["stats"] = self.stats
        if self.cardinality is not None:
            report["cardinality"] = self.cardinality
        if self.processing_error:
            report["processingError"] = self.processing_error
        return report


@dataclass
class _RowErrors:
    messages: List[str] = field(default_factory=list)

    def add(self, message: str):
        self.messages.append(message)

    def summary(self) -> Optional[str]:
        if not self.messages:
            return None
        shown = "; ".join(self.messages[:MAX_REPORTED_ERRORS])
        hidden = len(self.messages) - MAX_REPORTED_ERRORS
        if hidden > 0:
            shown += f" (and {hidden} more)"
        return f"Error processing results: {shown}"


def classify_column_type(values: List[Any]) -> Optional[str]:
    """
    Decide whether a column is numeric from its first non-null value.

    Returns:
        "numeric", "categorical", or None when every value is null
    """
    for value in values:
        if value is not None:
            return "numeric" if is_numeric(value) else "categorical"
    return None


def get_cardinality_classification(unique: int, total: int) -> str:
    """
    Band the ratio of distinct values to events examined.

    Non-decreasing in unique for a fixed total. For breakdown results the total
    is the sum of COUNT, so a two-value column over thousands of events is low.
    """
    if total <= 0:
        return CARDINALITY_THRESHOLDS[0][1]
    ratio = unique / total
    for cut_point, band in CARDINALITY_THRESHOLDS:
        if ratio < cut_point:
            return band
    return CARDINALITY_TOP_BAND


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def generate_interpretation(stats: Dict[str, Any], column: str) -> str:
    """
    Describe a numeric distribution in a sentence or two.

    Flags a p95 above three times the average and a min-max range above ten
    times the average. A check whose inputs are missing is skipped.
    """
    notes = []
    avg = stats.get("avg")
    p95 = stats.get("p95")
    if avg is not None and p95 is not None and p95 > 3 * avg:
        if avg > 0:
            notes.append(
                f"The P95 value is {p95 / avg:.1f}x higher than the average, "
                f"suggesting significant outliers in {column}."
            )
        else:
            # No meaningful ratio against a zero or negative average
            notes.append(
                f"The P95 value ({_format_number(p95)}) is far above the average "
                f"({_format_number(avg)}), suggesting significant outliers in {column}."
            )

    minimum = stats.get("min")
    maximum = stats.get("max")
    if avg is not None and minimum is not None and maximum is not None:
        spread = maximum - minimum
        if spread > avg * 10:
            notes.append(
                f"The range ({_format_number(spread)}) is very wide compared to the average "
                f"({_format_number(avg)}), indicating high variability."
            )

    if not notes:
        return f"Standard distribution of {column} values with expected statistical properties."
    return " ".join(notes)


def _normalize_rows(raw_rows: List[Any], columns: List[str], errors: _RowErrors) -> List[ResultRow]:
    """Keep well-formed rows, reduced to the analyzed columns plus COUNT."""
    rows = []
    for index, raw in enumerate(raw_rows):
        if not isinstance(raw, dict):
            errors.add(f"row {index} is not an object")
            continue
        row = {}
        try:
            for name in columns + ["COUNT"]:
                if name in raw:
                    row[name] = to_scalar(raw[name])
        except ValueError as e:
            errors.add(f"row {index}: {e}")
            continue
        rows.append(row)
    return rows


def _weight_column(query: Dict[str, Any]) -> Optional[str]:
    """COUNT queries return one row per group; the group's COUNT is its weight."""
    return "COUNT" if has_count_calculation(query) else None


def _total_events(rows: List[ResultRow], weight_column: Optional[str], count: int) -> int:
    """Sum of COUNT over the rows for a COUNT query, otherwise the rows examined."""
    if weight_column is None:
        return count
    return sum(row_weight(row, weight_column) for row in rows)


def _numeric_stats(
    rows: List[ResultRow],
    column: str,
    errors: _RowErrors,
    weight_column: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    values = []
    weights = []
    for index, row in enumerate(rows):
        value = row.get(column)
        if value is None:
            continue
        try:
            values.append(to_number(value))
        except ValueError as e:
            errors.add(f"{column} in row {index}: {e}")
            continue
        weights.append(row_weight(row, weight_column))

    if not values:
        return None
    try:
        stats: Dict[str, Any] = calculate_numeric_statistics(values, weights)
    except (ArithmeticError, ValueError) as e:
        errors.add(f"statistics for {column} failed: {e}")
        return None
    if not stats:
        return None
    stats["interpretation"] = generate_interpretation(stats, column)
    return stats


def summarize_column(
    rows: List[ResultRow],
    column: str,
    top_values_limit: int = DEFAULT_TOP_VALUES_LIMIT,
    errors: Optional[_RowErrors] = None,
    total_rows: Optional[int] = None,
    weight_column: Optional[str] = None
) -> ColumnAnalysis:
    """
    Build the report for one column from already-normalized rows.

    total_rows is the number of rows examined before malformed ones were dropped.
    Without a weight column each row is one event and total_rows is the
    denominator for percentages and the cardinality ratio. With one (COUNT for
    breakdown results) each row stands for COUNT events: counts, percentages,
    statistics and the cardinality ratio are all taken over totalEvents.
    """
    errors = errors or _RowErrors()
    count = len(rows) if total_rows is None else total_rows
    total_events = _total_events(rows, weight_column, count)
    analysis = ColumnAnalysis(column=column, count=count, total_events=total_events)
    if not rows:
        analysis.processing_error = errors.summary()
        return analysis

    values = [row.get(column) for row in rows]
    column_type = classify_column_type(values)

    if column_type == "numeric":
        analysis.stats = _numeric_stats(rows, column, errors, weight_column)
    elif column_type == "categorical":
        top = get_top_values(rows, column, top_values_limit, weight_column)
        analysis.top_values = add_percentages(top, total_events)

    distinct = unique_count(rows, column)
    analysis.cardinality = {
        "uniqueCount": distinct,
        "classification": get_cardinality_classification(distinct, total_events),
    }
    analysis.processing_error = errors.summary()
    return analysis


class ColumnAnalyzer:
    """Analyzes dataset columns using a single query through the Honeycomb API client."""

    def __init__(self, api):
        self.api = api

    async def analyze(
        self,
        environment: str,
        dataset: str,
        column: str,
        query: Optional[Dict[str, Any]] = None,
        time_range: Optional[int] = None,
        top_values_limit: int = DEFAULT_TOP_VALUES_LIMIT
    ) -> ColumnAnalysis:
        """
        Analyze one column.

        Args:
            environment: Honeycomb environment name
            dataset: Dataset slug
            column: Column to analyze
            query: Optional query; must reference the column. Defaults to a COUNT
                breakdown by the column over time_range seconds.
            time_range: Window for the default query (default 3600)
            top_values_limit: Maximum number of top values reported

        Raises:
            ToolInputError: Missing inputs or a query that doesn't use the column
            HoneycombAPIError: The query failed upstream
        """
        require(environment, "environment")
        require(dataset, "dataset")
        require(column, "column")

        if query is None:
            query = build_column_analysis_query([column], time_range)
        elif not query_references_column(query, column):
            raise ToolInputError(
                f"Query must reference column '{column}' in its breakdowns or calculations.",
                parameter="query"
            )

        span = get_current_span()
        add_honeycomb_context(span, environment=environment, dataset=dataset, column=column,
                              time_range=query.get("time_range"))

        logger.info(f"analyzing column | env:{environment} | dataset:{dataset} | column:{column}")
        result = await self.api.run_analysis_query(environment, dataset, query)

        errors = _RowErrors()
        rows = _normalize_rows(result.rows, [column], errors)
        analysis = summarize_column(rows, column, top_values_limit, errors,
                                    total_rows=len(result.rows), weight_column=_weight_column(query))

        self._report(analysis, span)
        return analysis

    async def analyze_columns(
        self,
        environment: str,
        dataset: str,
        columns: List[str],
        time_range: Optional[int] = None,
        top_values_limit: int = DEFAULT_TOP_VALUES_LIMIT
    ) -> Dict[str, Any]:
        """
        Analyze several columns with one query grouped by all of them.

        Returns:
            {columns, count, totalEvents, analyses, cardinality} where cardinality
            counts distinct combinations of the columns' values
        """
        require(environment, "environment")
        require(dataset, "dataset")
        if not columns:
            raise ToolInputError.missing("columns")
        if len(columns) > MAX_ANALYZED_COLUMNS:
            raise ToolInputError(
                f"Too many columns requested. Maximum is {MAX_ANALYZED_COLUMNS}.", parameter="columns"
            )
        for column in columns:
            require(column, "columns")

        query = build_column_analysis_query(columns, time_range)
        logger.info(f"analyzing columns | env:{environment} | dataset:{dataset} | columns:{','.join(columns)}")
        result = await self.api.run_analysis_query(environment, dataset, query)

        errors = _RowErrors()
        rows = _normalize_rows(result.rows, list(columns), errors)
        weight_column = _weight_column(query)
        analyses = []
        for column in columns:
            analysis = summarize_column(
                rows, column, top_values_limit, _RowErrors(list(errors.messages)),
                total_rows=len(result.rows), weight_column=weight_column
            )
            self._report(analysis, get_current_span())
            analyses.append(analysis.to_dict())

        combinations = {tuple(value_key(row[c]) if row.get(c) is not None else None for c in columns)
                        for row in rows}
        total_events = _total_events(rows, weight_column, len(result.rows))
        report = {
            "columns": list(columns),
            "count": len(result.rows),
            "totalEvents": total_events,
            "analyses": analyses,
        }
        if rows:
            report["cardinality"] = {
                "uniqueCount": len(combinations),
                "classification": get_cardinality_classification(len(combinations), total_events),
            }
        return report

    def _report(self, analysis: ColumnAnalysis, span):
        if analysis.stats is not None:
            column_type = "numeric"
        elif analysis.top_values is not None:
            column_type = "categorical"
        else:
            column_type = "empty"

        partial = analysis.processing_error is not None
        if partial:
            logger.warning(f"partial analysis | column:{analysis.column} | {analysis.processing_error}")
            record_processing_error(span, analysis.column, analysis.processing_error)
        logger.info(f"column analyzed | column:{analysis.column} | rows:{analysis.count} | type:{column_type}")
        record_column_analysis(column_type, analysis.count, partial)
