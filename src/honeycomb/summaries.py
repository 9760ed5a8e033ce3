"""
Query result summaries

Condenses run_query results into per-calculation statistics so the caller gets
the shape of the data without reading every row.
"""

from typing import Any, Dict, List

from .queries import COLUMNLESS_OPS
from .statistics import calculate_numeric_statistics, get_top_values, is_numeric, unique_count

SUMMARY_STAT_KEYS = ("min", "max", "avg", "median", "sum", "range", "stdDev")


def summarize_results(rows: List[Dict[str, Any]], query: Dict[str, Any]) -> Dict[str, Any]:
    """
    Summarize query result rows.

    Returns:
        {count, "<OP>(<column>)": numeric stats..., countStats?, breakdowns?}
    """
    if not rows:
        return {"count": 0}

    summary: Dict[str, Any] = {"count": len(rows)}
    calculations = query.get("calculations") or []

    for calc in calculations:
        op = calc.get("op")
        column = calc.get("column")
        if op in COLUMNLESS_OPS or op == "HEATMAP" or not column:
            continue
        name = f"{op}({column})"
        if name not in rows[0]:
            continue
        values = [float(row[name]) for row in rows if is_numeric(row.get(name))]
        if values:
            stats = calculate_numeric_statistics(values)
            summary[name] = {key: stats[key] for key in SUMMARY_STAT_KEYS}

    if any(calc.get("op") == "COUNT" for calc in calculations) and "COUNT" in rows[0]:
        counts = [row["COUNT"] for row in rows if is_numeric(row.get("COUNT"))]
        if counts:
            total = sum(counts)
            summary["countStats"] = {
                "total": total,
                "max": max(counts),
                "min": min(counts),
                "avg": total / len(counts),
            }

    breakdowns = query.get("breakdowns") or []
    if breakdowns:
        summary["breakdowns"] = {
            column: {
                "uniqueCount": unique_count(rows, column),
                "topValues": get_top_values(rows, column, 5),
            }
            for column in breakdowns
        }

    return summary
