"""
Statistics over query result rows

Pure functions that reduce result rows to frequency tables and numeric
descriptive statistics. Row values are normalized to a closed scalar type
(str, int, float, bool or None) before any computation.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

Scalar = Union[str, int, float, bool, None]
ResultRow = Mapping[str, Scalar]

# Tagged key for frequency tables: bool, number and string never compare equal
ValueKey = Tuple[str, Any]


def to_scalar(value: Any) -> Scalar:
    """
    Normalize a raw JSON value to a Scalar.

    Raises:
        ValueError: If the value is a nested structure or an unsupported type
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    raise ValueError(f"unsupported value type {type(value).__name__}")


def value_key(value: Scalar) -> ValueKey:
    """Return the type-tagged frequency key for a non-null scalar."""
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return ("number", "nan")
        return ("number", value)
    if isinstance(value, str):
        return ("string", value)
    raise ValueError(f"unsupported value type {type(value).__name__}")


def is_numeric(value: Scalar) -> bool:
    """True for int and float values. Booleans and numeric strings are not numeric."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Scalar) -> float:
    """
    Coerce a scalar to a float.

    Numbers and numeric strings are accepted.

    Raises:
        ValueError: For booleans, None, NaN and non-numeric strings
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"cannot convert {value!r} to a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValueError(f"cannot convert {value!r} to a number")
    else:
        raise ValueError(f"cannot convert {value!r} to a number")
    if math.isnan(number):
        raise ValueError(f"cannot convert {value!r} to a number")
    return number


def row_weight(row: ResultRow, weight_column: Optional[str] = None) -> Union[int, float]:
    """
    Number of events a row stands for.

    Without a weight column every row is one event. With one (COUNT for a
    breakdown query) the row's positive numeric value is used, anything else is 0.
    """
    if weight_column is None:
        return 1
    weight = row.get(weight_column)
    if is_numeric(weight) and weight > 0:
        return weight
    return 0


def calculate_std_dev(values: Sequence[float], mean: float, weights: Optional[Sequence[float]] = None) -> float:
    """
    Population standard deviation of values around the supplied mean.

    Returns 0 for sequences of length 1 or less. The mean is used as given.
    With weights, each value counts weights[i] times.
    """
    if len(values) <= 1:
        return 0.0
    if weights is None:
        weights = [1] * len(values)
    total_weight = sum(weights)
    if total_weight <= 0:
        return 0.0
    squared = sum(weight * (value - mean) ** 2 for value, weight in zip(values, weights))
    return math.sqrt(squared / total_weight)


def weighted_percentile(values: np.ndarray, weights: np.ndarray, q: float) -> float:
    """
    Percentile of values where each value occurs weights[i] times.

    Matches numpy.percentile's linear interpolation over the expanded values,
    without building the expanded array.
    """
    order = np.argsort(values, kind="stable")
    ordered = values[order]
    cumulative = np.cumsum(weights[order])
    last = len(ordered) - 1

    position = max(float(cumulative[-1]) - 1, 0.0) * q / 100
    lower = math.floor(position)
    fraction = position - lower
    # Expanded index i falls in the first group whose cumulative weight exceeds i
    low = ordered[min(int(np.searchsorted(cumulative, lower, side="right")), last)]
    if fraction == 0:
        return float(low)
    high = ordered[min(int(np.searchsorted(cumulative, lower + 1, side="right")), last)]
    return float(low + (high - low) * fraction)


def count_values(
    rows: Iterable[ResultRow],
    column: str,
    weight_column: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Full frequency table of a column's non-null values.

    Entries are {value, count}, ordered by first appearance. With a weight
    column each row adds its weight instead of 1.
    """
    counts: Dict[ValueKey, Dict[str, Any]] = {}
    for row in rows:
        value = row.get(column)
        if value is None:
            continue
        key = value_key(value)
        weight = row_weight(row, weight_column)
        entry = counts.get(key)
        if entry is None:
            counts[key] = {"value": value, "count": weight}
        else:
            entry["count"] += weight
    return list(counts.values())


def get_top_values(
    rows: Iterable[ResultRow],
    column: str,
    limit: int = 5,
    weight_column: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Most frequent values of a column, highest count first, ties in first-seen order."""
    table = count_values(rows, column, weight_column)
    # sorted() is stable, so equal counts keep their first-seen order
    ranked = sorted(table, key=lambda entry: entry["count"], reverse=True)
    return ranked[:max(limit, 0)]


def add_percentages(top_values: List[Dict[str, Any]], total_rows: int, precision: int = 2) -> List[Dict[str, Any]]:
    """
    Annotate top values with their share of everything examined.

    total_rows is the row count, or the event count for weighted breakdown
    rows. It includes rows where the value was null.
    """
    annotated = []
    for entry in top_values:
        if total_rows > 0:
            percentage = f"{entry['count'] / total_rows * 100:.{precision}f}%"
        else:
            percentage = "0%"
        annotated.append({**entry, "percentage": percentage})
    return annotated


def calculate_numeric_statistics(
    values: Sequence[float],
    weights: Optional[Sequence[float]] = None
) -> Dict[str, float]:
    """
    Descriptive statistics for a list of numbers.

    Returns min, max, avg, p95, median, sum, range and stdDev, or an empty
    dict when there are no values. p95 interpolates linearly between the
    closest ranks.

    weights gives the number of events behind each value (the COUNT of a
    breakdown row); values with no weight are left out entirely.
    """
    if not values:
        return {}

    array = np.asarray(values, dtype=float)
    if weights is None:
        counts = np.ones(len(array))
    else:
        counts = np.asarray(weights, dtype=float)
        keep = counts > 0
        array, counts = array[keep], counts[keep]
        if not len(array):
            return {}

    minimum = float(array.min())
    maximum = float(array.max())
    total = float((array * counts).sum())
    avg = total / float(counts.sum())

    return {
        "min": minimum,
        "max": maximum,
        "avg": avg,
        "p95": weighted_percentile(array, counts, 95),
        "median": weighted_percentile(array, counts, 50),
        "sum": total,
        "range": maximum - minimum,
        "stdDev": calculate_std_dev(array.tolist(), avg, counts.tolist()),
    }


def unique_count(rows: Iterable[ResultRow], column: str) -> int:
    """Number of distinct non-null values of a column."""
    return len({value_key(row[column]) for row in rows if row.get(column) is not None})
