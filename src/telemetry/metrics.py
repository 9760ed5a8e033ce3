"""
OpenTelemetry metrics for the Honeycomb MCP server

Counters and histograms for tool calls, Honeycomb API requests, column
analyses and errors. Every record_* function is a no-op until
initialize_metrics() has run with telemetry enabled.
"""

import time
from typing import Any, Dict, Optional

from src.logging import get_logger

logger = get_logger('TELEMETRY_METRICS')

# key -> (kind, metric name, unit, description)
INSTRUMENTS = {
    "tool_calls": ("counter", "mcp.tool.calls", "1", "MCP tool invocations by tool and outcome"),
    "tool_duration": ("histogram", "mcp.tool.duration", "s", "MCP tool execution time"),
    "api_requests": ("counter", "honeycomb.api.requests", "1", "Honeycomb API requests by endpoint and status"),
    "api_duration": ("histogram", "honeycomb.api.duration", "s", "Honeycomb API request latency"),
    "analyses": ("counter", "honeycomb.column_analysis.count", "1", "Column analyses by column type and completeness"),
    "analysis_rows": ("histogram", "honeycomb.column_analysis.rows", "1", "Result rows reduced per column analysis"),
    "errors": ("counter", "mcp.errors", "1", "Errors by category and operation"),
}

_instruments: Dict[str, Any] = {}


def initialize_metrics() -> bool:
    """Create the metric instruments on the telemetry meter."""
    from src.telemetry.config import get_meter

    meter = get_meter()
    if meter is None:
        logger.debug("metrics not available | meter not initialized")
        return False

    try:
        created = {}
        for key, (kind, name, unit, description) in INSTRUMENTS.items():
            factory = meter.create_counter if kind == "counter" else meter.create_histogram
            created[key] = factory(name=name, unit=unit, description=description)
    except Exception as e:
        logger.error(f"metrics initialization failed | error: {e}")
        return False

    _instruments.clear()
    _instruments.update(created)
    logger.info(f"metrics initialization complete | instruments:{len(_instruments)}")
    return True


def _emit(key: str, value: float, attributes: Dict[str, str]):
    instrument = _instruments.get(key)
    if instrument is None:
        return
    try:
        if hasattr(instrument, "add"):
            instrument.add(value, attributes)
        else:
            instrument.record(value, attributes)
    except Exception as e:
        logger.debug(f"failed to record metric | metric:{key} | error: {e}")


def _context_attributes(attributes: Dict[str, Any]) -> Dict[str, str]:
    """Keep scalar context (environment, dataset, column) as string attributes."""
    return {
        f"honeycomb.{key}": str(value)
        for key, value in attributes.items()
        if value is not None and isinstance(value, (str, int, float, bool))
    }


def record_tool_invocation(tool_name: str, duration: float, success: bool, **attributes):
    """
    Count one tool call and its duration.

    Args:
        tool_name: MCP tool name
        duration: Seconds spent in the tool
        success: False when the tool raised or returned failure text
        **attributes: environment/dataset/column context
    """
    if not _instruments:
        return
    labels = {"tool": tool_name, "outcome": "success" if success else "failure"}
    labels.update(_context_attributes(attributes))
    _emit("tool_calls", 1, labels)
    _emit("tool_duration", duration, labels)


def record_api_request(endpoint: str, method: str, status_code: int, duration: float, **attributes):
    """Count one Honeycomb API request; endpoint is the low-cardinality path label."""
    if not _instruments:
        return
    labels = {
        "endpoint": endpoint,
        "method": method,
        "status_code": str(status_code),
        "outcome": "success" if status_code < 400 else "failure",
    }
    labels.update(_context_attributes(attributes))
    _emit("api_requests", 1, labels)
    _emit("api_duration", duration, labels)
    logger.debug(f"api metric | endpoint:{endpoint} | status:{status_code} | duration:{duration:.3f}s")


def record_column_analysis(column_type: str, row_count: int, partial: bool):
    """
    Count one column analysis.

    Args:
        column_type: "numeric", "categorical" or "empty"
        row_count: Result rows examined
        partial: A processing error degraded the report
    """
    if not _instruments:
        return
    labels = {"column_type": column_type, "completeness": "partial" if partial else "complete"}
    _emit("analyses", 1, labels)
    _emit("analysis_rows", row_count, labels)


def record_error(error_type: str, operation: str, **attributes):
    """Count an error; error_type is a category (input/upstream/internal) or an exception name."""
    if not _instruments:
        return
    labels = {"error_type": error_type, "operation": operation}
    labels.update(_context_attributes(attributes))
    _emit("errors", 1, labels)


class MetricsTimer:
    """Times a Honeycomb API request and records it on exit."""

    def __init__(self, endpoint: str, method: str = "GET", **attributes):
        self.endpoint = endpoint
        self.method = method
        self.attributes = attributes
        self.status_code: Optional[int] = None
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._started is None:
            return
        duration = time.perf_counter() - self._started
        status_code = self.status_code
        if status_code is None:
            status_code = 500 if exc_type is not None else 200

        record_api_request(self.endpoint, self.method, status_code, duration, **self.attributes)
        if exc_type is not None:
            record_error(exc_type.__name__, self.endpoint, **self.attributes)

    def set_status(self, status_code: int):
        self.status_code = status_code


def get_metrics_status() -> Dict[str, Any]:
    return {
        "enabled": bool(_instruments),
        "instruments": sorted(_instruments),
    }
