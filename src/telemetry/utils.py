"""
OpenTelemetry utility functions for manual instrumentation

Provides helper functions for working with spans and attributes
in the MCP server application.
"""

from typing import Dict, Any, Optional
from src.logging import get_logger

logger = get_logger('TELEMETRY_UTILS')


def get_current_span():
    """Return the active recording span, or None when tracing is off."""
    try:
        from opentelemetry import trace
        span = trace.get_current_span()
        if span and span.is_recording():
            return span
    except ImportError:
        pass
    return None


def add_span_attributes(span, attributes: Dict[str, Any]):
    """
    Add multiple attributes to a span with type validation.

    Args:
        span: OpenTelemetry span
        attributes: Dictionary of attribute key-value pairs
    """
    if not span or not attributes:
        return

    for key, value in attributes.items():
        try:
            if isinstance(value, (str, int, float, bool)):
                span.set_attribute(key, value)
            elif value is None:
                span.set_attribute(key, "null")
            else:
                value_str = str(value)
                if len(value_str) <= 1000:
                    span.set_attribute(key, value_str)
                else:
                    span.set_attribute(f"{key}_size", len(value_str))
                    span.set_attribute(f"{key}_truncated", value_str[:200] + "...")
        except Exception as e:
            logger.debug(f"failed to set span attribute | key: {key} | error: {e}")


def add_honeycomb_context(span, environment: Optional[str] = None,
                          dataset: Optional[str] = None,
                          column: Optional[str] = None,
                          time_range: Optional[int] = None):
    """
    Add Honeycomb-specific context to a span.

    Args:
        span: OpenTelemetry span
        environment: Honeycomb environment name
        dataset: Dataset slug
        column: Column being analyzed
        time_range: Query time range in seconds
    """
    if not span:
        return

    try:
        if environment:
            span.set_attribute("honeycomb.environment", environment)
        if dataset:
            span.set_attribute("honeycomb.dataset", dataset)
        if column:
            span.set_attribute("honeycomb.column", column)
        if time_range is not None:
            span.set_attribute("honeycomb.query.time_range", time_range)
    except Exception as e:
        logger.debug(f"failed to add Honeycomb context | error: {e}")


def record_processing_error(span, column: str, message: str):
    """Attach a row-level processing error to a span as an event."""
    if not span:
        return

    try:
        span.add_event("column_processing_error", {
            "honeycomb.column": column,
            "error.message": message[:500],
        })
    except Exception as e:
        logger.debug(f"failed to record processing error | error: {e}")
