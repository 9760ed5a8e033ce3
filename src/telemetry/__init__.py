"""
OpenTelemetry instrumentation package for the Honeycomb MCP Server

Provides centralized configuration and initialization for OpenTelemetry
tracing and metrics across the MCP server application.
"""

from .config import (
    initialize_telemetry,
    get_tracer,
    get_meter,
    shutdown_telemetry,
    is_telemetry_enabled,
    get_telemetry_status
)

from .decorators import (
    trace_mcp_tool,
    trace_honeycomb_api_call
)

from .utils import (
    get_current_span,
    add_span_attributes,
    add_honeycomb_context,
    record_processing_error
)

from .metrics import (
    initialize_metrics,
    record_tool_invocation,
    record_api_request,
    record_column_analysis,
    record_error,
    MetricsTimer,
    get_metrics_status
)

__all__ = [
    # Core configuration
    'initialize_telemetry',
    'get_tracer',
    'get_meter',
    'shutdown_telemetry',
    'is_telemetry_enabled',
    'get_telemetry_status',

    # Decorators
    'trace_mcp_tool',
    'trace_honeycomb_api_call',

    # Utilities
    'get_current_span',
    'add_span_attributes',
    'add_honeycomb_context',
    'record_processing_error',

    # Metrics
    'initialize_metrics',
    'record_tool_invocation',
    'record_api_request',
    'record_column_analysis',
    'record_error',
    'MetricsTimer',
    'get_metrics_status'
]
