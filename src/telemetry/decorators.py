"""
Tracing decorators for MCP tools and Honeycomb API calls

Both decorators fall through to the plain call when telemetry is off. Tool
failures are usually returned as text rather than raised, so trace_mcp_tool
also inspects the result to decide whether the call succeeded.
"""

import functools
import inspect
import time
from typing import Any, Callable, Dict, Optional

from src.logging import get_logger

logger = get_logger('TELEMETRY_DECORATORS')

# Parameters never written to span attributes
SENSITIVE_PARAMS = {
    'token', 'password', 'secret', 'key', 'auth', 'authorization',
    'access_token', 'api_key', 'apikey'
}

# Tool parameters copied onto tool metrics
CONTEXT_PARAMS = ('environment', 'dataset', 'column')

MAX_ATTRIBUTE_LENGTH = 1000


def _is_failure_text(result) -> bool:
    return isinstance(result, str) and result.startswith("Failed to execute tool")


def _bound_arguments(func: Callable, args: tuple, kwargs: dict) -> Dict[str, Any]:
    try:
        return dict(inspect.signature(func).bind_partial(*args, **kwargs).arguments)
    except (TypeError, ValueError):
        return dict(kwargs)


def _set_bounded(span, name: str, text: str):
    """Short text becomes the attribute; long text only records its size."""
    if len(text) <= MAX_ATTRIBUTE_LENGTH:
        span.set_attribute(name, text)
    else:
        span.set_attribute(f"{name}_size", len(text))


def _record_arguments(span, arguments: Dict[str, Any]):
    for name, value in arguments.items():
        if name == 'ctx':
            session_id = getattr(value, 'session_id', None)
            if session_id:
                span.set_attribute("mcp.session.id", str(session_id))
        elif name.lower() in SENSITIVE_PARAMS:
            span.set_attribute(f"mcp.args.{name}", "[REDACTED]")
        elif value is not None:
            text = str(value)
            if len(text) <= 200:
                span.set_attribute(f"mcp.args.{name}", text)
            else:
                span.set_attribute(f"mcp.args.{name}_size", len(text))


def _mark_span_error(span, error: Exception, prefix: str):
    from opentelemetry import trace

    span.set_status(trace.Status(trace.StatusCode.ERROR, str(error)))
    span.record_exception(error)
    span.set_attribute(f"{prefix}.error", True)
    span.set_attribute(f"{prefix}.error_type", type(error).__name__)
    status_code = getattr(error, 'status_code', None)
    if status_code is not None:
        span.set_attribute(f"{prefix}.error_status", status_code)


def trace_mcp_tool(tool_name: Optional[str] = None,
                   record_args: bool = True,
                   record_result: bool = False):
    """
    Trace an async MCP tool and record its invocation metrics.

    Args:
        tool_name: Span and metric name (defaults to the function name)
        record_args: Put non-sensitive arguments on the span
        record_result: Put the result (or its size) on the span
    """
    def decorator(func: Callable) -> Callable:
        name = tool_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer
            from . import metrics

            arguments = _bound_arguments(func, args, kwargs)
            context = {param: arguments[param] for param in CONTEXT_PARAMS if arguments.get(param)}
            started = time.perf_counter()
            success = False

            try:
                tracer = get_tracer()
                if tracer is None:
                    result = await func(*args, **kwargs)
                    success = not _is_failure_text(result)
                    return result

                with tracer.start_as_current_span(f"mcp_tool.{name}") as span:
                    span.set_attribute("mcp.tool.name", name)
                    if record_args:
                        _record_arguments(span, arguments)
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        _mark_span_error(span, e, "mcp.tool")
                        _set_bounded(span, "mcp.tool.error_message", str(e))
                        raise

                    success = not _is_failure_text(result)
                    if not success:
                        span.set_attribute("mcp.tool.error", True)
                    if record_result and result is not None:
                        _set_bounded(span, "mcp.tool.result", str(result))
                    return result
            finally:
                metrics.record_tool_invocation(name, time.perf_counter() - started, success, **context)

        return wrapper
    return decorator


def trace_honeycomb_api_call(operation: Optional[str] = None):
    """
    Trace a HoneycombAPI method taking (self, environment, ...).

    Args:
        operation: Span name suffix (defaults to the method name)
    """
    def decorator(func: Callable) -> Callable:
        span_name = f"honeycomb_api.{operation or func.__name__}"

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer

            tracer = get_tracer()
            if tracer is None:
                return await func(*args, **kwargs)

            arguments = _bound_arguments(func, args, kwargs)
            with tracer.start_as_current_span(span_name) as span:
                if arguments.get('environment'):
                    span.set_attribute("honeycomb.environment", arguments['environment'])
                if arguments.get('path'):
                    span.set_attribute("honeycomb.api.path", arguments['path'])
                span.set_attribute("honeycomb.api.method", arguments.get('method') or "GET")

                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _mark_span_error(span, e, "honeycomb.api")
                    logger.debug(f"api call failed | span:{span_name} | error:{type(e).__name__}")
                    raise

                if isinstance(result, list):
                    span.set_attribute("honeycomb.result.count", len(result))
                return result

        return wrapper
    return decorator
