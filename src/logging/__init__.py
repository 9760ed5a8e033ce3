"""
Logging utilities for the Honeycomb MCP server.
"""

from .mcp_logger import (
    get_logger,
    set_request_context,
    log_tool_call,
    honeycomb_logger,
    http_logger,
    query_logger,
    analysis_logger,
    tools_logger
)

__all__ = [
    'get_logger',
    'set_request_context',
    'log_tool_call',
    'honeycomb_logger',
    'http_logger',
    'query_logger',
    'analysis_logger',
    'tools_logger'
]
