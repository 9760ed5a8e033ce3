"""
Honeycomb API client package

Provides organized modules for interacting with the Honeycomb platform API:
the HTTP client, query construction, column analysis and the MCP tool
functions built on them.
"""

from .client import HoneycombAPI, get_api, set_api
from .cache import MetadataCache
from .config import (
    HoneycombConfig,
    EnvironmentConfig,
    ConfigError,
    CacheConfig,
    load_cache_config,
    load_config,
    validate_honeycomb_config,
    is_honeycomb_configured
)
from .errors import HoneycombAPIError, ToolInputError
from .analysis import ColumnAnalyzer, ColumnAnalysis
from .queries import QueryResult, build_query, validate_query
from .query_tools import run_query, analyze_column, analyze_columns
from .datasets import list_datasets, list_columns, get_dataset_resource
from .boards import list_boards, get_board
from .markers import list_markers, list_recipients
from .slos import list_slos, get_slo
from .triggers import list_triggers, get_trigger
from .traces import get_trace_link
from .prompts import instrumentation_guidance_prompt

__all__ = [
    # Client
    'HoneycombAPI',
    'get_api',
    'set_api',
    'MetadataCache',

    # Configuration
    'HoneycombConfig',
    'EnvironmentConfig',
    'ConfigError',
    'CacheConfig',
    'load_cache_config',
    'load_config',
    'validate_honeycomb_config',
    'is_honeycomb_configured',

    # Errors
    'HoneycombAPIError',
    'ToolInputError',

    # Analysis and queries
    'ColumnAnalyzer',
    'ColumnAnalysis',
    'QueryResult',
    'build_query',
    'validate_query',

    # Tool functions
    'run_query',
    'analyze_column',
    'analyze_columns',
    'list_datasets',
    'list_columns',
    'get_dataset_resource',
    'list_boards',
    'get_board',
    'list_markers',
    'list_recipients',
    'list_slos',
    'get_slo',
    'list_triggers',
    'get_trigger',
    'get_trace_link',
    'instrumentation_guidance_prompt'
]
