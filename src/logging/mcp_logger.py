"""
Standardized logging setup for the Honeycomb MCP server.
Uses Python's built-in logging with per-request environment/dataset correlation.
"""

import logging
import sys
import os
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Colored logging formatter with timestamps."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors=True):
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def colorize(self, record, formatter: logging.Formatter) -> str:
        if not self.use_colors:
            return formatter.format(record)

        level_color = self.COLORS.get(record.levelname, '')
        reset_color = self.COLORS['RESET']

        # Temporarily swap the level name so the color does not leak into other handlers
        original_levelname = record.levelname
        record.levelname = f"{level_color}{record.levelname}{reset_color}"
        try:
            return formatter.format(record)
        finally:
            record.levelname = original_levelname

    def format(self, record):
        return self.colorize(record, super())


class ContextColoredFormatter(ColoredFormatter):
    """Colored formatter that shows the active Honeycomb environment and dataset."""

    def __init__(self, use_colors=True):
        super().__init__(use_colors)
        self._context_fmt = logging.Formatter(
            '%(asctime)s - %(name)s%(context_part)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record):
        parts = []
        if getattr(record, 'environment', ''):
            parts.append(f"env:{record.environment}")
        if getattr(record, 'dataset', ''):
            parts.append(f"dataset:{record.dataset}")
        record.context_part = f" [{' '.join(parts)}]" if parts else ""
        return self.colorize(record, self._context_fmt)


# Get log level from environment variable, default to INFO
log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
log_level_value = getattr(logging, log_level, logging.INFO)

use_colors = os.getenv('LOG_COLORS', 'true').lower() in ('true', '1', 'yes', 'on')

# Leave the root logger alone if the host already configured it
if not logging.getLogger().handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname)s:%(name)s:%(message)s'))
    logging.getLogger().addHandler(handler)
    logging.getLogger().setLevel(logging.WARNING)  # Only show warnings and errors from third-party


class RequestContextFilter(logging.Filter):
    """Add the Honeycomb environment/dataset being worked on to log records."""

    def __init__(self):
        super().__init__()
        self.environment = None
        self.dataset = None

    def set_context(self, environment: Optional[str] = None, dataset: Optional[str] = None):
        """Set context for the current tool call."""
        self.environment = environment
        self.dataset = dataset

    def filter(self, record):
        record.environment = self.environment or ""
        record.dataset = self.dataset or ""
        return True


class ContextHandler(logging.StreamHandler):
    """Stderr handler with context-aware colored formatting.

    MCP stdio transport owns stdout, so nothing may be logged there.
    """

    def __init__(self, use_colors=True):
        super().__init__(sys.stderr)
        self.setFormatter(ContextColoredFormatter(use_colors=use_colors))


# Global request context filter
context_filter = RequestContextFilter()


def get_logger(name: str) -> logging.Logger:
    """Get a logger with request context and colored formatting."""
    logger = logging.getLogger(name)
    if context_filter not in logger.filters:
        logger.addFilter(context_filter)
        if not any(isinstance(h, ContextHandler) for h in logger.handlers):
            logger.addHandler(ContextHandler(use_colors=use_colors))
            logger.propagate = False
            logger.setLevel(log_level_value)
    return logger


def set_request_context(environment: Optional[str] = None, dataset: Optional[str] = None):
    """Set the environment/dataset context for all loggers."""
    context_filter.set_context(environment, dataset)


# Component-specific loggers
honeycomb_logger = get_logger('HONEYCOMB')
http_logger = get_logger('HTTP')
query_logger = get_logger('QUERY')
analysis_logger = get_logger('ANALYSIS')
tools_logger = get_logger('TOOLS')


def log_tool_call(tool_name: str, environment: Optional[str] = None, dataset: Optional[str] = None, **params):
    """Helper to log tool execution."""
    set_request_context(environment, dataset)
    extra_str = " | ".join(f"{k}:{str(v)[:50]}" for k, v in params.items() if v is not None)
    tools_logger.info(f"executing {tool_name} | {extra_str}" if extra_str else f"executing {tool_name}")
