"""
Utility helpers shared across relforge packages.
"""

from .logging import configure_logging, get_logger, time_call
from .naming import camel_to_snake, foreign_key_for, pluralize, table_name_for
from .performance import resolve_slow_query_ms

__all__ = [
    "camel_to_snake",
    "configure_logging",
    "foreign_key_for",
    "get_logger",
    "pluralize",
    "resolve_slow_query_ms",
    "table_name_for",
    "time_call",
]
