"""Utility modules for patent-query."""

from patent_query.utils.output import (
    console,
    create_table,
    error,
    info,
    print_query,
    success,
    warning,
)

__all__ = [
    "console",
    "create_table",
    "error",
    "info",
    "print_query",
    "success",
    "warning",
]
