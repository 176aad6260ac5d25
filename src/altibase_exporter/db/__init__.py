"""
Database access for the exporter.

The error types are importable without the ODBC driver; the connection
classes live in ``altibase_exporter.db.connection`` and need pyodbc.
"""

from .errors import (
    AltibaseConnectionError,
    AltibaseError,
    ExecutorUnavailableError,
    QueryError,
    is_schema_error,
)

__all__ = [
    "AltibaseError",
    "AltibaseConnectionError",
    "ExecutorUnavailableError",
    "QueryError",
    "is_schema_error",
]
