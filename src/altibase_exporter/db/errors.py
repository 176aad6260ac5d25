"""Exceptions raised by the Altibase database layer."""

SCHEMA_ERROR_MARKER = "column not found"

# ODBC SQLSTATEs for a dropped or missing session
CONNECTION_LOST_SQLSTATES = frozenset({"08S01", "08003"})


class AltibaseError(Exception):
    """Base exception for database errors."""

    pass


class AltibaseConnectionError(AltibaseError):
    """Raised when the connection cannot be opened or validated."""

    pass


class ExecutorUnavailableError(AltibaseConnectionError):
    """Raised when no executor can be obtained from the shared connection."""

    pass


class QueryError(AltibaseError):
    """
    Raised when a statement fails.

    Wraps the driver exception so callers never depend on the driver's
    exception classes.
    """

    def __init__(self, message: str, sql: str | None = None, sqlstate: str | None = None):
        super().__init__(message)
        self.message = message
        self.sql = sql
        self.sqlstate = sqlstate

    @property
    def is_schema_error(self) -> bool:
        """True if the server reported a column that does not exist."""
        return is_schema_error(self)

    @property
    def is_connection_lost(self) -> bool:
        """True if the driver reported a broken communication link."""
        return self.sqlstate in CONNECTION_LOST_SQLSTATES


def is_schema_error(error: BaseException) -> bool:
    """Check whether an error message indicates schema drift (missing column)."""
    return SCHEMA_ERROR_MARKER in str(error).lower()
