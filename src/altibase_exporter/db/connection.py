"""
Single shared Altibase connection over ODBC.

The exporter holds exactly one connection. Executors (cursors) are only
handed out while the connection lock is held, so concurrent scrapes queue
behind each other instead of interleaving statements on one connection.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import pyodbc
from opentelemetry import trace

from altibase_exporter.config import CLIENT_INFO, DEFAULT_DRIVER
from altibase_exporter.utils.tracing import trace_operation

from .errors import AltibaseConnectionError, ExecutorUnavailableError, QueryError

logger = logging.getLogger(__name__)

VALIDATION_SQL = "SELECT 1 FROM DUAL"
CLIENT_INFO_SQL = f"exec set_client_info('{CLIENT_INFO}')"


def _error_message(error: pyodbc.Error) -> str:
    # pyodbc errors carry (sqlstate, message)
    if len(error.args) > 1:
        return f"{error.args[1]} (SQLSTATE {error.args[0]})"
    return str(error)


def _sqlstate(error: pyodbc.Error) -> str | None:
    return str(error.args[0]) if len(error.args) > 1 else None


class QueryExecutor:
    """
    Thin wrapper over a DB-API cursor.

    Translates driver errors into QueryError and remembers the column
    labels of the last result set.
    """

    def __init__(self, cursor: Any):
        self._cursor = cursor
        self.columns: list[str] = []

    def query(self, sql: str) -> list[Any]:
        """Execute a SELECT and return all rows."""
        try:
            self._cursor.execute(sql)
            rows = self._cursor.fetchall()
        except pyodbc.Error as e:
            raise QueryError(_error_message(e), sql, _sqlstate(e)) from e

        self.columns = [column[0] for column in self._cursor.description or ()]
        return rows

    def query_one(self, sql: str) -> Any | None:
        """Execute a SELECT and return the first row, or None."""
        rows = self.query(sql)
        return rows[0] if rows else None

    def execute(self, sql: str) -> None:
        """Execute a statement that returns no rows."""
        try:
            self._cursor.execute(sql)
        except pyodbc.Error as e:
            raise QueryError(_error_message(e), sql, _sqlstate(e)) from e

    def close(self) -> None:
        try:
            self._cursor.close()
        except pyodbc.Error as e:
            logger.debug(f"Error closing cursor: {e}")


class AltibaseConnection:
    """Owner of the process-wide Altibase connection."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        driver: str = DEFAULT_DRIVER,
        connect_timeout: int = 10,
        query_timeout: int = 0,
    ):
        """
        Args:
            host: Altibase server host
            port: Altibase listener port
            user: Username
            password: Password
            database: Database name
            driver: ODBC driver name as registered in odbcinst.ini
            connect_timeout: Login timeout in seconds
            query_timeout: Per-statement timeout in seconds (0 = none)
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.driver = driver
        self.connect_timeout = connect_timeout
        self.query_timeout = query_timeout

        self._conn: Any | None = None
        self._lock = threading.RLock()

    @property
    def connection_string(self) -> str:
        return (
            f"DRIVER={{{self.driver}}};"
            f"Server={self.host};"
            f"Port={self.port};"
            f"User={self.user};"
            f"Password={self.password};"
            f"Database={self.database};"
        )

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def describe(self) -> str:
        """Connection identity for log lines (no credentials)."""
        return f"{self.host}:{self.port}/{self.database}"

    def connect(self) -> None:
        """
        Open the connection, bounded by connect_timeout.

        Raises:
            AltibaseConnectionError: On driver failure or timeout
        """
        with self._lock:
            if self._conn is not None:
                return

            with trace_operation(
                "altibase.connect",
                kind=trace.SpanKind.CLIENT,
                db_host=self.host,
                db_name=self.database,
            ):
                self._conn = self._connect_with_timeout()

            logger.info(f"Connected to Altibase: {self.describe()}")
            self._register_client_info(self._conn)

    def _connect_with_timeout(self) -> Any:
        result: dict[str, Any] = {}

        def target() -> None:
            try:
                result["conn"] = pyodbc.connect(
                    self.connection_string,
                    timeout=self.connect_timeout,
                    autocommit=True,
                )
            except pyodbc.Error as e:
                result["error"] = e

        # The driver's login timeout is not honoured by every ODBC build
        worker = threading.Thread(target=target, name="altibase-connect", daemon=True)
        worker.start()
        worker.join(self.connect_timeout)

        if "error" in result:
            raise AltibaseConnectionError(
                f"Connection failed: {self.describe()}: {_error_message(result['error'])}"
            ) from result["error"]
        if "conn" not in result:
            raise AltibaseConnectionError(
                f"Connection timeout after {self.connect_timeout} seconds: {self.describe()}"
            )

        conn = result["conn"]
        if self.query_timeout > 0:
            conn.timeout = self.query_timeout
        return conn

    def validate(self) -> None:
        """
        Run a trivial statement to prove the session is usable.

        Raises:
            AltibaseConnectionError: If the validation statement fails
        """
        try:
            with self.executor() as executor:
                executor.query(VALIDATION_SQL)
        except (QueryError, ExecutorUnavailableError) as e:
            raise AltibaseConnectionError(f"Connection validation failed: {e}") from e

    def _register_client_info(self, conn: Any) -> None:
        """Tag a new session so monitoring queries can exclude it. Best effort."""
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(CLIENT_INFO_SQL)
            finally:
                cursor.close()
        except pyodbc.Error as e:
            logger.debug(f"set_client_info failed (ignored): {_error_message(e)}")

    def _open_cursor(self) -> Any:
        if self._conn is None:
            try:
                self.connect()
            except AltibaseConnectionError as e:
                raise ExecutorUnavailableError(str(e)) from e

        try:
            return self._conn.cursor()
        except pyodbc.Error as e:
            logger.warning(f"Cursor creation failed, reconnecting: {_error_message(e)}")
            self._drop()

        try:
            self.connect()
            return self._conn.cursor()
        except (AltibaseConnectionError, pyodbc.Error) as e:
            self._drop()
            raise ExecutorUnavailableError(f"No executor available: {e}") from e

    def _drop(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            try:
                conn.close()
            except pyodbc.Error as e:
                logger.debug(f"Error closing broken connection: {e}")

    @contextmanager
    def executor(self) -> Iterator[QueryExecutor]:
        """
        Acquire a short-lived executor under the connection lock.

        Raises:
            ExecutorUnavailableError: If no cursor could be opened
        """
        with self._lock:
            executor = QueryExecutor(self._open_cursor())
            try:
                yield executor
            except QueryError as e:
                if e.is_connection_lost:
                    logger.warning(f"Connection lost, reconnecting on next use: {e}")
                    self._drop()
                raise
            finally:
                executor.close()

    def close(self, timeout: float = 3.0) -> None:
        """Close the connection, giving up after timeout seconds."""
        conn, self._conn = self._conn, None
        if conn is None:
            return

        def target() -> None:
            try:
                conn.close()
            except pyodbc.Error as e:
                logger.error(f"Connection close failed: {_error_message(e)}")

        closer = threading.Thread(target=target, name="altibase-close", daemon=True)
        closer.start()
        closer.join(timeout)
        if closer.is_alive():
            logger.warning(f"Connection close did not complete in {timeout}s")
        else:
            logger.info(f"Connection closed: {self.describe()}")
