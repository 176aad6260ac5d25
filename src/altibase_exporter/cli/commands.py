"""
Exporter lifecycle: connect, register collectors, serve until signalled.
"""

import logging
import signal
import threading

from prometheus_client import CollectorRegistry

from altibase_exporter.config import ExporterConfig
from altibase_exporter.custom import CustomQueryCollector, QueriesFileError, load_queries
from altibase_exporter.db.errors import AltibaseConnectionError
from altibase_exporter.scrape import ScrapeEngine
from altibase_exporter.server import MetricsServer, ServerBindError
from altibase_exporter.utils.tracing import shutdown_tracing

logger = logging.getLogger(__name__)

CONNECTION_CLOSE_TIMEOUT = 3.0


def open_connection(config: ExporterConfig):
    """Create the process-wide connection (not yet connected)."""
    # Imported here so the rest of the CLI works without the ODBC driver manager
    from altibase_exporter.db.connection import AltibaseConnection

    return AltibaseConnection(
        host=config.server,
        port=config.port,
        user=config.user,
        password=config.password,
        database=config.database,
        driver=config.driver,
        connect_timeout=config.connect_timeout,
        query_timeout=config.query_timeout,
    )


def load_custom_queries(path: str | None) -> list:
    """Custom query definitions, or an empty list if none could be loaded."""
    if not path:
        return []
    try:
        queries = load_queries(path)
    except QueriesFileError as e:
        logger.warning(f"Custom queries disabled: {e}")
        return []
    logger.info(f"Loaded {len(queries)} custom queries from {path}")
    return queries


def build_registry(connection, config: ExporterConfig) -> CollectorRegistry:
    """Registry holding the built-in engine and, if configured, custom queries."""
    registry = CollectorRegistry()
    registry.register(
        ScrapeEngine(connection, config.disabled_metrics, config.exporter_version)
    )
    disabled = config.disabled_metrics.serialize() or "none"
    logger.info(f"Altibase metrics registered: disabled={disabled}")

    queries = load_custom_queries(config.queries_file)
    if queries:
        registry.register(CustomQueryCollector(connection, queries))
    return registry


def run_exporter(config: ExporterConfig, stop_event: threading.Event | None = None) -> int:
    """
    Run the exporter until SIGINT/SIGTERM (or stop_event) and return an exit code.

    Args:
        config: Exporter configuration
        stop_event: Event ending the serve loop; signal handlers are
            installed only when it is not given

    Returns:
        0 on clean shutdown, 1 on a startup failure
    """
    connection = open_connection(config)
    logger.info(
        f"Connecting to Altibase: {connection.describe()} "
        f"timeout_seconds={config.connect_timeout}"
    )
    try:
        connection.connect()
        connection.validate()
    except AltibaseConnectionError as e:
        logger.error(f"Connection failed: {connection.describe()} error={e}")
        connection.close(timeout=CONNECTION_CLOSE_TIMEOUT)
        return 1

    logger.info("Database connection established")

    server = MetricsServer(
        build_registry(connection, config), config.listen_host, config.listen_port
    )
    try:
        server.start()
    except ServerBindError as e:
        logger.error(f"HTTP server failed to start: {e}")
        connection.close(timeout=CONNECTION_CLOSE_TIMEOUT)
        return 1

    if stop_event is None:
        stop_event = threading.Event()

        def handle_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            stop_event.set()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

    stop_event.wait()

    server.stop()
    connection.close(timeout=CONNECTION_CLOSE_TIMEOUT)
    shutdown_tracing()
    logger.info("Exporter stopped")
    return 0
