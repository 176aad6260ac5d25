"""
HTTP surface of the exporter.

Serves the registry on /metrics through prometheus_client's WSGI app, plus
a landing page on / and a liveness probe on /-/healthy. Requests are served
on a daemon thread per connection; scrapes serialise on the database
connection lock.
"""

import logging
import threading
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"
HEALTH_PATH = "/-/healthy"

LANDING_PAGE = b"""<html>
<head><title>Altibase Exporter</title></head>
<body>
<h1>Altibase Exporter</h1>
<p><a href="/metrics">Metrics</a></p>
</body>
</html>
"""


class ServerBindError(RuntimeError):
    """Raised when the HTTP listener cannot bind its address."""

    pass


def create_app(registry: CollectorRegistry):
    """
    Build the exporter WSGI application.

    Args:
        registry: Registry exposed on /metrics

    Returns:
        WSGI callable
    """
    metrics_app = make_wsgi_app(registry)

    def app(environ, start_response):
        method = environ.get("REQUEST_METHOD", "GET")
        path = environ.get("PATH_INFO", "/")

        if method != "GET":
            start_response("405 Method Not Allowed", [("Allow", "GET"), ("Content-Type", "text/plain")])
            return [b"Method Not Allowed\n"]

        if path == METRICS_PATH:
            return metrics_app(environ, start_response)
        if path == "/":
            start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
            return [LANDING_PAGE]
        if path == HEALTH_PATH:
            start_response("200 OK", [("Content-Length", "0")])
            return [b""]

        start_response("404 Not Found", [("Content-Type", "text/plain")])
        return [b"Not Found\n"]

    return app


class _QuietHandler(WSGIRequestHandler):
    """Request handler that logs access lines at debug level."""

    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} {format % args}")


class MetricsServer:
    """
    HTTP server for the exporter registry.

    Args:
        registry: Registry exposed on /metrics
        host: Listen address; empty for all interfaces
        port: Listen port
    """

    def __init__(self, registry: CollectorRegistry, host: str = "", port: int = 9399):
        self.registry = registry
        self.host = host
        self.port = port
        self._httpd = None
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> str:
        return f"{self.host or '0.0.0.0'}:{self.port}"

    def start(self) -> None:
        """
        Bind and start serving on a daemon thread.

        Raises:
            ServerBindError: If the address cannot be bound
        """
        if self._httpd is not None:
            logger.warning(f"Metrics server already running on {self.address}")
            return

        try:
            self._httpd = make_server(
                self.host,
                self.port,
                create_app(self.registry),
                ThreadingWSGIServer,
                handler_class=_QuietHandler,
            )
        except OSError as e:
            if "Address already in use" in str(e):
                logger.error(
                    f"CRITICAL: Port {self.port} already in use. Metrics server cannot start. "
                    f"Check for conflicting processes or change --web.listen-address."
                )
            raise ServerBindError(f"Cannot listen on {self.address}: {e}") from e

        # Port 0 binds an ephemeral port
        self.port = self._httpd.server_port

        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name="metrics-http", daemon=True
        )
        self._thread.start()
        logger.info(f"Metrics server listening on {self.address}")

    def is_started(self) -> bool:
        return self._httpd is not None

    def stop(self) -> None:
        """Stop accepting requests and release the socket."""
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        self._httpd = None
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("Metrics server stopped")
