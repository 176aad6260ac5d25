"""
Process-wide logging setup.

The exporter logs to stderr only; stdout is left to the shell. Output is
the console format unless LOG_JSON asks for one JSON object per line.
"""

import logging
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

# Third-party loggers that are chatty below WARNING
QUIET_LOGGERS = ("opentelemetry", "urllib3", "grpc")

_TRUE_VALUES = ("true", "1", "yes")


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Replace the root handlers with a single stderr handler.

    Args:
        level: Level name; unknown names fall back to INFO
        json_format: Emit JSON lines instead of console lines
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(numeric_level)} json={json_format}"
    )


def configure_from_env(level: str | None = None) -> None:
    """
    Configure logging from LOG_LEVEL and LOG_JSON.

    Args:
        level: Level from the command line; wins over LOG_LEVEL
    """
    level = level or os.getenv("LOG_LEVEL", "").strip() or "INFO"
    json_format = os.getenv("LOG_JSON", "").strip().lower() in _TRUE_VALUES
    setup_logging(level=level, json_format=json_format)
