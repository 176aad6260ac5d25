"""
Log formatters for the exporter.

Scrapes run on the HTTP server's request threads, so both formats carry
the thread name to tell concurrent scrapes apart.
"""

import json
import logging
import socket
import sys
import traceback
from datetime import datetime, timezone

from altibase_exporter import __version__

# LogRecord attributes that are not caller supplied ``extra`` fields
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}

LEVEL_COLORS = {
    "DEBUG": "\033[2m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}
RESET = "\033[0m"


def extra_fields(record: logging.LogRecord) -> dict:
    """Fields passed through ``logger.x(..., extra={...})``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
    }


def _utc_timestamp(record: logging.LogRecord) -> str:
    created = datetime.fromtimestamp(record.created, timezone.utc)
    return created.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, for log shippers.

    Extra fields are merged under ``fields``; exceptions are rendered as
    ``error`` (type and message) plus the formatted ``stack``.
    """

    def __init__(self, include_hostname: bool = True, app_name: str = "altibase-exporter"):
        super().__init__()
        self.app_name = app_name
        self.hostname = socket.gethostname() if include_hostname else None

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": _utc_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
            "app": self.app_name,
            "version": __version__,
            "caller": f"{record.module}:{record.lineno}",
        }
        if self.hostname:
            entry["host"] = self.hostname

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["error"] = f"{exc_type.__name__}: {exc_value}"
            entry["stack"] = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))

        fields = extra_fields(record)
        if fields:
            entry["fields"] = fields

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Single-line console output:

        2026-01-01T10:00:00.000Z INFO  [metrics-http] altibase_exporter.scrape.engine - Scrape completed

    Levels other than INFO are colored when stderr is a terminal.
    """

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<5}"
        if self.use_colors and record.levelname in LEVEL_COLORS:
            level = f"{LEVEL_COLORS[record.levelname]}{level}{RESET}"

        line = (
            f"{_utc_timestamp(record)} {level} [{record.threadName}] "
            f"{record.name} - {record.getMessage()}"
        )

        fields = extra_fields(record)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
