"""
Exporter configuration.

Values come from environment variables; the command line overrides them
(see ``altibase_exporter.cli.parser``).
"""

import logging
import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from altibase_exporter import __version__

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "127.0.0.1"
DEFAULT_PORT = 20300
DEFAULT_USER = "sys"
DEFAULT_PASSWORD = "manager"
DEFAULT_DATABASE = "mydb"
DEFAULT_LISTEN_PORT = 9399
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_DRIVER = "ALTIBASE_HDB_ODBC_64bit"

# Session tag set with set_client_info; full-scan reports exclude it
CLIENT_INFO = "altibase-exporter"


class DisableSet:
    """
    Immutable set of metric keys suppressed for this process.

    Keys are compared case-sensitively against catalog keys (the part
    after ``altibase_``).
    """

    __slots__ = ("_keys",)

    def __init__(self, keys: Iterable[str] = ()):
        self._keys = frozenset(keys)

    @classmethod
    def parse(cls, value: str | None) -> "DisableSet":
        """Parse a comma separated list; blanks and empty tokens are dropped."""
        if not value:
            return cls()
        return cls(token.strip() for token in value.split(",") if token.strip())

    def serialize(self) -> str:
        return ",".join(sorted(self._keys))

    def covers(self, keys: Iterable[str]) -> bool:
        """True if keys is non-empty and every key is disabled."""
        keys = list(keys)
        return bool(keys) and all(key in self._keys for key in keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DisableSet):
            return NotImplemented
        return self._keys == other._keys

    def __hash__(self) -> int:
        return hash(self._keys)

    def __repr__(self) -> str:
        return f"DisableSet({self.serialize()!r})"


def env_str(environ: Mapping[str, str], key: str, default: str) -> str:
    value = environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = environ.get(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        logger.warning(f"Ignoring invalid integer {key}={value!r}, using {default}")
        return default


@dataclass(frozen=True)
class ExporterConfig:
    server: str = DEFAULT_SERVER
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = field(default=DEFAULT_PASSWORD, repr=False)
    database: str = DEFAULT_DATABASE
    driver: str = DEFAULT_DRIVER
    listen_host: str = ""
    listen_port: int = DEFAULT_LISTEN_PORT
    queries_file: str | None = None
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    query_timeout: int = 0
    disabled_metrics: DisableSet = field(default_factory=DisableSet)
    log_level: str = "INFO"
    exporter_version: str = __version__

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ExporterConfig":
        """
        Build configuration from environment variables

        Environment variables:
            ALTIBASE_SERVER, ALTIBASE_PORT, ALTIBASE_USER, ALTIBASE_PASSWORD,
            ALTIBASE_DATABASE, ALTIBASE_ODBC_DRIVER, ALTIBASE_CONNECT_TIMEOUT,
            ALTIBASE_QUERY_TIMEOUT, ALTIBASE_QUERIES_FILE,
            ALTIBASE_DISABLED_METRICS, WEB_LISTEN_PORT, LOG_LEVEL
        """
        environ = os.environ if environ is None else environ

        return cls(
            server=env_str(environ, "ALTIBASE_SERVER", DEFAULT_SERVER),
            port=env_int(environ, "ALTIBASE_PORT", DEFAULT_PORT),
            user=env_str(environ, "ALTIBASE_USER", DEFAULT_USER),
            password=env_str(environ, "ALTIBASE_PASSWORD", DEFAULT_PASSWORD),
            database=env_str(environ, "ALTIBASE_DATABASE", DEFAULT_DATABASE),
            driver=env_str(environ, "ALTIBASE_ODBC_DRIVER", DEFAULT_DRIVER),
            listen_port=env_int(environ, "WEB_LISTEN_PORT", DEFAULT_LISTEN_PORT),
            queries_file=env_str(environ, "ALTIBASE_QUERIES_FILE", "") or None,
            connect_timeout=env_int(environ, "ALTIBASE_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT),
            query_timeout=env_int(environ, "ALTIBASE_QUERY_TIMEOUT", 0),
            disabled_metrics=DisableSet.parse(environ.get("ALTIBASE_DISABLED_METRICS")),
            log_level=env_str(environ, "LOG_LEVEL", "INFO"),
        )
