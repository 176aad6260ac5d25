"""
Logging for the Altibase exporter.

    from altibase_exporter.utils.logging import configure_from_env

    configure_from_env("DEBUG")
"""

from .config import configure_from_env, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter, extra_fields

__all__ = [
    "configure_from_env",
    "setup_logging",
    "ConsoleFormatter",
    "JSONFormatter",
    "extra_fields",
]
