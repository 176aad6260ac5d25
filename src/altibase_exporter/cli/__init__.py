"""
Command-line interface for the Altibase exporter.

Configuration comes from ALTIBASE_* / WEB_LISTEN_PORT / LOG_LEVEL
environment variables, overridden by command-line flags.
"""

import sys

from altibase_exporter.utils.logging import configure_from_env
from altibase_exporter.utils.tracing import initialize_tracing

from .commands import build_registry, load_custom_queries, open_connection, run_exporter
from .parser import build_config, create_parser, parse_listen_address


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the altibase-exporter CLI"""
    config = build_config(argv)

    # Setup logging
    configure_from_env(config.log_level)
    initialize_tracing()

    sys.exit(run_exporter(config))


__all__ = [
    "main",
    "build_config",
    "build_registry",
    "create_parser",
    "load_custom_queries",
    "open_connection",
    "parse_listen_address",
    "run_exporter",
]


if __name__ == "__main__":
    main()
