"""
Command-line argument parser configuration.

Flags override the corresponding environment variables. Both the
``--altibase.server`` and the single-dash ``-altibase.server`` spellings
are accepted.
"""

import argparse
import dataclasses
from collections.abc import Mapping, Sequence

from altibase_exporter import __version__
from altibase_exporter.config import DisableSet, ExporterConfig


def parse_listen_address(value: str) -> tuple[str, int]:
    """
    Parse ``[host]:port`` (or a bare port) into (host, port).

    Raises:
        argparse.ArgumentTypeError: If the port is missing or invalid
    """
    value = value.strip()
    host, sep, port = value.rpartition(":")
    if not sep:
        host, port = "", value
    host = host.strip("[]")

    try:
        port_number = int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid listen address: {value!r}") from None
    if not 0 <= port_number <= 65535:
        raise argparse.ArgumentTypeError(f"listen port out of range: {port_number}")
    return host, port_number


def _add_flag(parser: argparse.ArgumentParser, name: str, **kwargs) -> None:
    parser.add_argument(f"--{name}", f"-{name}", **kwargs)


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the exporter.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="altibase-exporter",
        description="Prometheus exporter for Altibase",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog="""
Examples:
  # Connect with environment defaults, listen on :9399
  altibase-exporter

  # Explicit server and listen address
  altibase-exporter --altibase.server=db1 --altibase.port=20300 --web.listen-address=:9400

  # Custom queries, some built-in metrics disabled
  altibase-exporter --altibase.queries-file=queries.yaml --altibase.disabled-metrics=sysstat,gc_gap
        """,
    )

    _add_flag(parser, "altibase.server", dest="server", help="Altibase host (env ALTIBASE_SERVER)")
    _add_flag(parser, "altibase.port", dest="port", type=int, help="Altibase port (env ALTIBASE_PORT)")
    _add_flag(parser, "altibase.user", dest="user", help="Database user (env ALTIBASE_USER)")
    _add_flag(
        parser, "altibase.password", dest="password", help="Database password (env ALTIBASE_PASSWORD)"
    )
    _add_flag(
        parser, "altibase.database", dest="database", help="Database name (env ALTIBASE_DATABASE)"
    )
    _add_flag(
        parser,
        "altibase.connect-timeout",
        dest="connect_timeout",
        type=int,
        help="Startup connection timeout in seconds (env ALTIBASE_CONNECT_TIMEOUT)",
    )
    _add_flag(
        parser,
        "altibase.queries-file",
        dest="queries_file",
        help="YAML file with custom queries (env ALTIBASE_QUERIES_FILE)",
    )
    _add_flag(
        parser,
        "altibase.disabled-metrics",
        dest="disabled_metrics",
        help="Comma-separated metric keys to disable (env ALTIBASE_DISABLED_METRICS)",
    )
    _add_flag(
        parser,
        "web.listen-address",
        dest="listen_address",
        type=parse_listen_address,
        help="[host]:port to listen on (env WEB_LISTEN_PORT sets the port)",
    )
    _add_flag(
        parser,
        "log.level",
        dest="log_level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (env LOG_LEVEL, default: INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def build_config(
    argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None
) -> ExporterConfig:
    """
    Build the exporter configuration from environment and flags.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])
        environ: Environment (default: os.environ)

    Returns:
        ExporterConfig with flags applied over environment values
    """
    args = create_parser().parse_args(argv)
    config = ExporterConfig.from_env(environ)

    overrides = {
        field: getattr(args, field)
        for field in (
            "server",
            "port",
            "user",
            "password",
            "database",
            "connect_timeout",
            "queries_file",
            "log_level",
        )
        if getattr(args, field) is not None
    }
    if args.disabled_metrics is not None:
        overrides["disabled_metrics"] = DisableSet.parse(args.disabled_metrics)
    if args.listen_address is not None:
        overrides["listen_host"], overrides["listen_port"] = args.listen_address

    return dataclasses.replace(config, **overrides)
