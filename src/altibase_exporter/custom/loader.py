"""
Custom query file loader.

The file is YAML with a single ``queries`` list:

    queries:
      - name: rep_items
        help: "Replication items per replication"
        sql: "SELECT REP_NAME, COUNT(*) AS VALUE FROM SYSTEM_.SYS_REPL_ITEMS_ GROUP BY REP_NAME"
        label_columns: [REP_NAME]
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CUSTOM_METRIC_PREFIX = "altibase_custom_"

METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


class QueriesFileError(Exception):
    """Raised when the custom query file cannot be read or parsed."""

    pass


@dataclass(frozen=True)
class CustomQueryDef:
    name: str
    help: str
    sql: str
    label_columns: tuple[str, ...] | None = None

    @property
    def metric_name(self) -> str:
        if not self.name:
            return f"{CUSTOM_METRIC_PREFIX}unnamed"
        if self.name.startswith(CUSTOM_METRIC_PREFIX):
            return self.name
        return f"{CUSTOM_METRIC_PREFIX}{self.name}"


def _get_string(entry: dict, key: str) -> str | None:
    value = entry.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _get_string_list(entry: dict, key: str) -> tuple[str, ...] | None:
    value = entry.get(key)
    if not isinstance(value, list):
        return None
    items = tuple(str(item).strip() for item in value if item is not None)
    return items or None


def parse_queries(document: Any) -> list[CustomQueryDef]:
    """Query definitions from an already parsed YAML document."""
    if not isinstance(document, dict):
        return []
    entries = document.get("queries")
    if not isinstance(entries, list):
        return []

    queries = []
    seen_names: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            logger.debug(f"Skipping query entry that is not a mapping: {entry!r}")
            continue

        name = _get_string(entry, "name")
        help_text = _get_string(entry, "help")
        sql = _get_string(entry, "sql")
        if name is None or help_text is None or sql is None:
            logger.debug(f"Skipping query entry with missing name/help/sql: {entry!r}")
            continue

        query = CustomQueryDef(name, help_text, sql, _get_string_list(entry, "label_columns"))
        if not METRIC_NAME_RE.match(query.metric_name):
            logger.warning(f"Skipping query with invalid metric name: {query.metric_name!r}")
            continue
        if query.metric_name in seen_names:
            logger.warning(f"Skipping query with duplicate metric name: {query.metric_name!r}")
            continue
        seen_names.add(query.metric_name)
        queries.append(query)
    return queries


def load_queries(path: str | Path) -> list[CustomQueryDef]:
    """
    Load custom query definitions from a YAML file.

    Args:
        path: Path to the queries file

    Returns:
        Valid query definitions, in file order

    Raises:
        QueriesFileError: If the file cannot be read or is not valid YAML
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise QueriesFileError(f"Cannot read queries file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise QueriesFileError(f"Invalid YAML in queries file {path}: {e}") from e

    queries = parse_queries(document)
    logger.debug(f"Loaded {len(queries)} custom queries from {path}")
    return queries
