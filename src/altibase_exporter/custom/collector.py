"""
Collector for operator-defined custom queries.

Every row of a query becomes one gauge sample. Each query runs on its own
executor and a failing query is logged and skipped, so it never affects
the other queries or the built-in scrape.
"""

import logging
import re
from collections.abc import Iterable, Iterator, Sequence

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from altibase_exporter.db.errors import AltibaseConnectionError, QueryError
from altibase_exporter.scrape.rows import text, to_float
from altibase_exporter.utils.tracing import trace_operation

from .loader import CustomQueryDef

logger = logging.getLogger(__name__)

_INVALID_LABEL_CHARS = re.compile(r"[^a-z0-9_]")


def sanitize_label_name(name: str) -> str:
    """Lowercase and map to [a-z0-9_]; never reserved, never digit-first."""
    name = _INVALID_LABEL_CHARS.sub("_", (name or "").lower())
    if name.startswith("__"):
        name = "_" + name.lstrip("_")
    if not name or name[0].isdigit():
        name = "_" + name
    return name


def resolve_columns(
    columns: Sequence[str], label_columns: Iterable[str] | None
) -> tuple[list[tuple[str, int | None]], int]:
    """
    Work out which result columns are labels and which holds the value.

    Args:
        columns: Result set column labels, in order
        label_columns: Configured label columns, or None to use every
            column but the last

    Returns:
        ([(label_name, column_index or None if absent)], value_index)
    """
    lowered = [column.lower() for column in columns]

    if label_columns is None:
        labels = [(column, index) for index, column in enumerate(columns[:-1])]
    else:
        labels = []
        for column in label_columns:
            index = lowered.index(column.lower()) if column.lower() in lowered else None
            labels.append((column, index))

    label_indexes = {index for _, index in labels if index is not None}

    if "value" in lowered:
        value_index = lowered.index("value")
    else:
        candidates = [index for index in range(len(columns)) if index not in label_indexes]
        value_index = candidates[0] if candidates else len(columns) - 1

    return labels, value_index


class CustomQueryCollector(Collector):
    """
    prometheus_client collector running custom SQL on every scrape.

    Args:
        connection: Shared connection providing ``executor()``
        queries: Query definitions, usually from ``load_queries``
    """

    def __init__(self, connection, queries: Iterable[CustomQueryDef]):
        self.connection = connection
        self.queries = list(queries)

    def describe(self) -> list[GaugeMetricFamily]:
        return [GaugeMetricFamily(query.metric_name, query.help) for query in self.queries]

    def collect(self) -> Iterator[GaugeMetricFamily]:
        for query in self.queries:
            try:
                with trace_operation("altibase.custom_query", metric=query.metric_name):
                    family = self._run_query(query)
            except (QueryError, AltibaseConnectionError, ValueError, TypeError) as e:
                logger.warning(f"Custom query failed: name={query.metric_name} error={e}")
                continue

            if family is not None:
                yield family

    def _run_query(self, query: CustomQueryDef) -> GaugeMetricFamily | None:
        with self.connection.executor() as executor:
            rows = executor.query(query.sql)
            columns = list(executor.columns)

        if not rows:
            return None

        labels, value_index = resolve_columns(columns, query.label_columns)
        label_names = [sanitize_label_name(name) for name, _ in labels]

        family = GaugeMetricFamily(query.metric_name, query.help, labels=label_names)
        seen = set()
        for row in rows:
            label_values = [text(row[index]) if index is not None else "" for _, index in labels]
            if tuple(label_values) in seen:
                logger.debug(f"Dropping duplicate row for {query.metric_name}: {label_values}")
                continue
            seen.add(tuple(label_values))
            family.add_metric(label_values, to_float(row[value_index]))
        return family
