"""
Per-scrape accumulator of data points.

A ScrapeContext lives for exactly one scrape. Tasks borrow it, append data
points through ``add`` and must not keep a reference after they return.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from prometheus_client.core import GaugeMetricFamily

from altibase_exporter.catalog import CATALOG, MetricCatalog, UnknownMetricError
from altibase_exporter.config import DisableSet

from .rows import text, to_float

logger = logging.getLogger(__name__)

Labels = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


@dataclass(frozen=True)
class DataPoint:
    key: str
    labels: tuple[tuple[str, str], ...]
    value: float


def normalize_labels(labels: Labels | None) -> tuple[tuple[str, str], ...]:
    """Ordered (name, value) pairs; None values become empty strings."""
    if not labels:
        return ()
    pairs = labels.items() if isinstance(labels, Mapping) else labels

    normalized = []
    for name, value in pairs:
        if name.startswith("__"):
            raise ValueError(f"Reserved label name: {name}")
        normalized.append((name, text(value)))
    return tuple(normalized)


class ScrapeContext:
    def __init__(
        self,
        executor: Any | None = None,
        disabled: DisableSet | None = None,
        catalog: MetricCatalog = CATALOG,
    ):
        self._executor = executor
        self._disabled = disabled or DisableSet()
        self._catalog = catalog
        self._points: dict[str, list[DataPoint]] = {}
        self._seen: set[tuple[str, tuple[tuple[str, str], ...]]] = set()
        self.version: str | None = None

    def executor(self) -> Any | None:
        """The executor for this scrape, or None in no-executor mode."""
        return self._executor

    def enabled(self, key: str) -> bool:
        return key not in self._disabled

    def add(self, key: str, value: Any, labels: Labels | None = None) -> None:
        """
        Append a data point.

        Raises:
            UnknownMetricError: If key is not in the catalog
            ValueError: If a label name is reserved
        """
        if key not in self._catalog:
            raise UnknownMetricError(key)

        value = to_float(value)
        if math.isnan(value):
            logger.debug(f"Dropping NaN sample for {key}")
            return

        label_pairs = normalize_labels(labels)
        identity = (key, label_pairs)
        if identity in self._seen:
            logger.debug(f"Dropping duplicate sample for {key}: {dict(label_pairs)}")
            return
        self._seen.add(identity)

        self._points.setdefault(key, []).append(DataPoint(key, label_pairs, value))

    def add_detail(self, key: str, labels: Labels | None, placeholder: Labels) -> None:
        """
        Emit the single series of a detail task.

        With labels the series has value 1; without (no matching row) the
        placeholder labels are emitted with value 0 so the series always exists.
        """
        if labels is None:
            self.add(key, 0, placeholder)
        else:
            self.add(key, 1, labels)

    def report_version(self, version: Any) -> None:
        """Record the server version read during this scrape."""
        version = text(version).strip()
        if version:
            self.version = version

    def keys(self) -> list[str]:
        return list(self._points)

    def points(self, key: str) -> list[DataPoint]:
        return list(self._points.get(key, ()))

    def build(self) -> list[GaugeMetricFamily]:
        """One gauge family per key, in insertion order."""
        families = []
        for key, points in self._points.items():
            name = self._catalog.name(key)
            family = GaugeMetricFamily(name, self._catalog.help(key))
            for point in points:
                family.add_sample(name, dict(point.labels), point.value)
            families.append(family)
        return families
