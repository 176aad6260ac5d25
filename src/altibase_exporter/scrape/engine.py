"""
Scrape engine: runs the built-in tasks against the shared connection.

ScrapeEngine is a prometheus_client custom collector. Each ``collect()``
call is one scrape: it borrows a single executor from the connection, runs
every enabled task in name order and yields the resulting families followed
by the self-metrics and the two info series. No error escapes ``collect()``.
"""

import logging
import threading
import time
from collections.abc import Iterable, Iterator

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from altibase_exporter import __version__
from altibase_exporter.catalog import CATALOG, MetricCatalog
from altibase_exporter.config import DisableSet
from altibase_exporter.db.errors import ExecutorUnavailableError, QueryError
from altibase_exporter.utils.tracing import trace_operation

from .context import ScrapeContext
from .registry import ScrapeTask, builtin_tasks

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"


class ScrapeEngine(Collector):
    """
    Collector for the built-in Altibase metrics.

    Args:
        connection: Shared connection; anything with an ``executor()``
            context manager that raises ExecutorUnavailableError when no
            executor can be obtained
        disabled: Metric keys to leave out
        exporter_version: Reported in altibase_exporter_build
        tasks: Tasks to run; defaults to every registered built-in task
        catalog: Catalog used to resolve names and verify task keys

    Raises:
        CatalogMismatchError: If a task declares a key the catalog lacks
    """

    def __init__(
        self,
        connection,
        disabled: DisableSet | None = None,
        exporter_version: str = __version__,
        tasks: Iterable[ScrapeTask] | None = None,
        catalog: MetricCatalog = CATALOG,
    ):
        self.connection = connection
        self.disabled = disabled or DisableSet()
        self.exporter_version = exporter_version
        self.catalog = catalog
        self.tasks = sorted(builtin_tasks() if tasks is None else tasks, key=lambda task: task.name)

        self.catalog.verify(key for task in self.tasks for key in task.keys)

        self._version_lock = threading.Lock()
        self._last_version = UNKNOWN_VERSION

    @property
    def last_version(self) -> str:
        """Last server version seen; survives scrapes that fail to read it."""
        with self._version_lock:
            return self._last_version

    def _remember_version(self, version: str | None) -> None:
        if not version:
            return
        with self._version_lock:
            self._last_version = version

    def describe(self) -> list:
        # Families vary per scrape; an empty describe keeps registration from scraping
        return []

    def collect(self) -> Iterator[GaugeMetricFamily]:
        start = time.monotonic()
        success = 1
        ctx = None

        with trace_operation("altibase.scrape", tasks=len(self.tasks)):
            try:
                with self.connection.executor() as executor:
                    ctx = ScrapeContext(executor, self.disabled, self.catalog)
                    if not self._run_tasks(ctx):
                        success = 0
            except ExecutorUnavailableError as e:
                logger.error(f"Scrape skipped, no database executor available: {e}")
                success = 0
            except Exception:
                logger.exception("Scrape failed while acquiring or releasing the executor")
                success = 0

        if ctx is None:
            ctx = ScrapeContext(None, self.disabled, self.catalog)

        self._remember_version(ctx.version)

        duration = max(time.monotonic() - start, 0.0)
        ctx.add("exporter_last_scrape_success", success)
        ctx.add("scrape_duration_seconds", duration)

        if success:
            logger.info(f"Scrape completed in {duration:.3f}s (server version {self.last_version})")
        else:
            logger.warning(f"Scrape failed after {duration:.3f}s")

        yield from ctx.build()
        yield from self._info_families()

    def _run_tasks(self, ctx: ScrapeContext) -> bool:
        """Run every enabled task in order; False if the scrape was aborted."""
        for task in self.tasks:
            if task.skip_when_all_disabled and self.disabled.covers(task.keys):
                logger.debug(f"Skipping {task.name}: all keys disabled")
                continue

            try:
                with trace_operation(f"altibase.task.{task.name}"):
                    task(ctx)
            except QueryError as e:
                if task.catch_schema_error:
                    logger.warning(f"Task {task.name} skipped: {e}")
                    continue
                logger.error(f"Task {task.name} failed, aborting scrape: {e}")
                return False
            except Exception:
                logger.exception(f"Task {task.name} raised unexpectedly, aborting scrape")
                return False

        return True

    def _info_families(self) -> list[GaugeMetricFamily]:
        families = []
        for key, version in (
            ("exporter_build", self.exporter_version),
            ("version", self.last_version),
        ):
            if key in self.disabled:
                continue
            family = GaugeMetricFamily(
                self.catalog.name(key), self.catalog.help(key), labels=["version"]
            )
            family.add_metric([version], 1)
            families.append(family)
        return families
