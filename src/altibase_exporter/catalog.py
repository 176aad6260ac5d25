"""
Metric catalog: the single source of truth for exposed metric names.

Every built-in series is identified by a short key (``sessions``,
``replication_gap``). The Prometheus name is the key with the
``altibase_`` prefix; ALTIBASE_DISABLED_METRICS refers to keys.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

NAMESPACE = "altibase"


class MetricKind(str, Enum):
    GAUGE = "gauge"
    INFO = "info"


class UnknownMetricError(KeyError):
    """Raised when a key is not declared in the catalog."""

    pass


class CatalogMismatchError(RuntimeError):
    """Raised at startup when scrape tasks declare keys the catalog lacks."""

    pass


@dataclass(frozen=True)
class MetricDef:
    key: str
    help: str
    kind: MetricKind = MetricKind.GAUGE

    @property
    def name(self) -> str:
        return f"{NAMESPACE}_{self.key}"


_DEFS = (
    MetricDef("exporter_build", "Exporter build identity (Info).", MetricKind.INFO),
    MetricDef("version", "Altibase server version (Info).", MetricKind.INFO),
    MetricDef("exporter_last_scrape_success", "1 if last scrape succeeded, 0 otherwise."),
    MetricDef("scrape_duration_seconds", "Duration of the last scrape in seconds."),
    MetricDef("instance_working_time_seconds", "Instance working time (V$INSTANCE)."),
    MetricDef("archive_mode", "Archive mode 0/1 (V$ARCHIVE)."),
    MetricDef("sessions", "Session count; label status: total, active."),
    MetricDef("statements", "Statement count; label status: total, active."),
    MetricDef("memstat_max_total_bytes", "Sum of MAX_TOTAL_SIZE from V$MEMSTAT."),
    MetricDef("memstat_alloc_bytes", "Sum of ALLOC_SIZE from V$MEMSTAT."),
    MetricDef("buffer_pool_hit_ratio", "Buffer pool hit ratio (V$BUFFPOOL_STAT)."),
    MetricDef("buffer_pool_victim_fails", "Buffer pool victim failures (V$BUFFPOOL_STAT)."),
    MetricDef("logfile_oldest", "Oldest active logfile number (V$ARCHIVE)."),
    MetricDef("logfile_current", "Current logfile number (V$ARCHIVE)."),
    MetricDef("logfile_gap", "Logfile gap: current - oldest (V$ARCHIVE)."),
    MetricDef("lf_prepare_wait_count", "Logfile prepare wait count (V$LFG)."),
    MetricDef("lock_hold_count", "Number of lock holds (V$LOCK_STATEMENT STATE=0)."),
    MetricDef("lock_wait_count", "Number of lock waits (V$LOCK_STATEMENT STATE=1)."),
    MetricDef("long_run_query_count", "Long-running queries (execute time > 1s)."),
    MetricDef("utrans_query_count", "Uncommitted transaction queries (UTRANS)."),
    MetricDef("fullscan_query_count", "Full-scan queries (excluding exporter sessions)."),
    MetricDef("replication_sender_count", "Replication senders (V$REPSENDER)."),
    MetricDef("replication_receiver_count", "Replication receivers (V$REPRECEIVER)."),
    MetricDef("replication_gap", "Replication gap by name (V$REPGAP)."),
    MetricDef(
        "replication_peer",
        "Replication peer per sender/receiver; 1 if active, 0 otherwise.",
    ),
    MetricDef("memory_table_usage_bytes", "Total memory table usage (V$MEMTBL_INFO)."),
    MetricDef("disk_table_usage_bytes", "Total disk table usage (V$DISKTBL_INFO)."),
    MetricDef("memstat_usage_ratio", "Per-name memstat usage ratio, top 10."),
    MetricDef("memstat_bytes", "Per-name memstat max_total_size and alloc_size, top 10."),
    MetricDef("gc_gap", "GC gap by GC name (V$MEMGC)."),
    MetricDef("tablespace_total_bytes", "Tablespace total size (memory)."),
    MetricDef("tablespace_state", "Tablespace state 1=ONLINE, 0=OFFLINE."),
    MetricDef("tablespace_usage_ratio", "Tablespace usage ratio (memory)."),
    MetricDef("file_io_reads", "Cumulative physical reads per file (V$FILESTAT), top 10."),
    MetricDef("file_io_writes", "Cumulative physical writes per file (V$FILESTAT), top 10."),
    MetricDef("file_io_wait_seconds", "Avg single-block read wait per file (seconds)."),
    MetricDef("system_event_time_waited_seconds", "System event time waited, non-Idle, top 10."),
    MetricDef("session_event_time_waited_seconds", "Session event time waited, non-Idle, top 10."),
    MetricDef("memory_table_usage_bytes_per_table", "Memory table usage per table, top 5."),
    MetricDef("disk_table_usage_bytes_per_table", "Disk table usage per table, top 5."),
    MetricDef("queue_usage_bytes", "Queue table usage."),
    MetricDef("segment_usage_bytes", "Segment usage by tablespace."),
    MetricDef(
        "service_thread_count",
        "Service thread count by type/state/run_mode (V$SERVICE_THREAD).",
    ),
    MetricDef("sysstat", "V$SYSSTAT values."),
    MetricDef("lock_hold_detail", "Top 1 lock hold (detail labels)."),
    MetricDef("lock_wait_detail", "Top 1 lock wait (detail labels)."),
    MetricDef("tx_of_memory_view_scn", "Top 1 tx with memory view SCN (detail labels)."),
    MetricDef("long_run_query_detail", "Top 1 long-running query (detail labels)."),
    MetricDef("utrans_query_detail", "Top 1 uncommitted transaction query (detail labels)."),
    MetricDef("fullscan_query_detail", "Top 1 full-scan query (detail labels)."),
)


class MetricCatalog:
    """Immutable key -> MetricDef registry."""

    def __init__(self, defs: Iterable[MetricDef]):
        self._defs: dict[str, MetricDef] = {}
        for metric in defs:
            if metric.key in self._defs:
                raise ValueError(f"Duplicate metric key: {metric.key}")
            self._defs[metric.key] = metric

    def get(self, key: str) -> MetricDef:
        try:
            return self._defs[key]
        except KeyError:
            raise UnknownMetricError(key) from None

    def name(self, key: str) -> str:
        return self.get(key).name

    def help(self, key: str) -> str:
        return self.get(key).help

    def kind(self, key: str) -> MetricKind:
        return self.get(key).kind

    def keys(self) -> list[str]:
        """All keys, sorted."""
        return sorted(self._defs)

    def __contains__(self, key: object) -> bool:
        return key in self._defs

    def __len__(self) -> int:
        return len(self._defs)

    def verify(self, keys: Iterable[str]) -> None:
        """
        Check that every key exists.

        Raises:
            CatalogMismatchError: Listing all unknown keys
        """
        missing = sorted({key for key in keys if key not in self._defs})
        if missing:
            raise CatalogMismatchError(f"Keys missing from metric catalog: {', '.join(missing)}")


CATALOG = MetricCatalog(_DEFS)
