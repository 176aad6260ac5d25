"""
Unit tests for the built-in scrape tasks

Each task is run on its own against a scripted executor and the data
points it leaves in the ScrapeContext are checked.
"""

import pytest

from altibase_exporter.config import DisableSet
from altibase_exporter.db.errors import QueryError
from altibase_exporter.scrape import ScrapeContext
from altibase_exporter.scrape.tasks import events, instance, locks, memory, queries, replication, storage


def points(ctx, key):
    return [(dict(point.labels), point.value) for point in ctx.points(key)]


class TestInstanceTasks:
    """Instance-wide scalars"""

    def test_version_reported(self, make_executor):
        """Test the product version is reported, not emitted as a gauge"""
        # Arrange
        ctx = ScrapeContext(make_executor([("V$VERSION", [("7.3.0.1.2 ",)])]))

        # Act
        instance.scrape_version(ctx)

        # Assert
        assert ctx.version == "7.3.0.1.2"
        assert ctx.keys() == []

    def test_statements_by_status(self, make_executor):
        """Test statement counts are labelled total/active"""
        # Arrange
        ctx = ScrapeContext(make_executor([
            ("EXECUTE_FLAG = 1", [(2,)]),
            ("SELECT COUNT(*) FROM V$STATEMENT", [(11,)]),
        ]))

        # Act
        instance.scrape_statements(ctx)

        # Assert
        assert points(ctx, "statements") == [({"status": "total"}, 11.0), ({"status": "active"}, 2.0)]

    def test_logfile_respects_disabled_keys(self, make_executor):
        """Test a multi-key task only adds its enabled keys"""
        # Arrange
        ctx = ScrapeContext(
            make_executor([("OLDEST_ACTIVE_LOGFILE", [(3, 8, 5)])]),
            DisableSet.parse("logfile_current"),
        )

        # Act
        instance.scrape_logfile(ctx)

        # Assert
        assert ctx.keys() == ["logfile_oldest", "logfile_gap"]
        assert points(ctx, "logfile_gap") == [({}, 5.0)]

    def test_sysstat_trims_names(self, make_executor):
        """Test stat names are trimmed and NULL names skipped"""
        # Arrange
        ctx = ScrapeContext(make_executor([
            ("V$SYSSTAT", [("session commit   ", 10), (None, 1), ("data page read", None)]),
        ]))

        # Act
        instance.scrape_sysstat(ctx)

        # Assert
        assert points(ctx, "sysstat") == [
            ({"name": "session commit"}, 10.0),
            ({"name": "data page read"}, 0.0),
        ]

    def test_service_thread_kinds_do_not_collide(self, make_executor):
        """Test a value shared by TYPE and STATE stays two distinct series"""
        # Arrange
        ctx = ScrapeContext(make_executor([
            ("V$SERVICE_THREAD", [("type", "SOCKET", 4), ("state", "POLL", 3), ("run_mode", "SHARED", 4)]),
        ]))

        # Act
        instance.scrape_service_thread(ctx)

        # Assert
        assert points(ctx, "service_thread_count") == [
            ({"kind": "type", "value": "SOCKET"}, 4.0),
            ({"kind": "state", "value": "POLL"}, 3.0),
            ({"kind": "run_mode", "value": "SHARED"}, 4.0),
        ]


class TestMemoryTasks:
    """V$MEMSTAT, buffer pool and table allocation"""

    def test_memstat_by_name_emits_both_types(self, make_executor):
        """Test each memstat row yields max_total_size and alloc_size"""
        # Arrange
        ctx = ScrapeContext(make_executor([("ORDER BY MAX_TOTAL_SIZE DESC", [(" Query_Prepare ", 2048, 1024)])]))

        # Act
        memory.scrape_memstat_by_name(ctx)

        # Assert
        assert points(ctx, "memstat_bytes") == [
            ({"name": "Query_Prepare", "type": "max_total_size"}, 2048.0),
            ({"name": "Query_Prepare", "type": "alloc_size"}, 1024.0),
        ]

    def test_buffer_pool_without_rows(self, make_executor):
        """Test no row means no samples"""
        # Arrange
        ctx = ScrapeContext(make_executor())

        # Act
        memory.scrape_buffer_pool(ctx)

        # Assert
        assert ctx.keys() == []

    def test_disk_table_usage_uses_page_size(self, make_executor):
        """Test disk usage is computed in bytes from 8K pages"""
        # Arrange
        executor = make_executor([("V$DISKTBL_INFO", [(81920,)])])
        ctx = ScrapeContext(executor)

        # Act
        memory.scrape_disk_table_usage(ctx)

        # Assert
        assert executor.ran("DISK_TOTAL_PAGE_CNT * 8192")
        assert points(ctx, "disk_table_usage_bytes") == [({}, 81920.0)]


class TestStorageTasks:
    """Tablespaces and datafile I/O"""

    def test_tablespace_state_labels(self, make_executor):
        """Test online flag maps to ONLINE/OFFLINE labels"""
        # Arrange
        ctx = ScrapeContext(make_executor([("AS ONLINE FROM V$TABLESPACES", [("SYS_TBS_MEM_DATA", 1), ("USER_TBS", 0)])]))

        # Act
        storage.scrape_tablespace_state(ctx)

        # Assert
        assert points(ctx, "tablespace_state") == [
            ({"tbs_name": "SYS_TBS_MEM_DATA", "state": "ONLINE"}, 1.0),
            ({"tbs_name": "USER_TBS", "state": "OFFLINE"}, 0.0),
        ]

    def test_file_io_wait_in_seconds(self, make_executor):
        """Test microsecond waits are converted to seconds"""
        # Arrange
        ctx = ScrapeContext(make_executor([("AVERAGE_WAIT", [("system001.dbf", 2500)])]))

        # Act
        storage.scrape_file_io_wait_seconds(ctx)

        # Assert
        assert points(ctx, "file_io_wait_seconds") == [({"file_name": "system001.dbf"}, 0.0025)]

    def test_file_io_reads_keeps_database_order(self, make_executor):
        """Test ranking rows are emitted in result-set order"""
        # Arrange
        rows = [("b.dbf", 30), ("a.dbf", 20), ("c.dbf", 10)]
        ctx = ScrapeContext(make_executor([("A.PHYRDS", rows)]))

        # Act
        storage.scrape_file_io_reads(ctx)

        # Assert
        assert [labels["file_name"] for labels, _ in points(ctx, "file_io_reads")] == ["b.dbf", "a.dbf", "c.dbf"]


class TestEventTasks:
    """Wait events"""

    def test_system_event_seconds(self, make_executor):
        """Test time waited is reported in seconds"""
        # Arrange
        ctx = ScrapeContext(make_executor([("V$SYSTEM_EVENT", [("latch free(Concurrency)", 3_000_000)])]))

        # Act
        events.scrape_system_event(ctx)

        # Assert
        assert points(ctx, "system_event_time_waited_seconds") == [({"event": "latch free(Concurrency)"}, 3.0)]

    def test_session_event_labelled_by_session(self, make_executor):
        """Test the same event in two sessions stays two series"""
        # Arrange
        rows = [(1, "db file read(User I/O)", 2_000_000), (2, "db file read(User I/O)", 1_000_000)]
        ctx = ScrapeContext(make_executor([("V$SESSION_EVENT", rows)]))

        # Act
        events.scrape_session_event(ctx)

        # Assert
        assert points(ctx, "session_event_time_waited_seconds") == [
            ({"session_id": "1", "event": "db file read(User I/O)"}, 2.0),
            ({"session_id": "2", "event": "db file read(User I/O)"}, 1.0),
        ]


class TestLockTasks:
    """Locks and memory view SCN"""

    def test_lock_counts_default_to_zero(self, make_executor):
        """Test a missing lock state reports zero"""
        # Arrange
        ctx = ScrapeContext(make_executor([("V$LOCK_STATEMENT", [("LOCK_HOLD_COUNT", 4)])]))

        # Act
        locks.scrape_locks(ctx)

        # Assert
        assert points(ctx, "lock_hold_count") == [({}, 4.0)]
        assert points(ctx, "lock_wait_count") == [({}, 0.0)]

    def test_lock_wait_detail_with_row(self, make_executor):
        """Test a matching row yields one detail series with value 1"""
        # Arrange
        row = (12, 3456, 1, 3400, "IX_LOCK", "ORDERS", 1_500_000, "UPDATE ORDERS SET")
        ctx = ScrapeContext(make_executor([("LOCK_WAIT.WAIT_FOR_TRANS_ID, -1", [row])]))

        # Act
        locks.scrape_lock_wait_detail(ctx)

        # Assert
        assert points(ctx, "lock_wait_detail") == [(
            {
                "session_id": "12",
                "tx_id": "3456",
                "wait_for_tx_id": "3400",
                "table_name": "ORDERS",
                "total_time_seconds": "1.5",
                "query": "UPDATE ORDERS SET",
                "is_grant": "1",
                "lock_desc": "IX_LOCK",
            },
            1.0,
        )]

    def test_tx_of_memory_view_scn_falls_back(self, make_executor):
        """Test older servers without MINMEMSCNINTXS use the fallback query"""
        # Arrange
        executor = make_executor([
            ("MINMEMSCNINTXS", QueryError("Column not found: MINMEMSCNINTXS")),
            ("FROM V$STATEMENT ST, V$TRANSACTION TX", [(7, 99, 4_000_000, 1_000_000, "SELECT 1")]),
        ])
        ctx = ScrapeContext(executor)

        # Act
        locks.scrape_tx_of_memory_view_scn(ctx)

        # Assert
        labels, value = points(ctx, "tx_of_memory_view_scn")[0]
        assert value == 1.0
        assert labels["tx_id"] == "99"
        assert labels["total_time_seconds"] == "4.0"

    def test_tx_of_memory_view_scn_placeholder(self, make_executor):
        """Test no transaction yields the placeholder series"""
        # Arrange
        ctx = ScrapeContext(make_executor())

        # Act
        locks.scrape_tx_of_memory_view_scn(ctx)

        # Assert
        assert points(ctx, "tx_of_memory_view_scn") == [(locks.TX_OF_MEMORY_VIEW_SCN_PLACEHOLDER, 0.0)]


class TestQueryTasks:
    """Long-running, uncommitted and full-scan statements"""

    def test_long_run_detail_labels(self, make_executor):
        """Test microsecond timings become second labels"""
        # Arrange
        row = (5, 2, 800, 100, 2_000_000, 3_500_000, 5_600_000, "SELECT * FROM T")
        ctx = ScrapeContext(make_executor([("ORDER BY EXECUTE_TIME DESC", [row])]))

        # Act
        queries.scrape_long_run_query_detail(ctx)

        # Assert
        labels, value = points(ctx, "long_run_query_detail")[0]
        assert value == 1.0
        assert labels["session_id"] == "5"
        assert labels["prepare_time_seconds"] == "0.0001"
        assert labels["execute_time_seconds"] == "3.5"
        assert labels["query"] == "SELECT * FROM T"

    def test_utrans_placeholder(self, make_executor):
        """Test no uncommitted transaction yields the placeholder"""
        # Arrange
        ctx = ScrapeContext(make_executor())

        # Act
        queries.scrape_utrans_query_detail(ctx)

        # Assert
        assert points(ctx, "utrans_query_detail") == [(queries.UTRANS_PLACEHOLDER, 0.0)]

    def test_fullscan_excludes_exporter_sessions(self, make_executor):
        """Test the full-scan queries filter the exporter's own client info"""
        # Arrange
        executor = make_executor()
        ctx = ScrapeContext(executor)

        # Act
        queries.scrape_fullscan_query_count(ctx)
        queries.scrape_fullscan_query_detail(ctx)

        # Assert
        assert len(executor.executed) == 2
        assert all("S.CLIENT_INFO != 'altibase-exporter'" in sql for sql in executor.executed)


class TestReplicationTasks:
    """Replication counts, gap and peers"""

    def test_gap_labelled_by_replication(self, make_executor):
        """Test the gap series carries the replication name"""
        # Arrange
        ctx = ScrapeContext(make_executor([("V$REPGAP", [("R1_GAP", 120)])]))

        # Act
        replication.scrape_replication_gap(ctx)

        # Assert
        assert points(ctx, "replication_gap") == [({"replication": "R1_GAP"}, 120.0)]

    def test_receiver_peer_preferred_columns(self, make_executor):
        """Test a receiver row reports slave role and its replication mode"""
        # Arrange
        ctx = ScrapeContext(make_executor([
            ("PEER_PORT, 1 AS STATUS, REPL_MODE FROM V$REPRECEIVER", [("r2", "10.0.0.2", 7000, 1, "LAZY")]),
        ]))

        # Act
        replication.scrape_replication_peer_receiver(ctx)

        # Assert
        assert points(ctx, "replication_peer") == [(
            {
                "replication": "r2",
                "role": "receiver",
                "instance_role": "slave",
                "status": "active",
                "mode": "lazy",
                "peer": "10.0.0.2:7000",
            },
            1.0,
        )]

    @pytest.mark.parametrize(
        "status, expected_label, expected_value",
        [(1, "active", 1.0), (0, "stopped", 0.0), (2, "retry", 0.0), (9, "unknown", 0.0)],
    )
    def test_sender_status_mapping(self, make_executor, status, expected_label, expected_value):
        """Test sender status codes map to labels; only active has value 1"""
        # Arrange
        ctx = ScrapeContext(make_executor([
            ("PEER_PORT, STATUS, REPL_MODE FROM V$REPSENDER", [("r1", "10.0.0.1", 5678, status, "EAGER")]),
        ]))

        # Act
        replication.scrape_replication_peer_sender(ctx)

        # Assert
        labels, value = points(ctx, "replication_peer")[0]
        assert labels["status"] == expected_label
        assert labels["instance_role"] == "master"
        assert value == expected_value

    def test_peer_non_schema_error_propagates(self, make_executor):
        """Test only missing-column errors trigger the fallback"""
        # Arrange
        executor = make_executor([("V$REPSENDER", QueryError("Communication link failure"))])
        ctx = ScrapeContext(executor)

        # Act & Assert
        with pytest.raises(QueryError):
            replication.scrape_replication_peer_sender(ctx)
        assert len(executor.executed) == 1

    def test_peer_both_shapes_failing_emits_nothing(self, make_executor):
        """Test a failed fallback raises so the tolerant task contributes nothing"""
        # Arrange
        ctx = ScrapeContext(make_executor([
            ("V$REPSENDER", QueryError("Column not found: PEER_IP")),
        ]))

        # Act & Assert
        with pytest.raises(QueryError):
            replication.scrape_replication_peer_sender(ctx)
        assert ctx.keys() == []
