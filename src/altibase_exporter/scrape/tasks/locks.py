"""Locks and transactions holding back the memory GC view SCN."""

from ..context import ScrapeContext
from ..registry import scrape_task
from ..rows import int_label, query_with_fallback, seconds_label, text, to_float

LOCK_HOLD_PLACEHOLDER = {
    "session_id": "0",
    "tx_id": "0",
    "table_name": "",
    "total_time_seconds": "0",
    "query": "",
    "is_grant": "0",
    "lock_desc": "",
}

LOCK_WAIT_PLACEHOLDER = {
    "session_id": "0",
    "tx_id": "0",
    "wait_for_tx_id": "0",
    "table_name": "",
    "total_time_seconds": "0",
    "query": "",
    "is_grant": "0",
    "lock_desc": "",
}

TX_OF_MEMORY_VIEW_SCN_PLACEHOLDER = {
    "session_id": "0",
    "tx_id": "0",
    "total_time_seconds": "0",
    "execute_time_seconds": "0",
    "query": "none",
}


@scrape_task("lock_hold_count", "lock_wait_count")
def scrape_locks(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT DECODE(LOCK_STMT.STATE, 0, 'LOCK_HOLD_COUNT', 1, 'LOCK_WAIT_COUNT') AS LOCK_STATE, "
        "COUNT(*) AS CNT "
        "FROM SYSTEM_.SYS_TABLES_ TBL, V$LOCK_STATEMENT LOCK_STMT, V$STATEMENT STMT "
        "LEFT OUTER JOIN V$LOCK_WAIT LOCK_WAIT ON STMT.TX_ID = LOCK_WAIT.TRANS_ID "
        "WHERE TBL.TABLE_OID = LOCK_STMT.TABLE_OID AND STMT.SESSION_ID = LOCK_STMT.SESSION_ID "
        "AND STMT.TX_ID = LOCK_STMT.TX_ID AND LOCK_STMT.STATE IN (0,1) GROUP BY LOCK_STMT.STATE"
    )
    counts = {"LOCK_HOLD_COUNT": 0.0, "LOCK_WAIT_COUNT": 0.0}
    for state, count in rows:
        if state in counts:
            counts[state] = to_float(count)

    if ctx.enabled("lock_hold_count"):
        ctx.add("lock_hold_count", counts["LOCK_HOLD_COUNT"])
    if ctx.enabled("lock_wait_count"):
        ctx.add("lock_wait_count", counts["LOCK_WAIT_COUNT"])


@scrape_task("lock_hold_detail")
def scrape_lock_hold_detail(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one(
        "SELECT STMT.SESSION_ID, STMT.TX_ID, L.IS_GRANT, L.LOCK_DESC, TBL.TABLE_NAME, "
        "STMT.TOTAL_TIME, SUBSTR(STMT.QUERY, 1, 50) "
        "FROM SYSTEM_.SYS_TABLES_ TBL, V$STATEMENT STMT, V$LOCK L, V$LOCK_WAIT LOCK_WAIT "
        "WHERE L.TRANS_ID = LOCK_WAIT.WAIT_FOR_TRANS_ID AND L.TABLE_OID = TBL.TABLE_OID "
        "AND L.TRANS_ID = STMT.TX_ID ORDER BY STMT.TOTAL_TIME DESC LIMIT 1"
    )
    labels = None
    if row is not None:
        session_id, tx_id, is_grant, lock_desc, table_name, total_time, query = row
        labels = {
            "session_id": int_label(session_id),
            "tx_id": int_label(tx_id),
            "table_name": text(table_name),
            "total_time_seconds": seconds_label(total_time),
            "query": text(query),
            "is_grant": int_label(is_grant),
            "lock_desc": text(lock_desc),
        }
    ctx.add_detail("lock_hold_detail", labels, LOCK_HOLD_PLACEHOLDER)


@scrape_task("lock_wait_detail")
def scrape_lock_wait_detail(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one(
        "SELECT STMT.SESSION_ID, STMT.TX_ID, L.IS_GRANT, NVL(LOCK_WAIT.WAIT_FOR_TRANS_ID, -1), "
        "L.LOCK_DESC, TBL.TABLE_NAME, STMT.TOTAL_TIME, SUBSTR(STMT.QUERY, 1, 50) "
        "FROM SYSTEM_.SYS_TABLES_ TBL, V$STATEMENT STMT, V$LOCK L, V$LOCK_WAIT LOCK_WAIT "
        "WHERE L.TRANS_ID = LOCK_WAIT.TRANS_ID AND L.TABLE_OID = TBL.TABLE_OID "
        "AND L.TRANS_ID = STMT.TX_ID ORDER BY STMT.TOTAL_TIME DESC LIMIT 1"
    )
    labels = None
    if row is not None:
        session_id, tx_id, is_grant, wait_for_tx_id, lock_desc, table_name, total_time, query = row
        labels = {
            "session_id": int_label(session_id),
            "tx_id": int_label(tx_id),
            "wait_for_tx_id": int_label(wait_for_tx_id),
            "table_name": text(table_name),
            "total_time_seconds": seconds_label(total_time),
            "query": text(query),
            "is_grant": int_label(is_grant),
            "lock_desc": text(lock_desc),
        }
    ctx.add_detail("lock_wait_detail", labels, LOCK_WAIT_PLACEHOLDER)


@scrape_task("tx_of_memory_view_scn", catch_schema_error=True)
def scrape_tx_of_memory_view_scn(ctx: ScrapeContext) -> None:
    # MINMEMSCNINTXS and MIN_MEMORY_LOB_VIEW_SCN are missing on older servers
    preferred_sql = (
        "SELECT ST.SESSION_ID, TX.ID AS TX_ID, ST.TOTAL_TIME, ST.EXECUTE_TIME, SUBSTR(ST.QUERY, 1, 50) "
        "FROM V$STATEMENT ST, V$TRANSACTION TX "
        "WHERE ST.TX_ID = TX.ID AND TX.ID IN (SELECT T.ID FROM V$TRANSACTION T, "
        "(SELECT MINMEMSCNINTXS AS SCN_VAL FROM V$MEMGC LIMIT 1) GC "
        "WHERE T.MEMORY_VIEW_SCN = GC.SCN_VAL OR T.MIN_MEMORY_LOB_VIEW_SCN = GC.SCN_VAL) "
        "AND ST.SESSION_ID != SESSION_ID() AND TX.SESSION_ID <> SESSION_ID() "
        "ORDER BY ST.TOTAL_TIME DESC LIMIT 1"
    )
    fallback_sql = (
        "SELECT ST.SESSION_ID, TX.ID AS TX_ID, ST.TOTAL_TIME, ST.EXECUTE_TIME, SUBSTR(ST.QUERY, 1, 50) "
        "FROM V$STATEMENT ST, V$TRANSACTION TX "
        "WHERE ST.TX_ID = TX.ID AND ST.SESSION_ID != SESSION_ID() AND TX.SESSION_ID <> SESSION_ID() "
        "ORDER BY ST.TOTAL_TIME DESC LIMIT 1"
    )
    rows, _ = query_with_fallback(ctx.executor(), preferred_sql, fallback_sql)

    labels = None
    if rows:
        session_id, tx_id, total_time, execute_time, query = rows[0]
        labels = {
            "session_id": int_label(session_id),
            "tx_id": int_label(tx_id),
            "total_time_seconds": seconds_label(total_time),
            "execute_time_seconds": seconds_label(execute_time),
            "query": text(query),
        }
    ctx.add_detail("tx_of_memory_view_scn", labels, TX_OF_MEMORY_VIEW_SCN_PLACEHOLDER)
