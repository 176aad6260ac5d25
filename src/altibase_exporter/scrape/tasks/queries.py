"""
Problem statements: long-running, uncommitted and full-scan queries.

Each category has a count task and a detail task reporting the worst
statement. Full-scan reports skip the exporter's own sessions, which are
tagged with set_client_info at startup.
"""

from altibase_exporter.config import CLIENT_INFO

from ..context import ScrapeContext
from ..registry import scrape_task
from ..rows import int_label, query_scalar, seconds_label, text

LONG_RUN_FILTER = "EXECUTE_FLAG = 1 AND EXECUTE_TIME / 1000000 > 1"

UTRANS_FROM = (
    "FROM V$TRANSACTION TR, V$STATEMENT ST, V$SESSIONMGR, V$SESSION SS "
    "WHERE TR.ID = ST.TX_ID AND ST.SESSION_ID = SS.ID AND TR.FIRST_UPDATE_TIME != 0 "
    "AND (BASE_TIME - TR.FIRST_UPDATE_TIME) > 1"
)

FULLSCAN_FROM = (
    "FROM V$STATEMENT T, V$SESSION S WHERE S.ID = T.SESSION_ID "
    "AND (T.MEM_CURSOR_FULL_SCAN > 0 OR T.DISK_CURSOR_FULL_SCAN > 0) "
    "AND UPPER(T.QUERY) NOT LIKE '%INSERT%' "
    f"AND S.CLIENT_INFO != '{CLIENT_INFO}'"
)

LONG_RUN_PLACEHOLDER = {
    "session_id": "0",
    "stmt_id": "0",
    "tx_id": "0",
    "prepare_time_seconds": "0",
    "fetch_time_seconds": "0",
    "execute_time_seconds": "0",
    "total_time_seconds": "0",
    "query": "none",
}

UTRANS_PLACEHOLDER = {
    "session_id": "0",
    "client_ip": "",
    "client_pid": "0",
    "client_app_info": "",
    "utrans_time_seconds": "0",
    "execute_time_seconds": "0",
    "total_time_seconds": "0",
    "query": "none",
}

FULLSCAN_PLACEHOLDER = {
    "session_id": "0",
    "client_ip": "",
    "client_pid": "0",
    "client_app_info": "",
    "prepare_time_seconds": "0",
    "fetch_time_seconds": "0",
    "execute_time_seconds": "0",
    "total_time_seconds": "0",
    "query": "none",
}


@scrape_task("long_run_query_count")
def scrape_long_run_query_count(ctx: ScrapeContext) -> None:
    count = query_scalar(ctx.executor(), f"SELECT COUNT(*) FROM V$STATEMENT WHERE {LONG_RUN_FILTER}")
    ctx.add("long_run_query_count", count)


@scrape_task("long_run_query_detail")
def scrape_long_run_query_detail(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one(
        "SELECT SESSION_ID, ID, TX_ID, (PARSE_TIME + VALIDATE_TIME + OPTIMIZE_TIME) AS PREPARE_TIME, "
        "FETCH_TIME, EXECUTE_TIME, TOTAL_TIME, NVL(LTRIM(QUERY), 'NONE') "
        f"FROM V$STATEMENT WHERE {LONG_RUN_FILTER} ORDER BY EXECUTE_TIME DESC LIMIT 1"
    )
    labels = None
    if row is not None:
        session_id, stmt_id, tx_id, prepare_time, fetch_time, execute_time, total_time, query = row
        labels = {
            "session_id": int_label(session_id),
            "stmt_id": int_label(stmt_id),
            "tx_id": int_label(tx_id),
            "prepare_time_seconds": seconds_label(prepare_time),
            "fetch_time_seconds": seconds_label(fetch_time),
            "execute_time_seconds": seconds_label(execute_time),
            "total_time_seconds": seconds_label(total_time),
            "query": text(query),
        }
    ctx.add_detail("long_run_query_detail", labels, LONG_RUN_PLACEHOLDER)


@scrape_task("utrans_query_count")
def scrape_utrans_query_count(ctx: ScrapeContext) -> None:
    ctx.add("utrans_query_count", query_scalar(ctx.executor(), f"SELECT COUNT(*) {UTRANS_FROM}"))


@scrape_task("utrans_query_detail")
def scrape_utrans_query_detail(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one(
        "SELECT ST.SESSION_ID, SS.COMM_NAME, SS.CLIENT_PID, SS.CLIENT_APP_INFO, "
        "(BASE_TIME - TR.FIRST_UPDATE_TIME) AS UTRANS_TIME, ST.EXECUTE_TIME, ST.TOTAL_TIME, "
        f"NVL(LTRIM(ST.QUERY), 'NONE') {UTRANS_FROM} "
        "ORDER BY (BASE_TIME - TR.FIRST_UPDATE_TIME) DESC LIMIT 1"
    )
    labels = None
    if row is not None:
        session_id, client_ip, client_pid, client_app, utrans_time, execute_time, total_time, query = row
        labels = {
            "session_id": int_label(session_id),
            "client_ip": text(client_ip),
            "client_pid": int_label(client_pid),
            "client_app_info": text(client_app),
            # BASE_TIME is already in seconds
            "utrans_time_seconds": int_label(utrans_time),
            "execute_time_seconds": seconds_label(execute_time),
            "total_time_seconds": seconds_label(total_time),
            "query": text(query),
        }
    ctx.add_detail("utrans_query_detail", labels, UTRANS_PLACEHOLDER)


@scrape_task("fullscan_query_count")
def scrape_fullscan_query_count(ctx: ScrapeContext) -> None:
    ctx.add("fullscan_query_count", query_scalar(ctx.executor(), f"SELECT COUNT(*) {FULLSCAN_FROM}"))


@scrape_task("fullscan_query_detail", catch_schema_error=True)
def scrape_fullscan_query_detail(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one(
        "SELECT T.SESSION_ID, S.COMM_NAME, S.CLIENT_PID, S.CLIENT_APP_INFO, "
        "(T.PARSE_TIME + T.VALIDATE_TIME + T.OPTIMIZE_TIME) AS PREPARE_TIME, T.FETCH_TIME, "
        "T.EXECUTE_TIME, T.TOTAL_TIME, NVL(LTRIM(T.QUERY), 'NONE') "
        f"{FULLSCAN_FROM} ORDER BY T.EXECUTE_TIME DESC LIMIT 1"
    )
    labels = None
    if row is not None:
        (session_id, client_ip, client_pid, client_app,
         prepare_time, fetch_time, execute_time, total_time, query) = row
        labels = {
            "session_id": int_label(session_id),
            "client_ip": text(client_ip),
            "client_pid": int_label(client_pid),
            "client_app_info": text(client_app),
            "prepare_time_seconds": seconds_label(prepare_time),
            "fetch_time_seconds": seconds_label(fetch_time),
            "execute_time_seconds": seconds_label(execute_time),
            "total_time_seconds": seconds_label(total_time),
            "query": text(query),
        }
    ctx.add_detail("fullscan_query_detail", labels, FULLSCAN_PLACEHOLDER)
