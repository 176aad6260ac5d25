"""Instance-wide scalars and counters (V$INSTANCE, V$ARCHIVE, V$SYSSTAT...)."""

from ..context import ScrapeContext
from ..registry import scrape_task
from ..rows import query_scalar, text, to_float


@scrape_task("version")
def scrape_version(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one("SELECT PRODUCT_VERSION FROM V$VERSION")
    if row is not None:
        ctx.report_version(row[0])


@scrape_task("instance_working_time_seconds")
def scrape_instance_working_time(ctx: ScrapeContext) -> None:
    working_time = query_scalar(ctx.executor(), "SELECT WORKING_TIME_SEC FROM V$INSTANCE")
    ctx.add("instance_working_time_seconds", working_time)


@scrape_task("archive_mode")
def scrape_archive_mode(ctx: ScrapeContext) -> None:
    ctx.add("archive_mode", query_scalar(ctx.executor(), "SELECT ARCHIVE_MODE FROM V$ARCHIVE"))


@scrape_task("sessions")
def scrape_sessions(ctx: ScrapeContext) -> None:
    executor = ctx.executor()
    total = query_scalar(executor, "SELECT COUNT(*) FROM V$SESSION")
    active = query_scalar(executor, "SELECT COUNT(*) FROM V$SESSION WHERE ACTIVE_FLAG = 1")
    ctx.add("sessions", total, {"status": "total"})
    ctx.add("sessions", active, {"status": "active"})


@scrape_task("statements")
def scrape_statements(ctx: ScrapeContext) -> None:
    executor = ctx.executor()
    total = query_scalar(executor, "SELECT COUNT(*) FROM V$STATEMENT")
    active = query_scalar(executor, "SELECT COUNT(*) FROM V$STATEMENT WHERE EXECUTE_FLAG = 1")
    ctx.add("statements", total, {"status": "total"})
    ctx.add("statements", active, {"status": "active"})


@scrape_task("logfile_oldest", "logfile_current", "logfile_gap")
def scrape_logfile(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one(
        "SELECT OLDEST_ACTIVE_LOGFILE, CURRENT_LOGFILE, "
        "(CURRENT_LOGFILE - OLDEST_ACTIVE_LOGFILE) FROM V$ARCHIVE"
    )
    if row is None:
        return
    for key, value in zip(("logfile_oldest", "logfile_current", "logfile_gap"), row):
        if ctx.enabled(key):
            ctx.add(key, value)


@scrape_task("lf_prepare_wait_count")
def scrape_lf_prepare_wait(ctx: ScrapeContext) -> None:
    wait_count = query_scalar(ctx.executor(), "SELECT LF_PREPARE_WAIT_COUNT FROM V$LFG")
    ctx.add("lf_prepare_wait_count", wait_count)


@scrape_task("sysstat")
def scrape_sysstat(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query("SELECT NAME, VALUE FROM V$SYSSTAT WHERE SEQNUM < 88")
    for name, value in rows:
        if name is not None:
            ctx.add("sysstat", to_float(value), {"name": text(name).strip()})


@scrape_task("service_thread_count")
def scrape_service_thread(ctx: ScrapeContext) -> None:
    # kind separates TYPE/STATE/RUN_MODE values that share a name
    rows = ctx.executor().query(
        "SELECT 'type' AS KIND, TYPE AS NAME, COUNT(*) AS CNT FROM V$SERVICE_THREAD GROUP BY TYPE "
        "UNION ALL SELECT 'state' AS KIND, STATE AS NAME, COUNT(*) AS CNT "
        "FROM V$SERVICE_THREAD GROUP BY STATE "
        "UNION ALL SELECT 'run_mode' AS KIND, RUN_MODE AS NAME, COUNT(*) AS CNT "
        "FROM V$SERVICE_THREAD GROUP BY RUN_MODE"
    )
    for kind, name, count in rows:
        if name is not None:
            ctx.add("service_thread_count", count, {"kind": text(kind), "value": text(name).strip()})
