"""Memory usage: V$MEMSTAT, buffer pool, GC and table allocation."""

from ..context import ScrapeContext
from ..registry import scrape_task
from ..rows import query_scalar, text

DISK_PAGE_SIZE = 8192


@scrape_task("memstat_max_total_bytes", "memstat_alloc_bytes")
def scrape_memstat_totals(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one("SELECT SUM(MAX_TOTAL_SIZE), SUM(ALLOC_SIZE) FROM V$MEMSTAT")
    if row is None:
        return
    if ctx.enabled("memstat_max_total_bytes"):
        ctx.add("memstat_max_total_bytes", row[0])
    if ctx.enabled("memstat_alloc_bytes"):
        ctx.add("memstat_alloc_bytes", row[1])


@scrape_task("memstat_usage_ratio")
def scrape_memstat_usage_ratio(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT A.NAME, A.MAX_TOTAL_SIZE / B.TOTAL_USAGE AS USAGE_PERCENTAGE FROM V$MEMSTAT A, "
        "(SELECT SUM(MAX_TOTAL_SIZE) AS TOTAL_USAGE FROM V$MEMSTAT) B "
        "ORDER BY USAGE_PERCENTAGE DESC LIMIT 10"
    )
    for name, ratio in rows:
        if name is not None:
            ctx.add("memstat_usage_ratio", ratio, {"name": text(name).strip()})


@scrape_task("memstat_bytes")
def scrape_memstat_by_name(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT NAME, MAX_TOTAL_SIZE, ALLOC_SIZE FROM V$MEMSTAT ORDER BY MAX_TOTAL_SIZE DESC LIMIT 10"
    )
    for name, max_total, alloc in rows:
        if name is None:
            continue
        name = text(name).strip()
        ctx.add("memstat_bytes", max_total, {"name": name, "type": "max_total_size"})
        ctx.add("memstat_bytes", alloc, {"name": name, "type": "alloc_size"})


@scrape_task("buffer_pool_hit_ratio", "buffer_pool_victim_fails")
def scrape_buffer_pool(ctx: ScrapeContext) -> None:
    row = ctx.executor().query_one("SELECT HIT_RATIO, VICTIM_FAILS FROM V$BUFFPOOL_STAT")
    if row is None:
        return
    if ctx.enabled("buffer_pool_hit_ratio"):
        ctx.add("buffer_pool_hit_ratio", row[0])
    if ctx.enabled("buffer_pool_victim_fails"):
        ctx.add("buffer_pool_victim_fails", row[1])


@scrape_task("gc_gap")
def scrape_gc_gap(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query("SELECT GC_NAME, ADD_OID_CNT - GC_OID_CNT AS GC_GAP FROM V$MEMGC")
    for name, gap in rows:
        if name is not None:
            ctx.add("gc_gap", gap, {"gc_name": text(name).strip()})


@scrape_task("memory_table_usage_bytes")
def scrape_memory_table_usage(ctx: ScrapeContext) -> None:
    usage = query_scalar(
        ctx.executor(), "SELECT SUM(FIXED_ALLOC_MEM) + SUM(VAR_ALLOC_MEM) FROM V$MEMTBL_INFO"
    )
    ctx.add("memory_table_usage_bytes", usage)


@scrape_task("disk_table_usage_bytes")
def scrape_disk_table_usage(ctx: ScrapeContext) -> None:
    usage = query_scalar(
        ctx.executor(), f"SELECT SUM(DISK_TOTAL_PAGE_CNT * {DISK_PAGE_SIZE}) FROM V$DISKTBL_INFO"
    )
    ctx.add("disk_table_usage_bytes", usage)


@scrape_task("memory_table_usage_bytes_per_table")
def scrape_memory_table_usage_per_table(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT TABLE_NAME, (FIXED_ALLOC_MEM + VAR_ALLOC_MEM) AS ALLOC "
        "FROM SYSTEM_.SYS_TABLES_ A, V$MEMTBL_INFO B "
        "WHERE A.USER_ID != 1 AND A.TABLE_OID = B.TABLE_OID ORDER BY ALLOC DESC LIMIT 5"
    )
    for name, alloc in rows:
        if name is not None:
            ctx.add("memory_table_usage_bytes_per_table", alloc, {"table_name": text(name)})


@scrape_task("disk_table_usage_bytes_per_table")
def scrape_disk_table_usage_per_table(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT C.TABLE_NAME, B.DISK_TOTAL_PAGE_CNT * A.PAGE_SIZE AS ALLOC "
        "FROM V$TABLESPACES A, V$DISKTBL_INFO B, SYSTEM_.SYS_TABLES_ C "
        "WHERE A.ID = B.TABLESPACE_ID AND B.TABLE_OID = C.TABLE_OID ORDER BY ALLOC DESC LIMIT 5"
    )
    for name, alloc in rows:
        if name is not None:
            ctx.add("disk_table_usage_bytes_per_table", alloc, {"table_name": text(name)})


@scrape_task("queue_usage_bytes")
def scrape_queue_usage(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT B.TABLE_NAME, C.FIXED_ALLOC_MEM + C.VAR_ALLOC_MEM AS ALLOC "
        "FROM SYSTEM_.SYS_USERS_ A, SYSTEM_.SYS_TABLES_ B, V$MEMTBL_INFO C, V$TABLESPACES D "
        "WHERE A.USER_NAME <> 'SYSTEM_' AND B.TABLE_TYPE = 'Q' AND A.USER_ID = B.USER_ID "
        "AND B.TABLE_OID = C.TABLE_OID AND B.TBS_ID = D.ID"
    )
    for name, alloc in rows:
        if name is not None:
            ctx.add("queue_usage_bytes", alloc, {"table_name": text(name)})
