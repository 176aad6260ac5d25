"""Tablespaces, segments and datafile I/O."""

from ..context import ScrapeContext
from ..registry import scrape_task
from ..rows import micros_to_seconds, text, to_int

# V$TABLESPACES.STATE: 1 = OFFLINE, 2 = ONLINE
ONLINE_STATE_SQL = "DECODE(STATE, 1, 0, 2, 1, 0)"


@scrape_task("tablespace_total_bytes")
def scrape_tablespace_total_bytes(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT NAME, TOTAL_PAGE_COUNT * PAGE_SIZE AS TOTAL "
        "FROM V$TABLESPACES T, V$MEM_TABLESPACES M WHERE T.ID = M.SPACE_ID"
    )
    for name, total in rows:
        if name is not None:
            ctx.add("tablespace_total_bytes", total, {"tbs_name": text(name)})


@scrape_task("tablespace_state")
def scrape_tablespace_state(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(f"SELECT NAME, {ONLINE_STATE_SQL} AS ONLINE FROM V$TABLESPACES")
    for name, online in rows:
        if name is None:
            continue
        online = to_int(online)
        state = "ONLINE" if online == 1 else "OFFLINE"
        ctx.add("tablespace_state", online, {"tbs_name": text(name), "state": state})


@scrape_task("tablespace_usage_ratio")
def scrape_tablespace_usage_ratio(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT T.NAME, (M.ALLOC_PAGE_COUNT - M.FREE_PAGE_COUNT) * T.PAGE_SIZE * 1.0 "
        "/ NULLIF(T.TOTAL_PAGE_COUNT * T.PAGE_SIZE, 0) AS USAGE "
        "FROM V$TABLESPACES T, V$MEM_TABLESPACES M WHERE T.ID = M.SPACE_ID"
    )
    for name, usage in rows:
        if name is not None:
            ctx.add("tablespace_usage_ratio", usage, {"tbs_name": text(name)})


@scrape_task("segment_usage_bytes", catch_schema_error=True)
def scrape_segment_usage(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT A.NAME, SUM(B.EXTENT_TOTAL_COUNT * A.EXTENT_PAGE_COUNT * A.PAGE_SIZE) AS USAGE "
        "FROM V$TABLESPACES A, V$SEGMENT B WHERE A.ID = B.SPACE_ID GROUP BY A.NAME"
    )
    for name, usage in rows:
        if name is not None:
            ctx.add("segment_usage_bytes", usage, {"name": text(name)})


@scrape_task("file_io_reads")
def scrape_file_io_reads(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT B.NAME, A.PHYRDS FROM V$FILESTAT A, V$DATAFILES B "
        "WHERE A.SPACEID = B.SPACEID AND A.FILEID = B.ID AND A.PHYRDS > 0 "
        "ORDER BY A.PHYRDS DESC LIMIT 10"
    )
    for name, reads in rows:
        if name is not None:
            ctx.add("file_io_reads", reads, {"file_name": text(name)})


@scrape_task("file_io_writes")
def scrape_file_io_writes(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT B.NAME, A.PHYWRTS FROM V$FILESTAT A, V$DATAFILES B "
        "WHERE A.SPACEID = B.SPACEID AND A.FILEID = B.ID "
        "ORDER BY A.PHYWRTS DESC LIMIT 10"
    )
    for name, writes in rows:
        if name is not None:
            ctx.add("file_io_writes", writes, {"file_name": text(name)})


@scrape_task("file_io_wait_seconds")
def scrape_file_io_wait_seconds(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT B.NAME, CASE WHEN A.SINGLEBLKRDS > 0 "
        "THEN A.SINGLEBLKRDTIM * 1.0 / A.SINGLEBLKRDS ELSE 0 END AS AVERAGE_WAIT "
        "FROM V$FILESTAT A, V$DATAFILES B "
        "WHERE A.SPACEID = B.SPACEID AND A.FILEID = B.ID AND A.SINGLEBLKRDS > 0"
    )
    for name, average_wait in rows:
        if name is not None:
            ctx.add("file_io_wait_seconds", micros_to_seconds(average_wait), {"file_name": text(name)})
