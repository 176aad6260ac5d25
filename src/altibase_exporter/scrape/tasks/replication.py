"""
Replication: sender/receiver counts, gap and peer identity.

``replication_peer`` reads PEER_IP/PEER_PORT where the server has them and
falls back to REMOTE_IP/REMOTE_REP_PORT on servers that predate them. The
fallback shape has no replication mode column, so mode is reported as
``unknown``.
"""

from ..context import ScrapeContext
from ..registry import scrape_task
from ..rows import query_scalar, query_with_fallback, text, to_int

# V$REPSENDER.STATUS
PEER_STATUS = {0: "stopped", 1: "active", 2: "retry"}

INSTANCE_ROLE = {"sender": "master", "receiver": "slave"}


@scrape_task("replication_sender_count")
def scrape_replication_sender_count(ctx: ScrapeContext) -> None:
    count = query_scalar(ctx.executor(), "SELECT COUNT(*) FROM V$REPSENDER")
    ctx.add("replication_sender_count", count)


@scrape_task("replication_receiver_count")
def scrape_replication_receiver_count(ctx: ScrapeContext) -> None:
    count = query_scalar(ctx.executor(), "SELECT COUNT(*) FROM V$REPRECEIVER")
    ctx.add("replication_receiver_count", count)


@scrape_task("replication_gap")
def scrape_replication_gap(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query("SELECT REP_NAME || '_GAP' AS REP_NAME, REP_GAP FROM V$REPGAP")
    for name, gap in rows:
        if name is not None:
            ctx.add("replication_gap", gap, {"replication": text(name)})


def _add_peers(ctx: ScrapeContext, role: str, rows: list, used_fallback: bool) -> None:
    for row in rows:
        name, host, port, status = row[0], row[1], row[2], row[3]
        if name is None:
            continue

        status_code = to_int(status)
        mode = "unknown" if used_fallback or row[4] is None else text(row[4]).strip().lower()
        peer = f"{text(host).strip()}:{to_int(port)}" if host is not None else ""

        ctx.add(
            "replication_peer",
            1 if status_code == 1 else 0,
            {
                "replication": text(name).strip(),
                "role": role,
                "instance_role": INSTANCE_ROLE[role],
                "status": PEER_STATUS.get(status_code, "unknown"),
                "mode": mode,
                "peer": peer,
            },
        )


@scrape_task("replication_peer", catch_schema_error=True)
def scrape_replication_peer_receiver(ctx: ScrapeContext) -> None:
    # A listed receiver thread is running
    rows, used_fallback = query_with_fallback(
        ctx.executor(),
        "SELECT REP_NAME, PEER_IP, PEER_PORT, 1 AS STATUS, REPL_MODE FROM V$REPRECEIVER",
        "SELECT REP_NAME, REMOTE_IP, REMOTE_REP_PORT, 1 AS STATUS FROM V$REPRECEIVER",
    )
    _add_peers(ctx, "receiver", rows, used_fallback)


@scrape_task("replication_peer", catch_schema_error=True)
def scrape_replication_peer_sender(ctx: ScrapeContext) -> None:
    rows, used_fallback = query_with_fallback(
        ctx.executor(),
        "SELECT REP_NAME, PEER_IP, PEER_PORT, STATUS, REPL_MODE FROM V$REPSENDER",
        "SELECT REP_NAME, REMOTE_IP, REMOTE_REP_PORT, STATUS FROM V$REPSENDER",
    )
    _add_peers(ctx, "sender", rows, used_fallback)
