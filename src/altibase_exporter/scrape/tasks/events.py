"""Wait events (V$SYSTEM_EVENT, V$SESSION_EVENT), top 10 by time waited."""

from ..context import ScrapeContext
from ..registry import scrape_task
from ..rows import int_label, micros_to_seconds, text


@scrape_task("system_event_time_waited_seconds")
def scrape_system_event(ctx: ScrapeContext) -> None:
    rows = ctx.executor().query(
        "SELECT EVENT || '(' || WAIT_CLASS || ')' AS NAME, TIME_WAITED FROM V$SYSTEM_EVENT "
        "WHERE WAIT_CLASS != 'Idle' ORDER BY TIME_WAITED DESC LIMIT 10"
    )
    for name, time_waited in rows:
        if name is not None:
            ctx.add(
                "system_event_time_waited_seconds",
                micros_to_seconds(time_waited),
                {"event": text(name)},
            )


@scrape_task("session_event_time_waited_seconds")
def scrape_session_event(ctx: ScrapeContext) -> None:
    # The same event appears once per session; SID keeps the label sets distinct
    rows = ctx.executor().query(
        "SELECT SID, EVENT || '(' || WAIT_CLASS || ')' AS NAME, TIME_WAITED FROM V$SESSION_EVENT "
        "WHERE WAIT_CLASS != 'Idle' ORDER BY TIME_WAITED DESC LIMIT 10"
    )
    for session_id, name, time_waited in rows:
        if name is not None:
            ctx.add(
                "session_event_time_waited_seconds",
                micros_to_seconds(time_waited),
                {"session_id": int_label(session_id), "event": text(name)},
            )
