"""
Registry of built-in scrape tasks.

Tasks are plain functions taking a ScrapeContext, registered at import time
with the ``scrape_task`` decorator:

    @scrape_task("sessions")
    def scrape_sessions(ctx: ScrapeContext) -> None:
        ...

The engine runs them in lexicographic order of function name, so output
ordering is reproducible across runs.
"""

from collections.abc import Callable
from dataclasses import dataclass

from .context import ScrapeContext

TaskFn = Callable[[ScrapeContext], None]

_REGISTRY: dict[str, "ScrapeTask"] = {}


@dataclass(frozen=True)
class ScrapeTask:
    name: str
    keys: tuple[str, ...]
    fn: TaskFn
    skip_when_all_disabled: bool = True
    catch_schema_error: bool = False

    def __call__(self, ctx: ScrapeContext) -> None:
        self.fn(ctx)


def scrape_task(
    *keys: str,
    skip_when_all_disabled: bool = True,
    catch_schema_error: bool = False,
) -> Callable[[TaskFn], TaskFn]:
    """
    Register a function as a built-in scrape task.

    Args:
        *keys: Metric keys the task emits (used for ALTIBASE_DISABLED_METRICS)
        skip_when_all_disabled: Skip the task when every key is disabled
        catch_schema_error: A SQL error only skips this task instead of
            aborting the scrape
    """
    if not keys:
        raise ValueError("scrape_task requires at least one metric key")

    def decorator(fn: TaskFn) -> TaskFn:
        existing = _REGISTRY.get(fn.__name__)
        if existing is not None and existing.fn.__module__ != fn.__module__:
            raise ValueError(
                f"Duplicate scrape task name: {fn.__name__} "
                f"({existing.fn.__module__} and {fn.__module__})"
            )
        _REGISTRY[fn.__name__] = ScrapeTask(
            name=fn.__name__,
            keys=tuple(keys),
            fn=fn,
            skip_when_all_disabled=skip_when_all_disabled,
            catch_schema_error=catch_schema_error,
        )
        return fn

    return decorator


def builtin_tasks() -> list[ScrapeTask]:
    """All registered built-in tasks, sorted by name."""
    # Registration happens as a side effect of importing the task modules
    from . import tasks  # noqa: F401

    return sorted(_REGISTRY.values(), key=lambda task: task.name)
