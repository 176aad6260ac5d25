"""
Built-in scraping: per-scrape context, task registry and the engine.
"""

from .context import DataPoint, ScrapeContext
from .engine import ScrapeEngine
from .registry import ScrapeTask, builtin_tasks, scrape_task

__all__ = [
    "DataPoint",
    "ScrapeContext",
    "ScrapeEngine",
    "ScrapeTask",
    "builtin_tasks",
    "scrape_task",
]
