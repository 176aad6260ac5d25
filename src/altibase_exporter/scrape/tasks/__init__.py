"""Built-in scrape tasks; importing this package registers them."""

from . import events, instance, locks, memory, queries, replication, storage

__all__ = ["events", "instance", "locks", "memory", "queries", "replication", "storage"]
