"""
Prometheus exporter for the Altibase hybrid in-memory/disk RDBMS.

Scrapes Altibase V$ dynamic performance views on every /metrics request
and exposes the results as gauges prefixed with ``altibase_``.
"""

__version__ = "1.0.0"

__all__ = ["catalog", "config", "custom", "db", "scrape"]
