"""
Custom queries: operator-defined SQL exposed as ``altibase_custom_*`` gauges.
"""

from .collector import CustomQueryCollector, sanitize_label_name
from .loader import CUSTOM_METRIC_PREFIX, CustomQueryDef, QueriesFileError, load_queries

__all__ = [
    "CUSTOM_METRIC_PREFIX",
    "CustomQueryCollector",
    "CustomQueryDef",
    "QueriesFileError",
    "load_queries",
    "sanitize_label_name",
]
