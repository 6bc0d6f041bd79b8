"""Computed artifacts and the per-run cache that memoizes them."""

from .cache import CacheEntry, CacheStats, ComputedArtifact, ComputedCache
from .network_records import NetworkRecords, parse_url, records_from_devtools_log
from .processed_trace import (
    LayoutShift,
    PaintSample,
    ProcessedTrace,
    ProcessedTraceArtifact,
    TaskSpan,
    process_trace,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ComputedArtifact",
    "ComputedCache",
    "NetworkRecords",
    "parse_url",
    "records_from_devtools_log",
    "LayoutShift",
    "PaintSample",
    "ProcessedTrace",
    "ProcessedTraceArtifact",
    "TaskSpan",
    "process_trace",
]
