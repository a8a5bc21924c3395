"""Query batching and deduplication for event range queries."""

from eventpulse.batching.date_range import DateRange
from eventpulse.batching.query_batcher import (
    BatcherStats,
    MergedQuery,
    QueryBatcher,
    QueryRequest,
    RangeQuery,
    merge_requests,
)

__all__ = [
    "BatcherStats",
    "DateRange",
    "MergedQuery",
    "QueryBatcher",
    "QueryRequest",
    "RangeQuery",
    "merge_requests",
]
