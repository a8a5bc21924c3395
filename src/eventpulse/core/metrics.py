"""Prometheus metrics for monitoring query batching."""

from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter

from prometheus_client import Counter, Histogram

batch_cycles_total = Counter(
    "eventpulse_batch_cycles_total",
    "Total number of executed batch cycles",
    ["outcome"],
)

batched_requests_total = Counter(
    "eventpulse_batched_requests_total",
    "Total number of requests absorbed by batch cycles",
)

abandoned_requests_total = Counter(
    "eventpulse_abandoned_requests_total",
    "Total number of requests rejected by abandon()",
)

upstream_query_latency_seconds = Histogram(
    "eventpulse_upstream_query_latency_seconds",
    "Latency of merged upstream range queries in seconds",
    ["source"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def track_batch_cycle(outcome: str, request_count: int) -> None:
    """Track a finished batch cycle.

    Args:
        outcome: One of 'success', 'failed', 'invalid_range', 'abandoned'.
        request_count: Number of requests the cycle absorbed.
    """
    batch_cycles_total.labels(outcome=outcome).inc()
    batched_requests_total.inc(request_count)


def track_abandoned(request_count: int) -> None:
    """Track requests rejected by an explicit abandon."""
    abandoned_requests_total.inc(request_count)


@contextmanager
def track_upstream_time(source: str) -> Iterator[None]:
    """Context manager to track upstream range query time.

    Example:
        with track_upstream_time("forex-factory"):
            events = await range_query(start, end, options)
    """
    start = perf_counter()
    try:
        yield
    finally:
        upstream_query_latency_seconds.labels(source=source).observe(perf_counter() - start)
