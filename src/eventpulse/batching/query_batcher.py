"""Debounced query batching for event range queries.

Independent callers (table, timeline, modal) ask for overlapping date ranges
with different filters at nearly the same moment. The batcher collects every
request raised within one debounce window, issues a single upstream query per
news source for the union of their ranges and filters, then hands each caller
exactly the slice a dedicated query would have returned.

Cycle lifecycle::

    Idle -> Accumulating (timer armed) -> Executing (fetch in flight) -> Idle

A new cycle may start accumulating while earlier cycles are still executing.
The pending list is swapped out before the fetch starts, so late requests
never join an in-flight cycle.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from eventpulse.batching.date_range import DateRange
from eventpulse.core.config import get_settings
from eventpulse.core.exceptions import BatchAbandonedError, InvalidRangeError
from eventpulse.core.logging import get_logger, set_correlation_id
from eventpulse.core.metrics import track_abandoned, track_batch_cycle, track_upstream_time
from eventpulse.events.schemas import EconomicEvent, EventQuery, Impact, RangeQueryOptions
from eventpulse.timing.instant import event_instant

logger = get_logger(__name__)

RangeQuery = Callable[
    [int, int, RangeQueryOptions],
    Awaitable[Sequence[EconomicEvent]] | Sequence[EconomicEvent],
]


def _event_field(event: object, name: str) -> object:
    if isinstance(event, Mapping):
        return event.get(name)
    return getattr(event, name, None)


@dataclass(frozen=True)
class QueryRequest:
    """One caller's range query.

    Empty ``impacts`` or ``currencies`` mean "no filter". ``range`` is None
    when the caller supplied unusable bounds; such requests fail when their
    cycle runs.
    """

    range: DateRange | None
    impacts: frozenset[Impact] = field(default_factory=frozenset)
    currencies: frozenset[str] = field(default_factory=frozenset)
    source: str | None = None

    @classmethod
    def create(
        cls,
        start: object,
        end: object,
        *,
        impacts: Iterable[object] = (),
        currencies: Iterable[str] = (),
        source: str | None = None,
    ) -> QueryRequest:
        """Build a request from raw bounds and filter values."""
        try:
            date_range: DateRange | None = DateRange.from_values(start, end)
        except InvalidRangeError:
            date_range = None
        return cls(
            range=date_range,
            impacts=frozenset(Impact.parse(impact) for impact in impacts),
            currencies=frozenset(currencies),
            source=source,
        )

    @classmethod
    def from_query(cls, query: EventQuery) -> QueryRequest:
        """Build a request from a validated caller-facing query."""
        return cls.create(
            query.date_from,
            query.date_to,
            impacts=query.impacts,
            currencies=query.currencies,
            source=query.source,
        )

    def matches(self, event: object) -> bool:
        """Apply this request's own range, impact and currency predicate to one event."""
        if self.range is None or not self.range.contains(event_instant(event)):
            return False
        if self.impacts and Impact.parse(_event_field(event, "impact")) not in self.impacts:
            return False
        if self.currencies and _event_field(event, "currency") not in self.currencies:
            return False
        return True

    def select(self, events: Iterable[EconomicEvent]) -> list[EconomicEvent]:
        """Filter a shared result down to this request's slice, keeping order."""
        return [event for event in events if self.matches(event)]


@dataclass(frozen=True)
class MergedQuery:
    """Union of every valid request in one cycle, or in one source of a cycle.

    ``impacts`` / ``currencies`` are None as soon as one request is unfiltered
    on that dimension, so the shared fetch is always a superset.
    """

    range: DateRange
    impacts: frozenset[Impact] | None
    currencies: frozenset[str] | None
    sources: tuple[str, ...]

    @property
    def source(self) -> str | None:
        """Single upstream source, or None when the cycle spans several."""
        return self.sources[0] if len(self.sources) == 1 else None

    def to_options(self) -> RangeQueryOptions:
        return RangeQueryOptions(
            source=self.source,
            impacts=self.impacts,
            currencies=self.currencies,
        )


def merge_requests(requests: Sequence[QueryRequest], default_source: str) -> MergedQuery:
    """Compute the merged query for one cycle.

    Raises:
        InvalidRangeError: If no request carries a valid range.
    """
    valid = [request for request in requests if request.range is not None]
    if not valid:
        raise InvalidRangeError(
            "No valid queries to batch",
            field="range",
            details={"request_count": len(requests)},
        )

    impacts: set[Impact] | None = set()
    currencies: set[str] | None = set()
    sources: list[str] = []
    for request in valid:
        if impacts is not None:
            impacts = impacts | request.impacts if request.impacts else None
        if currencies is not None:
            currencies = currencies | request.currencies if request.currencies else None
        source = request.source or default_source
        if source not in sources:
            sources.append(source)

    return MergedQuery(
        range=DateRange.span(request.range for request in valid if request.range is not None),
        impacts=frozenset(impacts) if impacts is not None else None,
        currencies=frozenset(currencies) if currencies is not None else None,
        sources=tuple(sources),
    )


@dataclass
class _PendingQuery:
    request: QueryRequest
    future: asyncio.Future[list[EconomicEvent]]


@dataclass
class _BatchCycle:
    cycle_id: int
    pending: list[_PendingQuery]
    abandoned: bool = False


@dataclass(frozen=True)
class BatcherStats:
    """Point-in-time view of the batcher."""

    pending_queries: int
    has_batch_timer: bool
    in_flight_cycles: int
    completed_cycles: int


def _reject(pending: Iterable[_PendingQuery], error: BaseException) -> int:
    rejected = 0
    for query in pending:
        if not query.future.done():
            query.future.set_exception(error)
            rejected += 1
    return rejected


class QueryBatcher:
    """Coalesces near-simultaneous range queries into one upstream call per source and window."""

    def __init__(
        self,
        range_query: RangeQuery,
        *,
        debounce_ms: int | None = None,
        default_source: str | None = None,
    ) -> None:
        """Initialize the batcher.

        Args:
            range_query: Upstream ``(start_ms, end_ms, options) -> events``
                collaborator. It must tolerate a wider range and filter set
                than any single caller asked for.
            debounce_ms: Accumulation window; defaults to the configured value.
            default_source: Source assumed for requests that name none.
        """
        settings = get_settings()
        self._range_query = range_query
        self.debounce_ms = debounce_ms if debounce_ms is not None else settings.batch_debounce_ms
        self.default_source = default_source or settings.default_news_source

        self._pending: list[_PendingQuery] = []
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: dict[int, _BatchCycle] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._cycle_counter = 0
        self._completed_cycles = 0
        self.logger = logger.bind(service="query_batcher")

    def enqueue(self, request: QueryRequest) -> asyncio.Future[list[EconomicEvent]]:
        """Queue a request for the current cycle.

        Returns:
            A future resolved with the request's slice, or rejected with the
            cycle's error.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[list[EconomicEvent]] = loop.create_future()
        self._pending.append(_PendingQuery(request, future))

        if self._timer is None:
            self._timer = loop.call_later(self.debounce_ms / 1000, self._fire)
        return future

    async def fetch(
        self,
        start: object,
        end: object,
        *,
        impacts: Iterable[object] = (),
        currencies: Iterable[str] = (),
        source: str | None = None,
    ) -> list[EconomicEvent]:
        """Enqueue a request built from raw values and wait for its slice."""
        request = QueryRequest.create(
            start,
            end,
            impacts=impacts,
            currencies=currencies,
            source=source,
        )
        return await self.enqueue(request)

    def abandon(self, reason: str | None = None) -> int:
        """Reject every waiting request and disarm the timer.

        In-flight upstream fetches are not cancelled; their cycles are marked
        abandoned and discard the result when it arrives.

        Returns:
            Number of requests rejected.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        pending, self._pending = self._pending, []
        error = BatchAbandonedError(reason or "Pending queries were abandoned")
        rejected = _reject(pending, error)
        for cycle in self._in_flight.values():
            cycle.abandoned = True
            rejected += _reject(cycle.pending, error)

        if rejected:
            track_abandoned(rejected)
        self.logger.info(
            "batch_abandoned",
            rejected=rejected,
            in_flight_cycles=len(self._in_flight),
        )
        return rejected

    def stats(self) -> BatcherStats:
        return BatcherStats(
            pending_queries=len(self._pending),
            has_batch_timer=self._timer is not None,
            in_flight_cycles=len(self._in_flight),
            completed_cycles=self._completed_cycles,
        )

    def _fire(self) -> None:
        self._timer = None
        pending, self._pending = self._pending, []
        if not pending:
            return

        self._cycle_counter += 1
        cycle = _BatchCycle(cycle_id=self._cycle_counter, pending=pending)
        self._in_flight[cycle.cycle_id] = cycle

        task = asyncio.get_running_loop().create_task(self._execute_batch(cycle))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute_batch(self, cycle: _BatchCycle) -> None:
        set_correlation_id(f"batch-cycle-{cycle.cycle_id}")
        log = self.logger.bind(cycle_id=cycle.cycle_id)
        try:
            await self._run_cycle(cycle, log)
        except asyncio.CancelledError:
            _reject(cycle.pending, BatchAbandonedError("Batch cycle was cancelled"))
            raise
        finally:
            self._in_flight.pop(cycle.cycle_id, None)
            self._completed_cycles += 1

    async def _run_cycle(self, cycle: _BatchCycle, log: structlog.stdlib.BoundLogger) -> None:
        requests = [query.request for query in cycle.pending]
        try:
            merged = merge_requests(requests, self.default_source)
        except InvalidRangeError as e:
            log.warning("batch_cycle_invalid_range", request_count=len(requests))
            _reject(cycle.pending, e)
            track_batch_cycle("invalid_range", len(requests))
            return

        valid: list[_PendingQuery] = []
        for query in cycle.pending:
            if query.request.range is None:
                _reject(
                    [query],
                    InvalidRangeError("Query has no valid date range", field="range"),
                )
            else:
                valid.append(query)

        log.info(
            "batch_cycle_started",
            request_count=len(cycle.pending),
            start=merged.range.start,
            end=merged.range.end,
            sources=list(merged.sources),
        )

        groups: dict[str, list[_PendingQuery]] = {}
        for query in valid:
            groups.setdefault(query.request.source or self.default_source, []).append(query)

        outcomes = await asyncio.gather(
            *(
                self._query_source([query.request for query in group], source)
                for source, group in groups.items()
            ),
            return_exceptions=True,
        )

        if cycle.abandoned:
            log.info("batch_cycle_discarded", reason="abandoned")
            track_batch_cycle("abandoned", len(cycle.pending))
            return

        try:
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    raise outcome
            slices = [
                (query, query.request.select(events))
                for group, events in zip(groups.values(), outcomes, strict=True)
                for query in group
            ]
        except Exception as e:
            log.warning("batch_cycle_failed", error=str(e), request_count=len(valid))
            _reject(valid, e)
            track_batch_cycle("failed", len(cycle.pending))
            return

        for query, events_slice in slices:
            if not query.future.done():
                query.future.set_result(events_slice)

        track_batch_cycle("success", len(cycle.pending))
        log.info(
            "batch_cycle_completed",
            fetched=sum(len(events) for events in outcomes),  # type: ignore[arg-type]
            delivered=[len(events_slice) for _, events_slice in slices],
        )

    async def _query_source(self, requests: list[QueryRequest], source: str) -> list[EconomicEvent]:
        """One upstream call covering every request of a single source."""
        merged = merge_requests(requests, source)
        with track_upstream_time(source):
            result = self._range_query(merged.range.start, merged.range.end, merged.to_options())
            if inspect.isawaitable(result):
                result = await result
        return list(result)
