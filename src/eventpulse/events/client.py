"""HTTP client for the events backend.

Implements the range-query contract consumed by the query batcher:
``await client.get_events_by_date_range(start_ms, end_ms, options)``.
Timeouts and retries are owned here; the batcher never retries.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog

from eventpulse.core.config import get_settings
from eventpulse.core.exceptions import APITimeoutError, ExternalAPIError, InvalidResponseError
from eventpulse.core.retry import RetryConfig, retry_with_backoff
from eventpulse.events.adapters import normalize_events
from eventpulse.events.schemas import EconomicEvent, RangeQueryOptions

logger = structlog.get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

EVENTS_API_RETRY = RetryConfig(
    max_attempts=3,
    initial_delay=0.5,
    max_delay=10.0,
    jitter_max=1.0,
    retry_exceptions=(httpx.TransportError,),
)


def _iso(instant: int) -> str:
    return (_EPOCH + timedelta(milliseconds=instant)).isoformat().replace("+00:00", "Z")


class EventsApiClient:
    """Async client for ``GET {base_url}/events``."""

    source_name = "events_api"

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root; defaults to the configured events API URL.
            timeout: Request timeout in seconds.
            retry_config: Retry policy for transport errors.
            transport: Optional httpx transport (used by tests).
        """
        settings = get_settings()
        self.base_url = (base_url or settings.events_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.events_api_timeout_seconds
        self.retry_config = retry_config or EVENTS_API_RETRY
        self.http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )
        self.logger = logger.bind(service="events_api_client")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def __aenter__(self) -> "EventsApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @staticmethod
    def build_params(start: int, end: int, options: RangeQueryOptions) -> list[tuple[str, str]]:
        """Query parameters for a range query; repeated keys for list filters."""
        params: list[tuple[str, str]] = [("from", _iso(start)), ("to", _iso(end))]
        if options.source:
            params.append(("source", options.source))
        for impact in sorted(options.impacts or (), key=lambda i: i.value):
            params.append(("impacts", impact.value))
        for currency in sorted(options.currencies or ()):
            params.append(("currencies", currency))
        return params

    async def get_events_by_date_range(
        self,
        start: int,
        end: int,
        options: RangeQueryOptions | None = None,
    ) -> list[EconomicEvent]:
        """Fetch events with instants in ``[start, end]``.

        Args:
            start: Range start in epoch milliseconds.
            end: Range end in epoch milliseconds.
            options: Source and filter options; may be wider than needed.

        Returns:
            Canonical events in backend order.

        Raises:
            APITimeoutError: If the request timed out after all retries.
            ExternalAPIError: If the backend failed or was unreachable.
            InvalidResponseError: If the payload is not an event list.
        """
        options = options or RangeQueryOptions()
        params = self.build_params(start, end, options)

        try:
            payload = await retry_with_backoff(self.retry_config)(self._get_events)(params)
        except httpx.TimeoutException as e:
            self.logger.error("events_api_timeout", timeout=self.timeout)
            raise APITimeoutError(self.source_name, self.timeout) from e
        except httpx.HTTPStatusError as e:
            self.logger.error("events_api_http_error", status_code=e.response.status_code)
            raise ExternalAPIError(
                f"Events API returned {e.response.status_code}",
                self.source_name,
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.TransportError as e:
            self.logger.error("events_api_unreachable", error=str(e))
            raise ExternalAPIError(f"Events API unreachable: {e}", self.source_name) from e

        rows = payload.get("data") if isinstance(payload, dict) else payload
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise InvalidResponseError("Events API payload is not an event list", self.source_name)

        events = normalize_events(rows)
        self.logger.info(
            "Retrieved events by date range",
            start=params[0][1],
            end=params[1][1],
            source=options.source,
            count=len(events),
        )
        return events

    async def __call__(
        self,
        start: int,
        end: int,
        options: RangeQueryOptions,
    ) -> list[EconomicEvent]:
        return await self.get_events_by_date_range(start, end, options)

    async def _get_events(self, params: list[tuple[str, str]]) -> Any:
        response = await self.http_client.get("/events", params=params)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError("Events API returned invalid JSON", self.source_name) from e
