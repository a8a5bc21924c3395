"""Events module for the economic calendar.

This module provides:
- The canonical EconomicEvent model and impact vocabulary
- Normalization of heterogeneous backend rows
- The HTTP range-query client used behind the query batcher
"""

from eventpulse.events.adapters import normalize_event, normalize_events
from eventpulse.events.client import EventsApiClient
from eventpulse.events.schemas import (
    EconomicEvent,
    EventQuery,
    EventTime,
    Impact,
    RangeQueryOptions,
)

__all__ = [
    # Schemas
    "EconomicEvent",
    "EventQuery",
    "EventTime",
    "Impact",
    "RangeQueryOptions",
    # Adapters
    "normalize_event",
    "normalize_events",
    # Client
    "EventsApiClient",
]
