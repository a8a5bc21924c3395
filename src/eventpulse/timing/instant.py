"""Instant resolution for event time values.

Every accepted time representation collapses to a single integer: milliseconds
since the UTC epoch. Resolution is pure and never converts between display
timezones; the same real-world moment always yields the same integer.
Unusable input resolves to ``None`` so callers can exclude the event instead
of treating it as epoch zero.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime, timedelta
from datetime import time as dt_time
from time import time_ns

from eventpulse.events.schemas import EconomicEvent, EventTime

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)
# One day of margin on both ends keeps local-zone conversions in range.
_MIN_MS = (datetime(1, 1, 2, tzinfo=UTC) - _EPOCH) // _ONE_MS
_MAX_MS = (datetime(9999, 12, 30, tzinfo=UTC) - _EPOCH) // _ONE_MS
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

# Looked up in order on mappings and plain objects.
TIME_FIELDS: tuple[str, ...] = ("time", "datetimeUtc", "dateTime", "date", "Date")


def now_epoch_ms() -> int:
    """Sample the wall clock as epoch milliseconds.

    "Now" has no timezone; display zones only matter when formatting.
    """
    return time_ns() // 1_000_000


def resolve_instant(value: object) -> int | None:
    """Resolve a time value into epoch milliseconds.

    Args:
        value: A ``datetime`` (naive values are read as UTC), a ``date``
            (midnight UTC), an ISO-8601 string, an epoch-millisecond number,
            an ``EventTime`` pair, a ``{"date", "time"}`` mapping or a
            Firestore-style ``{"seconds", "nanoseconds"}`` mapping.

    Returns:
        Epoch milliseconds, or None when the value is absent or unparseable.
        Instants outside the range ``datetime`` can represent are unusable too.
    """
    try:
        instant = _resolve(value)
    except (OverflowError, ValueError):
        return None
    if instant is None or not _MIN_MS <= instant <= _MAX_MS:
        return None
    return instant


def _resolve(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, EventTime):
        return _resolve_pair(value.date, value.time)
    if isinstance(value, datetime):
        return _datetime_to_ms(value)
    if isinstance(value, date):
        return _datetime_to_ms(datetime(value.year, value.month, value.day, tzinfo=UTC))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return math.floor(value) if math.isfinite(value) else None
    if isinstance(value, str):
        parsed = _parse_iso(value)
        return None if parsed is None else _datetime_to_ms(parsed)
    if isinstance(value, Mapping):
        return _resolve_mapping(value)
    return None


def event_time_value(event: object) -> object:
    """Return the raw, unresolved time value of an event."""
    if isinstance(event, EconomicEvent):
        return event.time
    for name in TIME_FIELDS:
        value = event.get(name) if isinstance(event, Mapping) else getattr(event, name, None)
        if value is not None and value != "":
            return value
    return None


def event_instant(event: object) -> int | None:
    """Resolve the instant of a canonical event (model, mapping or object)."""
    if event is None:
        return None
    return resolve_instant(event_time_value(event))


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=UTC)
    # timedelta floor division keeps this exact for any microsecond value
    return (value - _EPOCH) // _ONE_MS


def _parse_iso(text: str) -> datetime | None:
    text = text.strip()
    if not text or _CLOCK_RE.match(text):
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _parse_clock(value: object) -> dt_time | None:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.time().replace(tzinfo=UTC)
    if isinstance(value, dt_time):
        return value
    if not isinstance(value, str):
        return None

    match = _CLOCK_RE.match(value.strip())
    if match is None:
        return None
    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return dt_time(hours, minutes, seconds)


def _resolve_pair(date_value: object, clock_value: object) -> int | None:
    if clock_value is None or clock_value == "":
        return resolve_instant(date_value)

    base_ms = resolve_instant(date_value)
    clock = _parse_clock(clock_value)
    if base_ms is None or clock is None:
        return None

    day = (_EPOCH + base_ms * _ONE_MS).date()
    return _datetime_to_ms(datetime.combine(day, clock))


def _resolve_mapping(value: Mapping[str, object]) -> int | None:
    if "seconds" in value or "_seconds" in value:
        seconds = value.get("_seconds", value.get("seconds"))
        nanos = value.get("_nanoseconds", value.get("nanoseconds", 0)) or 0
        if not _is_number(seconds) or not _is_number(nanos):
            return None
        total = seconds * 1000 + nanos / 1_000_000  # type: ignore[operator]
        return math.floor(total) if math.isfinite(total) else None
    if "date" in value:
        return _resolve_pair(value.get("date"), value.get("time"))
    return None


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
