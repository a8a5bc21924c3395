"""Timezone-aware day helpers for display grouping and past-event graying.

These helpers only decide how events are grouped by day and whether a row is
grayed out. NOW/NEXT classification stays in ``classification`` and never
looks at a timezone, so switching the display zone cannot change which
events count as current.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from eventpulse.core.config import get_settings
from eventpulse.core.exceptions import InvalidTimezoneError
from eventpulse.timing.classification import is_in_now_window
from eventpulse.timing.instant import resolve_instant

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@lru_cache(maxsize=64)
def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(
            f"Unknown timezone: {name}",
            field="timezone",
            value=name,
        ) from e


def resolve_timezone(timezone: str | ZoneInfo) -> ZoneInfo:
    """Return a ZoneInfo for an IANA name.

    Raises:
        InvalidTimezoneError: If the name is not a known zone.
    """
    if isinstance(timezone, ZoneInfo):
        return timezone
    return _zone(timezone)


def _local(instant: int, timezone: str | ZoneInfo) -> datetime:
    return (_EPOCH + timedelta(milliseconds=instant)).astimezone(resolve_timezone(timezone))


def day_serial(instant: int, timezone: str | ZoneInfo) -> int:
    """Calendar day of ``instant`` in ``timezone`` as a ``YYYYMMDD`` integer."""
    local = _local(instant, timezone)
    return local.year * 10000 + local.month * 100 + local.day


def is_same_day(first: object, second: object, timezone: str | ZoneInfo) -> bool:
    """Whether two time values fall on the same display day."""
    first_ms = resolve_instant(first)
    second_ms = resolve_instant(second)
    if first_ms is None or second_ms is None:
        return False
    return day_serial(first_ms, timezone) == day_serial(second_ms, timezone)


def is_today(value: object, now_instant: int, timezone: str | ZoneInfo) -> bool:
    """Whether a time value falls on the same display day as ``now_instant``."""
    return is_same_day(value, now_instant, timezone)


def start_of_day(instant: int, timezone: str | ZoneInfo) -> int:
    """Instant of local midnight that starts the display day containing ``instant``."""
    local = _local(instant, timezone)
    midnight = datetime(local.year, local.month, local.day, tzinfo=local.tzinfo)
    return (midnight.astimezone(UTC) - _EPOCH) // timedelta(milliseconds=1)


def is_past_for_display(
    event_instant: int | None,
    now_instant: int | None,
    timezone: str | ZoneInfo,
    now_window_ms: int | None = None,
) -> bool:
    """Whether an event row should be grayed out as already past.

    An event is not past when either instant is missing, when it falls on a
    later display day, or while it is still inside its NOW window.
    """
    if event_instant is None or now_instant is None:
        return False
    if now_window_ms is None:
        now_window_ms = get_settings().now_window_ms

    if day_serial(event_instant, timezone) > day_serial(now_instant, timezone):
        return False
    if is_in_now_window(event_instant, now_instant, now_window_ms):
        return False
    return event_instant < now_instant
