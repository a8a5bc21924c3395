"""Normalization of backend event rows into the canonical EconomicEvent.

Backend documents arrive in several shapes: lowercase and PascalCase field
variants, separate date and clock fields, differing impact vocabularies.
All of that is resolved here so the timing engine and the batcher only ever
see one event shape.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from eventpulse.events.schemas import EconomicEvent, EventTime, Impact

logger = structlog.get_logger(__name__)

_CLOCK_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")

# Canonical field -> accepted source spellings, in lookup order.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "_id", "Id"),
    "name": ("name", "Name", "title", "event"),
    "currency": ("currency", "Currency"),
    "impact": ("impact", "strength", "Strength", "Impact"),
    "category": ("category", "Category"),
    "actual": ("actual", "Actual"),
    "forecast": ("forecast", "Forecast"),
    "previous": ("previous", "Previous"),
    "source": ("source", "sourceKey", "Source"),
}

DATE_FIELDS: tuple[str, ...] = ("datetimeUtc", "dateTime", "date", "Date")
CLOCK_FIELDS: tuple[str, ...] = ("time", "Time")


def _first(raw: Mapping[str, Any], names: Iterable[str]) -> tuple[str | None, Any]:
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return name, value
    return None, None


def _is_clock(value: Any) -> bool:
    return isinstance(value, str) and bool(_CLOCK_RE.match(value.strip()))


def normalize_time(raw: Mapping[str, Any]) -> Any:
    """Pick the time representation of a raw row.

    A date field paired with an ``"HH:MM"`` clock field becomes an
    ``EventTime``; otherwise the first populated date-like field wins.
    """
    _, date_value = _first(raw, DATE_FIELDS)
    _, clock_value = _first(raw, CLOCK_FIELDS)

    if date_value is not None and _is_clock(clock_value):
        return EventTime(date=date_value, time=clock_value.strip())
    if date_value is not None:
        return date_value
    return clock_value


def normalize_event(raw: Mapping[str, Any] | EconomicEvent, index: int = 0) -> EconomicEvent:
    """Map one backend row onto the canonical event.

    Args:
        raw: Backend document (any supported casing) or an already canonical event.
        index: Position in the response, used only for logging.

    Returns:
        The canonical event. Unknown fields are preserved as extras.
    """
    if isinstance(raw, EconomicEvent):
        return raw

    consumed: set[str] = set()
    values: dict[str, Any] = {}
    for field_name, aliases in FIELD_ALIASES.items():
        used, value = _first(raw, aliases)
        consumed.update(alias for alias in aliases if alias in raw)
        if used is not None:
            values[field_name] = value

    values["time"] = normalize_time(raw)
    consumed.update(name for name in DATE_FIELDS + CLOCK_FIELDS if name in raw)

    if "id" in values:
        values["id"] = str(values["id"])
    values["impact"] = Impact.parse(values.get("impact"))

    extras = {key: value for key, value in raw.items() if key not in consumed}
    if values["time"] is None:
        logger.debug("event_without_time", index=index, event_id=values.get("id"))

    return EconomicEvent(**extras, **values)


def normalize_events(rows: Iterable[Mapping[str, Any] | EconomicEvent]) -> list[EconomicEvent]:
    """Normalize a backend response, keeping its order."""
    return [normalize_event(row, index) for index, row in enumerate(rows)]
