"""Event schemas shared by the timing engine, the batcher and the adapters."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from datetime import time as dt_time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Whole words only, so labels like "yellow" or "Highlights" stay unknown.
_HIGH_RE = re.compile(r"\b(?:strong|high)\b|!!!")
_MEDIUM_RE = re.compile(r"\b(?:moderate|medium)\b|!!")
_LOW_RE = re.compile(r"\b(?:weak|low)\b|!")
_NON_ECONOMIC_RE = re.compile(r"\bnon[-_ ]?eco|\bnone\b")


class Impact(str, Enum):
    """Normalized market impact of an economic release."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NON_ECONOMIC = "non_economic"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> Impact:
        """Normalize a raw strength label such as ``"Strong Data"`` or ``"!!"``.

        Rules are checked from strongest to weakest so that ``"!!!"`` never
        matches the single-bang low rule first.
        """
        if isinstance(value, Impact):
            return value
        if not value:
            return cls.UNKNOWN

        text = str(value).strip().lower()
        if text in {member.value for member in cls}:
            return cls(text)
        if _HIGH_RE.search(text):
            return cls.HIGH
        if _MEDIUM_RE.search(text):
            return cls.MEDIUM
        if _LOW_RE.search(text):
            return cls.LOW
        if _NON_ECONOMIC_RE.search(text):
            return cls.NON_ECONOMIC
        return cls.UNKNOWN


@dataclass(frozen=True)
class EventTime:
    """Paired date and clock fields.

    ``time`` overrides the clock portion of ``date`` when present. ``date``
    may be any representation the instant resolver accepts; ``time`` is a
    ``datetime.time`` or an ``"HH:MM"`` / ``"HH:MM:SS"`` string in UTC.
    """

    date: datetime | date | str | int | float | None
    time: dt_time | str | None = None


class EconomicEvent(BaseModel):
    """Canonical economic event consumed by the core.

    ``time`` holds the raw time representation unchanged; it is resolved to
    an instant on demand and never cached. Attributes the core does not know
    about are kept as extras and passed through untouched.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    id: str | None = None
    name: str | None = None
    currency: str | None = None
    impact: Impact = Impact.UNKNOWN
    category: str | None = None
    time: Any = None
    actual: Any = None
    forecast: Any = None
    previous: Any = None
    source: str | None = None

    @field_validator("impact", mode="before")
    @classmethod
    def normalize_impact(cls, v: object) -> Impact:
        """Accept any raw strength label."""
        return Impact.parse(v)


class RangeQueryOptions(BaseModel):
    """Filter options handed to the upstream range query.

    ``None`` means "no filter" for every field; ``source=None`` asks the
    upstream for every source.
    """

    model_config = ConfigDict(frozen=True)

    source: str | None = None
    impacts: frozenset[Impact] | None = None
    currencies: frozenset[str] | None = None


class EventQuery(BaseModel):
    """Schema for a caller-facing range query."""

    date_from: datetime
    date_to: datetime
    source: str | None = Field(None, max_length=100)
    impacts: list[Impact] = Field(default_factory=list)
    currencies: list[str] = Field(default_factory=list)

    @field_validator("impacts", mode="before")
    @classmethod
    def normalize_impacts(cls, v: object) -> list[Impact]:
        """Normalize raw impact labels."""
        if v is None:
            return []
        return [Impact.parse(item) for item in v]  # type: ignore[attr-defined]
