"""Closed date ranges over epoch-millisecond instants."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from eventpulse.core.exceptions import InvalidRangeError
from eventpulse.timing.instant import resolve_instant


@dataclass(frozen=True)
class DateRange:
    """Closed interval ``[start, end]`` of instants, both ends inclusive."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidRangeError(
                "Range end precedes its start",
                field="range",
                value=f"{self.start}..{self.end}",
                constraint="start <= end",
            )

    @classmethod
    def from_values(cls, start: object, end: object) -> DateRange:
        """Build a range from any two time values the instant resolver accepts.

        Raises:
            InvalidRangeError: If either bound is unresolvable or the range is inverted.
        """
        start_ms = resolve_instant(start)
        end_ms = resolve_instant(end)
        if start_ms is None or end_ms is None:
            raise InvalidRangeError(
                "Range bounds must be resolvable time values",
                field="range",
                value=f"{start!r}..{end!r}",
            )
        return cls(start_ms, end_ms)

    def contains(self, instant: int | None) -> bool:
        """Interval membership; unresolved instants are never inside."""
        return instant is not None and self.start <= instant <= self.end

    def overlaps(self, other: DateRange) -> bool:
        return self.start <= other.end and other.start <= self.end

    @classmethod
    def span(cls, ranges: Iterable[DateRange]) -> DateRange:
        """Smallest range covering every input range (min of starts, max of ends).

        Raises:
            InvalidRangeError: If no ranges are given.
        """
        materialized = list(ranges)
        if not materialized:
            raise InvalidRangeError("No valid ranges to merge", field="range")
        return cls(
            min(r.start for r in materialized),
            max(r.end for r in materialized),
        )

    @property
    def duration_ms(self) -> int:
        return self.end - self.start
