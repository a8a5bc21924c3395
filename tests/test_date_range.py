"""Tests for closed date ranges."""

import pytest

from eventpulse.batching.date_range import DateRange
from eventpulse.core.exceptions import ErrorCode, InvalidRangeError

DAY_MS = 86_400_000


class TestDateRange:
    """Tests for DateRange."""

    def test_bounds_are_inclusive(self) -> None:
        """Test both ends belong to the range."""
        window = DateRange(100, 200)
        assert window.contains(100)
        assert window.contains(200)
        assert not window.contains(99)
        assert not window.contains(201)
        assert not window.contains(None)

    def test_single_instant_range(self) -> None:
        """Test a zero-length range is valid."""
        assert DateRange(5, 5).contains(5)
        assert DateRange(5, 5).duration_ms == 0

    def test_inverted_range_raises(self) -> None:
        """Test end before start is rejected."""
        with pytest.raises(InvalidRangeError) as exc_info:
            DateRange(200, 100)

        assert exc_info.value.error_code == ErrorCode.INVALID_RANGE

    def test_from_values(self) -> None:
        """Test bounds can be any resolvable time value."""
        window = DateRange.from_values("2025-12-01", "2025-12-02T00:00:00Z")
        assert window.duration_ms == DAY_MS

    @pytest.mark.parametrize(
        ("start", "end"),
        [(None, "2025-12-01"), ("2025-12-01", "garbage"), ("2025-12-02", "2025-12-01")],
    )
    def test_from_values_rejects_bad_bounds(self, start: object, end: object) -> None:
        """Test unresolvable or inverted bounds raise."""
        with pytest.raises(InvalidRangeError):
            DateRange.from_values(start, end)

    def test_overlaps(self) -> None:
        """Test overlap includes touching endpoints."""
        assert DateRange(0, 10).overlaps(DateRange(10, 20))
        assert not DateRange(0, 10).overlaps(DateRange(11, 20))

    def test_span(self) -> None:
        """Test the span covers every input range."""
        merged = DateRange.span([DateRange(50, 60), DateRange(0, 10), DateRange(30, 80)])
        assert merged == DateRange(0, 80)

    def test_span_of_nothing_raises(self) -> None:
        """Test an empty span is rejected."""
        with pytest.raises(InvalidRangeError):
            DateRange.span([])
