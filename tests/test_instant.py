"""Tests for instant resolution."""

from datetime import UTC, date, datetime, time, timedelta, timezone

import pytest

from eventpulse.events.schemas import EconomicEvent, EventTime
from eventpulse.timing.instant import (
    event_instant,
    event_time_value,
    now_epoch_ms,
    resolve_instant,
)

CPI_RELEASE_MS = 1_764_600_300_000  # 2025-12-01T14:45:00Z


class TestResolveInstant:
    """Tests for resolve_instant."""

    def test_equivalent_representations_resolve_identically(self) -> None:
        """Test datetime, ISO string and epoch forms of one moment agree."""
        moment = datetime(2025, 12, 1, 14, 45, tzinfo=UTC)
        new_york = moment.astimezone(timezone(timedelta(hours=-5)))

        values = [
            moment,
            new_york,
            "2025-12-01T14:45:00Z",
            "2025-12-01T14:45:00+00:00",
            "2025-12-01T09:45:00-05:00",
            CPI_RELEASE_MS,
            float(CPI_RELEASE_MS),
            {"_seconds": 1_764_600_300, "_nanoseconds": 0},
            EventTime(date="2025-12-01", time="14:45"),
        ]

        assert {resolve_instant(value) for value in values} == {CPI_RELEASE_MS}

    def test_naive_values_are_read_as_utc(self) -> None:
        """Test naive datetimes and offset-less strings are treated as UTC."""
        assert resolve_instant(datetime(2025, 12, 1, 14, 45)) == CPI_RELEASE_MS
        assert resolve_instant("2025-12-01T14:45:00") == CPI_RELEASE_MS

    def test_date_resolves_to_utc_midnight(self) -> None:
        """Test plain dates resolve to midnight UTC."""
        midnight = CPI_RELEASE_MS - (14 * 60 + 45) * 60_000
        assert resolve_instant(date(2025, 12, 1)) == midnight
        assert resolve_instant("2025-12-01") == midnight

    def test_millisecond_precision_is_exact(self) -> None:
        """Test sub-second parts survive resolution without float drift."""
        value = datetime(2025, 12, 1, 14, 45, 0, 123_999, tzinfo=UTC)
        assert resolve_instant(value) == CPI_RELEASE_MS + 123

    def test_pre_epoch_instants_are_negative(self) -> None:
        """Test instants before 1970 resolve to negative integers."""
        assert resolve_instant("1969-12-31T23:59:59Z") == -1000

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "   ",
            "not a date",
            "09:45",
            "09:45:30",
            True,
            float("nan"),
            float("inf"),
            {"seconds": "soon"},
            {"unrelated": 1},
            10**18,
            -(10**18),
            EventTime(date=10**18, time="10:00"),
            {"date": 10**18, "time": "10:00"},
            {"seconds": 10**20},
            object(),
        ],
    )
    def test_unusable_values_resolve_to_none(self, value: object) -> None:
        """Test absent or unparseable values resolve to None, never epoch zero."""
        assert resolve_instant(value) is None

    def test_zero_is_a_valid_instant(self) -> None:
        """Test epoch zero itself is not confused with a missing value."""
        assert resolve_instant(0) == 0

    def test_float_milliseconds_are_floored(self) -> None:
        """Test fractional milliseconds floor to an integer."""
        assert resolve_instant(1500.9) == 1500
        assert isinstance(resolve_instant(1500.9), int)


class TestEventTimePairs:
    """Tests for paired date and clock values."""

    def test_time_overrides_clock_of_date(self) -> None:
        """Test the time field replaces the clock portion of the date."""
        pair = EventTime(date="2025-12-01T03:00:00Z", time="14:45")
        assert resolve_instant(pair) == CPI_RELEASE_MS

    def test_time_object_and_seconds(self) -> None:
        """Test datetime.time values and HH:MM:SS strings."""
        assert resolve_instant(EventTime(date=date(2025, 12, 1), time=time(14, 45))) == CPI_RELEASE_MS
        assert resolve_instant(EventTime(date="2025-12-01", time="14:45:30")) == CPI_RELEASE_MS + 30_000

    def test_missing_time_uses_date_alone(self) -> None:
        """Test a pair without a time resolves like its date."""
        assert resolve_instant(EventTime(date=CPI_RELEASE_MS)) == CPI_RELEASE_MS
        assert resolve_instant({"date": CPI_RELEASE_MS, "time": None}) == CPI_RELEASE_MS

    def test_mapping_pair(self) -> None:
        """Test {date, time} mappings resolve like EventTime."""
        assert resolve_instant({"date": "2025-12-01", "time": "14:45"}) == CPI_RELEASE_MS

    @pytest.mark.parametrize(
        "pair",
        [
            EventTime(date=None, time="14:45"),
            EventTime(date="garbage", time="14:45"),
            EventTime(date="2025-12-01", time="25:00"),
            EventTime(date="2025-12-01", time="tentative"),
        ],
    )
    def test_invalid_pairs_resolve_to_none(self, pair: EventTime) -> None:
        """Test a pair with an unusable half is excluded."""
        assert resolve_instant(pair) is None


class TestEventInstant:
    """Tests for event-level helpers."""

    def test_event_model(self) -> None:
        """Test the time field of a canonical event."""
        event = EconomicEvent(id="a", time="2025-12-01T14:45:00Z")
        assert event_time_value(event) == "2025-12-01T14:45:00Z"
        assert event_instant(event) == CPI_RELEASE_MS

    def test_mapping_and_missing(self) -> None:
        """Test mappings and events without time."""
        assert event_instant({"id": "a", "time": CPI_RELEASE_MS}) == CPI_RELEASE_MS
        assert event_instant({"id": "a"}) is None
        assert event_instant(None) is None

    def test_mapping_falls_back_to_date_fields(self) -> None:
        """Test rows without a time field use their first date-like field."""
        assert event_instant({"datetimeUtc": "2025-12-01T14:45:00Z"}) == CPI_RELEASE_MS
        assert event_instant({"time": "", "Date": CPI_RELEASE_MS}) == CPI_RELEASE_MS

    def test_now_epoch_ms_is_current(self) -> None:
        """Test the clock sample is close to datetime.now."""
        sampled = now_epoch_ms()
        expected = resolve_instant(datetime.now(UTC))
        assert expected is not None
        assert abs(sampled - expected) < 5_000
