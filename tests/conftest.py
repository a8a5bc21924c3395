"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from eventpulse.core.config import get_settings
from eventpulse.events.schemas import EconomicEvent

# 2025-12-01T14:45:00Z
NOW_MS = 1_764_600_300_000
MINUTE_MS = 60_000
NOW_WINDOW_MS = 9 * MINUTE_MS


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Reset cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now_ms() -> int:
    """Fixed 'now' instant used across timing tests."""
    return NOW_MS


@pytest.fixture
def make_event() -> Callable[..., EconomicEvent]:
    """Factory for canonical events at an offset from NOW_MS."""

    def _make(
        event_id: str | None,
        offset_minutes: float = 0,
        *,
        name: str = "CPI m/m",
        currency: str = "USD",
        impact: str = "high",
        source: str | None = "forex-factory",
        **extra: Any,
    ) -> EconomicEvent:
        return EconomicEvent(
            id=event_id,
            name=name,
            currency=currency,
            impact=impact,
            time=NOW_MS + int(offset_minutes * MINUTE_MS),
            source=source,
            **extra,
        )

    return _make


@pytest.fixture
def calendar_day(make_event: Callable[..., EconomicEvent]) -> list[EconomicEvent]:
    """A small trading day spanning several currencies, impacts and sources."""
    return [
        make_event("usd-cpi", -120, name="CPI m/m", currency="USD", impact="high"),
        make_event("eur-pmi", -30, name="Manufacturing PMI", currency="EUR", impact="medium"),
        make_event("gbp-gdp", 0, name="GDP q/q", currency="GBP", impact="high"),
        make_event("usd-claims", 30, name="Unemployment Claims", currency="USD", impact="medium"),
        make_event("jpy-boj", 30, name="BOJ Press Conference", currency="JPY", impact="high"),
        make_event("cad-retail", 90, name="Retail Sales m/m", currency="CAD", impact="low"),
        make_event(
            "usd-fomc", 240, name="FOMC Statement", currency="USD", impact="high", source="mql5"
        ),
        make_event("usd-bank-holiday", 600, name="Bank Holiday", currency="USD", impact="non-eco"),
    ]
