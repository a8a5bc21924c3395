"""Per-surface polling driver for NOW/NEXT classification.

Each UI surface owns one poller. A poller samples its own clock, calls the
classification engine with a fresh instant on every tick and hands the result
to its surface. Pollers share no state; surfaces agree because classification
is deterministic. The display timezone is carried only for formatting and day
grouping.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from eventpulse.core.config import get_settings
from eventpulse.core.logging import get_logger
from eventpulse.timing.classification import (
    ClassificationResult,
    EventState,
    classify,
    countdown_to_next,
    default_event_key,
)
from eventpulse.timing.countdown import format_countdown
from eventpulse.timing.day_boundary import is_past_for_display, resolve_timezone
from eventpulse.timing.instant import event_instant, now_epoch_ms

logger = get_logger(__name__)

EventsProvider = Callable[[], Sequence[object]]
TickCallback = Callable[["PollSnapshot"], None]


@dataclass(frozen=True)
class PollSnapshot:
    """Everything a surface needs to render one tick."""

    now_instant: int
    result: ClassificationResult
    timezone: ZoneInfo
    now_window_ms: int

    @property
    def countdown(self) -> str | None:
        """``H:MM:SS`` until NEXT, or None when nothing is upcoming."""
        remaining = countdown_to_next(self.result, self.now_instant)
        return None if remaining is None else format_countdown(remaining)

    def state_of(self, event: object, index: int) -> EventState:
        key = default_event_key(event, index) or ""
        return self.result.state_of(key, event_instant(event), self.now_instant)

    def is_grayed(self, event: object) -> bool:
        """Whether the surface should render ``event`` as past."""
        return is_past_for_display(
            event_instant(event),
            self.now_instant,
            self.timezone,
            self.now_window_ms,
        )


class ClassificationPoller:
    """Re-classifies a surface's events on a fixed tick."""

    def __init__(
        self,
        events_provider: EventsProvider,
        on_tick: TickCallback,
        *,
        name: str = "surface",
        clock: Callable[[], int] = now_epoch_ms,
        timezone: str | ZoneInfo | None = None,
        now_window_ms: int | None = None,
        interval_ms: int | None = None,
        background_interval_ms: int | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            events_provider: Returns the surface's current event list.
            on_tick: Receives a PollSnapshot after every classification.
            name: Surface name used in logs.
            clock: Epoch-millisecond clock; each poller samples its own.
            timezone: Display timezone; defaults to the configured one.
            now_window_ms: NOW window length; defaults to the configured one.
            interval_ms: Foreground tick, aligned to whole intervals.
            background_interval_ms: Tick used while the surface is hidden.

        Raises:
            InvalidTimezoneError: If ``timezone`` is not a known zone.
        """
        settings = get_settings()
        self.name = name
        self._events_provider = events_provider
        self._on_tick = on_tick
        self._clock = clock
        self.timezone = resolve_timezone(timezone or settings.display_timezone)
        self.now_window_ms = now_window_ms or settings.now_window_ms
        self.interval_ms = interval_ms or settings.poll_interval_ms
        self.background_interval_ms = background_interval_ms or settings.background_poll_interval_ms

        self._background = False
        self._wake = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.logger = logger.bind(service="classification_poller", surface=name)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def background(self) -> bool:
        return self._background

    def tick(self) -> PollSnapshot:
        """Classify now and deliver the snapshot to the surface."""
        now_instant = self._clock()
        result = classify(self._events_provider(), now_instant, self.now_window_ms)
        snapshot = PollSnapshot(
            now_instant=now_instant,
            result=result,
            timezone=self.timezone,
            now_window_ms=self.now_window_ms,
        )
        self._on_tick(snapshot)
        return snapshot

    def next_delay_ms(self) -> int:
        """Delay until the next tick; foreground ticks land on interval boundaries."""
        if self._background:
            return self.background_interval_ms
        return self.interval_ms - (self._clock() % self.interval_ms)

    def set_background(self, background: bool) -> None:
        """Switch between foreground and background tick rates.

        Returning to the foreground ticks immediately.
        """
        if background == self._background:
            return
        self._background = background
        self.logger.debug("poller_visibility_changed", background=background)
        self._wake.set()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        self.logger.info("poller_started", interval_ms=self.interval_ms)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.logger.info("poller_stopped")

    async def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                self.logger.exception("poll_tick_failed")

            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.next_delay_ms() / 1000)
            except TimeoutError:
                pass
            self._wake.clear()
