"""NOW/NEXT classification of economic events.

Classification is a pure function of the event list, a sampled "now" instant
and the NOW window length. Every UI surface calls it independently with its
own clock sample; two surfaces holding the same inputs always agree.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from eventpulse.core.config import get_settings
from eventpulse.core.logging import get_logger
from eventpulse.events.schemas import EconomicEvent
from eventpulse.timing.instant import event_time_value, resolve_instant

logger = get_logger(__name__)

EventKey = Callable[[object, int], str | None]


class EventState(str, Enum):
    """Display state of an event relative to "now"."""

    NOW = "now"
    NEXT = "next"
    FUTURE = "future"
    PAST = "past"


# Highest priority first. Every surface picks a single label with this order.
STATE_PRIORITY: tuple[EventState, ...] = (
    EventState.NOW,
    EventState.NEXT,
    EventState.FUTURE,
    EventState.PAST,
)


@dataclass(frozen=True)
class ClassificationResult:
    """NOW and NEXT sets produced by one classification call.

    Attributes:
        now_ids: Keys of events whose NOW window contains the sampled instant.
        next_ids: Keys of every event sharing the earliest future instant.
        next_instant: That earliest future instant, or None when nothing is upcoming.
    """

    now_ids: frozenset[str] = field(default_factory=frozenset)
    next_ids: frozenset[str] = field(default_factory=frozenset)
    next_instant: int | None = None

    def state_of(self, key: str, instant: int | None, now_instant: int) -> EventState:
        """Single display state for one event; see ``state_for``."""
        return state_for(key, instant, self, now_instant)


def default_event_key(event: object, index: int) -> str | None:
    """Stable key for an event within one classification pass.

    Uses the event id when present; otherwise synthesizes one from the name,
    the raw time value and the position in the list.
    """
    if isinstance(event, EconomicEvent):
        event_id, name = event.id, event.name
    elif isinstance(event, Mapping):
        event_id = event.get("id")
        name = event.get("name")
    else:
        event_id = getattr(event, "id", None)
        name = getattr(event, "name", None)

    if event_id:
        return str(event_id)
    return f"{name}-{event_time_value(event)}-{index}"


def is_in_now_window(event_instant: int, now_instant: int, now_window_ms: int) -> bool:
    """Half-open NOW window: opens at the event instant, closes ``now_window_ms`` later."""
    return 0 <= now_instant - event_instant < now_window_ms


def classify(
    events: Iterable[object] | None,
    now_instant: int,
    now_window_ms: int | None = None,
    *,
    key: EventKey | None = None,
) -> ClassificationResult:
    """Classify events into NOW and NEXT sets.

    Events whose time cannot be resolved are skipped; they are never NOW or
    NEXT. PAST and FUTURE membership is left implicit: anything not in the
    returned sets is past or future by comparison with ``now_instant``.

    Args:
        events: Canonical events (``EconomicEvent``, mappings or objects with
            ``id``, ``name`` and ``time``).
        now_instant: Sampled "now" in epoch milliseconds.
        now_window_ms: NOW window length; defaults to the configured policy.
        key: Optional ``(event, index) -> key`` builder.

    Returns:
        A fresh ClassificationResult. This function never raises for bad events.
    """
    if now_window_ms is None:
        now_window_ms = get_settings().now_window_ms
    if not isinstance(events, Iterable) or isinstance(events, str | bytes):
        return ClassificationResult()

    key_builder = key or default_event_key
    now_ids: set[str] = set()
    next_ids: set[str] = set()
    next_instant: int | None = None
    skipped = 0

    for index, event in enumerate(events):
        instant = resolve_instant(event_time_value(event)) if event is not None else None
        if instant is None:
            skipped += 1
            continue

        event_key = key_builder(event, index)
        if not event_key:
            skipped += 1
            continue

        if is_in_now_window(instant, now_instant, now_window_ms):
            now_ids.add(event_key)
            continue

        if instant > now_instant:
            if next_instant is None or instant < next_instant:
                next_instant = instant
                next_ids = {event_key}
            elif instant == next_instant:
                next_ids.add(event_key)

    if skipped:
        logger.debug("classification_skipped_events", skipped=skipped)

    return ClassificationResult(
        now_ids=frozenset(now_ids),
        next_ids=frozenset(next_ids - now_ids),
        next_instant=next_instant,
    )


def state_for(
    key: str,
    instant: int | None,
    result: ClassificationResult,
    now_instant: int,
) -> EventState:
    """Resolve the single display state of one event.

    NOW beats NEXT beats FUTURE beats PAST. Events without an instant are
    reported as PAST so they render inert.
    """
    if key in result.now_ids:
        return EventState.NOW
    if key in result.next_ids:
        return EventState.NEXT
    if instant is not None and instant > now_instant:
        return EventState.FUTURE
    return EventState.PAST


def display_state(states: Iterable[EventState]) -> EventState | None:
    """Pick the highest-priority state among several candidates."""
    present = set(states)
    for state in STATE_PRIORITY:
        if state in present:
            return state
    return None


def countdown_to_next(result: ClassificationResult, now_instant: int) -> int | None:
    """Milliseconds from ``now_instant`` until the NEXT instant."""
    if result.next_instant is None:
        return None
    return max(result.next_instant - now_instant, 0)


def select_by_state(
    events: Sequence[object],
    result: ClassificationResult,
    state: EventState,
    *,
    key: EventKey | None = None,
) -> list[object]:
    """Return the events in the NOW or NEXT set of ``result``, keeping input order."""
    if state not in (EventState.NOW, EventState.NEXT):
        raise ValueError(f"Only NOW and NEXT are materialized, got {state.value}")
    key_builder = key or default_event_key
    wanted = result.now_ids if state is EventState.NOW else result.next_ids
    return [event for index, event in enumerate(events) if key_builder(event, index) in wanted]
