"""Temporal classification engine.

This package turns event time values into absolute instants and answers,
for any sampled "now":
- which events are NOW (inside their NOW window)
- which events are NEXT (sharing the earliest future instant)
- how long until NEXT, and how to label it
- whether a row is past for display in a given timezone
"""

from eventpulse.timing.classification import (
    STATE_PRIORITY,
    ClassificationResult,
    EventState,
    classify,
    countdown_to_next,
    default_event_key,
    display_state,
    is_in_now_window,
    select_by_state,
    state_for,
)
from eventpulse.timing.countdown import (
    format_countdown,
    format_relative_label,
    format_relative_time,
)
from eventpulse.timing.day_boundary import (
    day_serial,
    is_past_for_display,
    is_same_day,
    is_today,
    resolve_timezone,
    start_of_day,
)
from eventpulse.timing.instant import (
    event_instant,
    event_time_value,
    now_epoch_ms,
    resolve_instant,
)

__all__ = [
    # Instants
    "resolve_instant",
    "event_instant",
    "event_time_value",
    "now_epoch_ms",
    # Classification
    "ClassificationResult",
    "EventState",
    "STATE_PRIORITY",
    "classify",
    "countdown_to_next",
    "default_event_key",
    "display_state",
    "is_in_now_window",
    "select_by_state",
    "state_for",
    # Formatting
    "format_countdown",
    "format_relative_label",
    "format_relative_time",
    # Display days
    "day_serial",
    "is_past_for_display",
    "is_same_day",
    "is_today",
    "resolve_timezone",
    "start_of_day",
]
