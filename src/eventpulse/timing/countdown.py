"""Countdown and relative-time labels."""

from __future__ import annotations

from eventpulse.core.config import get_settings

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# Inside the NOW window, the first 45 seconds read as "Starting now".
STARTING_NOW_MS = 45 * SECOND_MS


def format_countdown(delta_ms: int | float) -> str:
    """Format a millisecond delta as ``H:MM:SS``.

    Negative deltas clamp to zero. Hours are unpadded and unbounded.

    Examples:
        >>> format_countdown(5_025_000)
        '1:23:45'
        >>> format_countdown(-5000)
        '0:00:00'
    """
    total_seconds = max(int(delta_ms // SECOND_MS), 0)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_relative_label(
    event_instant: int | None,
    now_instant: int,
    now_window_ms: int | None = None,
) -> str:
    """Badge label such as ``"Starting now"``, ``"In 1h 2m"`` or ``"5m ago"``.

    Returns an empty string when the event has no instant.
    """
    if event_instant is None:
        return ""
    if now_window_ms is None:
        now_window_ms = get_settings().now_window_ms

    diff = event_instant - now_instant
    abs_diff = abs(diff)
    if diff <= 0 and abs_diff < now_window_ms and abs_diff < STARTING_NOW_MS:
        return "Starting now"

    days, remainder = divmod(abs_diff, DAY_MS)
    hours, remainder = divmod(remainder, HOUR_MS)
    minutes = remainder // MINUTE_MS

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0 or days > 0:
        parts.append(f"{hours}h")
    parts.append(f"{minutes}m")

    label = " ".join(parts)
    return f"In {label}" if diff >= 0 else f"{label} ago"


def format_relative_time(delta_ms: int | float) -> str:
    """Coarse relative phrasing for a signed delta (positive means upcoming).

    Units are floored, so a smaller magnitude never reads as further away
    than a larger one.
    """
    magnitude = abs(int(delta_ms))
    upcoming = delta_ms > 0

    minutes = magnitude // MINUTE_MS
    if minutes < 1:
        return "just now"

    if minutes < 60:
        amount = f"{minutes} min"
    elif magnitude < DAY_MS:
        hours = magnitude // HOUR_MS
        amount = f"{hours} hour{'s' if hours != 1 else ''}"
    else:
        days = magnitude // DAY_MS
        amount = f"{days} day{'s' if days != 1 else ''}"

    return f"in {amount}" if upcoming else f"{amount} ago"
