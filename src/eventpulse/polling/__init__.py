"""Per-surface polling drivers for NOW/NEXT classification."""

from eventpulse.polling.driver import ClassificationPoller, PollSnapshot

__all__ = ["ClassificationPoller", "PollSnapshot"]
