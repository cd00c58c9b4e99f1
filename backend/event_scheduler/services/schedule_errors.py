"""
Typed scheduling failures.

Every ScheduleError reflects a caller-fixable input problem (bad roster, bad
availability, not enough room), so none of them are retried automatically.
Routes translate them to 400 responses carrying ``reason`` and ``message``.
"""

from typing import Dict

INSUFFICIENT_PARTICIPANTS = "insufficient-participants"
INVALID_PLAYOFF_CUTOFF = "invalid-playoff-cutoff"
INVALID_SCHEDULE_WINDOW = "invalid-schedule-window"
CAPACITY_EXHAUSTED = "capacity-exhausted"

SCHEDULE_ERROR_REASONS = frozenset(
    {INSUFFICIENT_PARTICIPANTS, INVALID_PLAYOFF_CUTOFF, INVALID_SCHEDULE_WINDOW, CAPACITY_EXHAUSTED}
)


class ScheduleError(Exception):
    """Raised when an event cannot be scheduled as configured"""

    retryable = False

    def __init__(self, reason: str, message: str):
        if reason not in SCHEDULE_ERROR_REASONS:
            raise ValueError(f"Unknown schedule error reason: {reason}")
        super().__init__(message)
        self.reason = reason
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"reason": self.reason, "message": self.message}


class EventNotFoundError(LookupError):
    """Raised when the event to schedule does not exist"""

    pass
