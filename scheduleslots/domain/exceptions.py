"""
Domain-specific exception hierarchy for the scheduling application.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidPolicyError(SchedulingError):
    """Raised when a schedule policy cannot be used to generate slots."""


class InvalidWeeklyWindowError(SchedulingError):
    """Raised when a weekly window does not open before it closes."""


class InvalidTimeZoneError(SchedulingError):
    """Raised when a time zone identifier is blank or malformed."""


class InvalidRangeError(SchedulingError):
    """Raised when a requested time range ends at or before its start."""


class ScheduleNotFoundError(SchedulingError):
    """Raised when no configured schedule exists for a professional."""


class SlotConflictError(SchedulingError):
    """Raised when a requested booking overlaps an existing slot."""


class OutsidePolicyError(SchedulingError):
    """Raised when a requested booking does not fit the schedule policy."""


class ScheduleDataError(SchedulingError):
    """Raised when stored schedule data cannot be parsed."""
