"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import (
    AvailabilityEngine,
    fits_policy,
    generate_available_intervals,
    has_conflict,
)
from .models import (
    AvailableInterval,
    ProfessionalSchedule,
    SchedulePolicy,
    ScheduleSlot,
    SlotStatus,
    WeekDay,
    WeeklyWindow,
    normalize_timezone,
    resolve_timezone,
)

__all__ = [
    "AvailabilityEngine",
    "AvailableInterval",
    "ProfessionalSchedule",
    "SchedulePolicy",
    "ScheduleSlot",
    "SlotStatus",
    "WeekDay",
    "WeeklyWindow",
    "fits_policy",
    "generate_available_intervals",
    "has_conflict",
    "normalize_timezone",
    "resolve_timezone",
]
