"""
Domain models for schedule policies, booked slots and computed availability.
"""

import re
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import List, Optional, Tuple, Union

import pendulum
from pendulum import DateTime, FixedTimezone, Timezone
from pendulum.tz.exceptions import InvalidTimezone

from .exceptions import InvalidTimeZoneError, InvalidWeeklyWindowError


class WeekDay(str, Enum):
    """Symbolic day of the week used by recurring windows."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: DateTime) -> "WeekDay":
        """Return the weekday a calendar date falls on."""
        return _WEEKDAYS_BY_INDEX[value.weekday()]

    @classmethod
    def from_name(cls, name: str) -> "WeekDay":
        """Parse a weekday name such as ``"Monday"`` or ``"mon"``."""
        key = name.strip().lower()
        for day in cls:
            if day.value == key or day.value[:3] == key:
                return day
        raise ValueError(f"Unknown weekday: '{name}'")


# Indexed by datetime.weekday(): 0=Monday, 6=Sunday
_WEEKDAYS_BY_INDEX: Tuple[WeekDay, ...] = (
    WeekDay.MONDAY,
    WeekDay.TUESDAY,
    WeekDay.WEDNESDAY,
    WeekDay.THURSDAY,
    WeekDay.FRIDAY,
    WeekDay.SATURDAY,
    WeekDay.SUNDAY,
)


class SlotStatus(str, Enum):
    """Lifecycle state of a slot stored in a professional's schedule."""
    AVAILABLE = "available"
    RESERVED = "reserved"
    CANCELED = "canceled"
    COMPLETED = "completed"


_UTC_ALIASES = {"UTC", "Etc/UTC", "Z"}
_OFFSET_PATTERN = re.compile(r"^(UTC)?([+-])(\d{1,2})(:?(\d{2}))?$")
_IANA_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+(/[A-Za-z0-9_\-]+)*$")


def normalize_timezone(value: str) -> str:
    """
    Validate and canonicalize a time zone identifier.

    UTC spellings collapse to ``Etc/UTC`` and offsets to ``UTC±HH:MM``.
    IANA names are returned as given (case-sensitive).

    Raises:
        InvalidTimeZoneError: If the value is blank or malformed
    """
    if value is None or not value.strip():
        raise InvalidTimeZoneError("Time zone must not be empty.")

    value = value.strip()

    if value in _UTC_ALIASES:
        return "Etc/UTC"

    match = _OFFSET_PATTERN.match(value)
    if match:
        sign = match.group(2)
        hours = int(match.group(3))
        minutes = int(match.group(5)) if match.group(5) else 0
        if hours > 14 or minutes > 59:
            raise InvalidTimeZoneError(f"Invalid UTC offset: '{value}'")
        return f"UTC{sign}{hours:02d}:{minutes:02d}"

    if _IANA_PATTERN.match(value):
        return value

    raise InvalidTimeZoneError(f"Invalid time zone format: '{value}'")


def resolve_timezone(value: str) -> Union[Timezone, FixedTimezone]:
    """
    Turn a time zone identifier into a pendulum time zone.

    Raises:
        InvalidTimeZoneError: If the identifier is malformed or unknown
    """
    name = normalize_timezone(value)

    match = _OFFSET_PATTERN.match(name)
    if match:
        sign = -1 if match.group(2) == "-" else 1
        seconds = int(match.group(3)) * 3600 + int(match.group(5)) * 60
        return pendulum.fixed_timezone(sign * seconds)

    try:
        return pendulum.timezone(name)
    except InvalidTimezone as exc:
        raise InvalidTimeZoneError(f"Unknown time zone: '{value}'") from exc


@dataclass(frozen=True)
class WeeklyWindow:
    """
    A recurring time-of-day range on one weekday.

    Invariant: start_time is before end_time (windows never span midnight).
    """
    day_of_week: WeekDay
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise InvalidWeeklyWindowError(
                f"Window on {self.day_of_week.value} must open before it closes, "
                f"got {self.start_time:%H:%M}-{self.end_time:%H:%M}"
            )

    def applies_to(self, day: DateTime) -> bool:
        """Check if this window recurs on the given calendar day."""
        return self.day_of_week == WeekDay.from_date(day)

    def bounds_on(self, day: DateTime) -> Tuple[DateTime, DateTime]:
        """Anchor the window to a concrete calendar day."""
        start = day.set(
            hour=self.start_time.hour,
            minute=self.start_time.minute,
            second=self.start_time.second,
            microsecond=self.start_time.microsecond
        )
        end = day.set(
            hour=self.end_time.hour,
            minute=self.end_time.minute,
            second=self.end_time.second,
            microsecond=self.end_time.microsecond
        )
        return start, end


@dataclass(frozen=True)
class SchedulePolicy:
    """
    A professional's availability template: slot length plus weekly windows.

    Replaced as a whole on update. Several windows may share a weekday.
    """
    duration_minutes: int
    timezone: str = "Etc/UTC"
    weekly_windows: Tuple[WeeklyWindow, ...] = ()

    def windows_for(self, day: DateTime) -> List[WeeklyWindow]:
        """Return every window that recurs on the given day, in policy order."""
        return [window for window in self.weekly_windows if window.applies_to(day)]


@dataclass(frozen=True)
class ScheduleSlot:
    """
    An interval already present in a professional's schedule.

    Start and end are trusted as given; they are not checked for order.
    """
    start: DateTime
    end: DateTime
    status: SlotStatus = SlotStatus.RESERVED


@dataclass(frozen=True)
class AvailableInterval:
    """A computed open slot of exactly one policy duration."""
    start: DateTime
    end: DateTime

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, start: DateTime, end: DateTime) -> bool:
        """Check if this interval overlaps the half-open range [start, end)."""
        return self.start < end and start < self.end

    def format_display(self) -> str:
        """
        Format the interval for display.
        Format: Weekday, YYYY-MM-DD | HH:mm - HH:mm
        """
        weekday = WeekDay.from_date(self.start).value.capitalize()
        date_str = self.start.format("YYYY-MM-DD")
        return f"{weekday}, {date_str} | {self.start.format('HH:mm')} - {self.end.format('HH:mm')}"

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass
class ProfessionalSchedule:
    """
    A professional's schedule: the active policy and the slots already in it.
    """
    professional_id: str
    policy: Optional[SchedulePolicy] = None
    slots: List[ScheduleSlot] = field(default_factory=list)

    def slots_between(self, start: DateTime, end: DateTime) -> List[ScheduleSlot]:
        """Return the slots whose span intersects [start, end)."""
        return [slot for slot in self.slots if slot.start < end and slot.end > start]
