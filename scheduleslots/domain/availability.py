"""
Core business logic for calculating open appointment slots.

Pure domain logic: no storage, no clock, no time zone conversion. Every
instant passed in must already be expressed in the policy's time zone.
"""

from typing import Iterable, List, Sequence

from pendulum import DateTime

from .exceptions import InvalidPolicyError
from .models import AvailableInterval, ScheduleSlot, SchedulePolicy, WeekDay, WeeklyWindow


def _overlaps(
    start1: DateTime,
    end1: DateTime,
    start2: DateTime,
    end2: DateTime
) -> bool:
    # Half-open intervals [start, end)
    return start1 < end2 and start2 < end1


class AvailabilityEngine:
    """
    Slices a schedule policy's weekly windows into bookable intervals.

    Algorithm:
    1. Empty or inverted range yields nothing
    2. Keep only existing slots that intersect the range
    3. Walk each calendar day from the range start date to the range end date
    4. Anchor the day's windows and cut them into fixed-length candidates
    5. Drop candidates outside the range or overlapping an existing slot

    The grid always starts at the window's own start, never at the range
    start, so a professional offers the same wall-clock boundaries no matter
    which range is queried.
    """

    def __init__(self, policy: SchedulePolicy):
        self.policy = policy

    def generate_available_intervals(
        self,
        existing_slots: Iterable[ScheduleSlot],
        from_: DateTime,
        to: DateTime
    ) -> List[AvailableInterval]:
        """
        Compute every open interval inside [from_, to).

        Args:
            existing_slots: Slots already in the schedule; all of them block
            from_: Inclusive start of the query range
            to: Exclusive end of the query range

        Returns:
            Intervals ordered by day, then window, then grid position

        Raises:
            InvalidPolicyError: If the policy duration is not positive
        """
        if to <= from_:
            return []

        duration = self.policy.duration_minutes
        if duration <= 0:
            raise InvalidPolicyError(
                f"duration_minutes must be greater than zero, got {duration}"
            )

        blocking_slots = [
            slot for slot in existing_slots
            if slot.start < to and slot.end > from_
        ]

        intervals: List[AvailableInterval] = []

        current = from_.start_of("day")
        last_day = to.start_of("day")

        while current <= last_day:
            for window in self.policy.windows_for(current):
                intervals.extend(
                    self._slice_window(window, current, blocking_slots, from_, to)
                )

            current = current.add(days=1)

        return intervals

    def fits_policy(self, start: DateTime, end: DateTime) -> bool:
        """
        Check if a requested interval matches the policy.

        It must last exactly one policy duration and sit inside one of the
        windows recurring on the start's weekday.
        """
        if (end - start).total_seconds() != self.policy.duration_minutes * 60:
            return False

        # Windows never span midnight
        if start.date() != end.date():
            return False

        day = WeekDay.from_date(start)
        start_of_day = start.time()
        end_of_day = end.time()

        return any(
            window.start_time <= start_of_day and end_of_day <= window.end_time
            for window in self.policy.weekly_windows
            if window.day_of_week == day
        )

    def _slice_window(
        self,
        window: WeeklyWindow,
        day: DateTime,
        blocking_slots: Sequence[ScheduleSlot],
        from_: DateTime,
        to: DateTime
    ) -> List[AvailableInterval]:
        """
        Cut one anchored window into consecutive duration-length candidates.

        A trailing candidate that would run past the window end is discarded.
        """
        window_start, window_end = window.bounds_on(day)

        if window_end <= from_ or window_start >= to:
            return []

        duration = self.policy.duration_minutes
        intervals: List[AvailableInterval] = []
        slot_start = window_start

        while True:
            slot_end = slot_start.add(minutes=duration)

            if slot_end > window_end:
                break

            if slot_end > from_ and slot_start < to and not has_conflict(
                blocking_slots, slot_start, slot_end
            ):
                intervals.append(AvailableInterval(start=slot_start, end=slot_end))

            slot_start = slot_end

        return intervals


def has_conflict(
    slots: Iterable[ScheduleSlot],
    start: DateTime,
    end: DateTime
) -> bool:
    """Check if [start, end) overlaps any of the given slots."""
    return any(_overlaps(start, end, slot.start, slot.end) for slot in slots)


def generate_available_intervals(
    policy: SchedulePolicy,
    existing_slots: Iterable[ScheduleSlot],
    from_: DateTime,
    to: DateTime
) -> List[AvailableInterval]:
    """Compute the open intervals of a policy inside [from_, to)."""
    return AvailabilityEngine(policy).generate_available_intervals(existing_slots, from_, to)


def fits_policy(policy: SchedulePolicy, start: DateTime, end: DateTime) -> bool:
    """Check if [start, end) is a bookable interval under the policy."""
    return AvailabilityEngine(policy).fits_policy(start, end)
