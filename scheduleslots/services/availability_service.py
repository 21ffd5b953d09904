"""
Application services for consulting and booking a professional's schedule.

The service loads schedules through a repository adapter and delegates the
slot arithmetic to the domain-level ``AvailabilityEngine``. Keeping storage
behind a protocol lets tests plug in a simple stub.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..domain.availability import AvailabilityEngine, has_conflict
from ..domain.exceptions import (
    InvalidPolicyError,
    InvalidRangeError,
    OutsidePolicyError,
    ScheduleNotFoundError,
    SlotConflictError,
)
from ..domain.models import (
    AvailableInterval,
    ProfessionalSchedule,
    SchedulePolicy,
    ScheduleSlot,
    SlotStatus,
    normalize_timezone,
    resolve_timezone,
)

logger = logging.getLogger(__name__)


class ScheduleRepositoryProtocol(Protocol):
    """Protocol describing the schedule store behaviour needed by the service."""

    async def get_schedule(
        self,
        professional_id: str,
        from_: Optional[DateTime] = None,
        to: Optional[DateTime] = None,
    ) -> Optional[ProfessionalSchedule]:
        """Return the schedule with its slots, restricted to [from_, to) when given."""

    async def save_schedule(self, schedule: ProfessionalSchedule) -> None:
        """Persist the whole schedule aggregate."""


class AvailabilityService:
    """
    Orchestrates schedule retrieval, slot generation and booking checks.
    """

    def __init__(
        self,
        repository: ScheduleRepositoryProtocol,
        *,
        horizon_months: int = 2,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._repository = repository
        self._horizon_months = horizon_months
        self._clock = clock or pendulum.now

    async def generate_available_slots(
        self,
        professional_id: str,
        *,
        from_: Optional[DateTime] = None,
        to: Optional[DateTime] = None,
    ) -> List[AvailableInterval]:
        """
        Compute open slots for a professional.

        Bounds may be given in any zone; they are converted to the policy's
        time zone before windows are anchored.

        Args:
            professional_id: Whose schedule to consult
            from_: Range start, defaults to now
            to: Range end, defaults to the configured horizon after from_

        Raises:
            InvalidRangeError: If to is not after from_
            ScheduleNotFoundError: If no schedule or policy is configured
        """
        if from_ is not None and to is not None and to <= from_:
            raise InvalidRangeError(
                f"Range end {to} must be after range start {from_}"
            )

        schedule = await self._load_schedule(professional_id)
        tz = resolve_timezone(schedule.policy.timezone)

        start = (from_ or self._clock()).in_timezone(tz)
        end = to.in_timezone(tz) if to is not None else start.add(months=self._horizon_months)

        if end <= start:
            raise InvalidRangeError(
                f"Range end {end} must be after range start {start}"
            )

        existing_slots = schedule.slots_between(start, end)

        intervals = AvailabilityEngine(schedule.policy).generate_available_intervals(
            existing_slots, start, end
        )

        logger.debug(
            "Generated %s open slots for %s between %s and %s (%s existing)",
            len(intervals), professional_id, start, end, len(existing_slots)
        )
        return intervals

    async def validate_booking(
        self,
        professional_id: str,
        start: DateTime,
        end: DateTime,
    ) -> ProfessionalSchedule:
        """
        Check that a requested interval can be booked.

        Returns:
            The professional's schedule, loaded for the requested interval

        Raises:
            InvalidRangeError: If end is not after start
            ScheduleNotFoundError: If no schedule or policy is configured
            SlotConflictError: If the interval overlaps an existing slot
            OutsidePolicyError: If the interval does not fit the policy
        """
        if end <= start:
            raise InvalidRangeError(f"End {end} must be after start {start}")

        schedule = await self._load_schedule(professional_id, start, end)

        tz = resolve_timezone(schedule.policy.timezone)
        start = start.in_timezone(tz)
        end = end.in_timezone(tz)

        if has_conflict(schedule.slots, start, end):
            raise SlotConflictError(
                f"Requested slot {start} - {end} conflicts with an existing booking"
            )

        if not AvailabilityEngine(schedule.policy).fits_policy(start, end):
            raise OutsidePolicyError(
                f"Requested slot {start} - {end} is outside the schedule policy"
            )

        return schedule

    async def book_slot(
        self,
        professional_id: str,
        start: DateTime,
        end: DateTime,
    ) -> ScheduleSlot:
        """Validate a requested interval and store it as a reserved slot."""
        schedule = await self.validate_booking(professional_id, start, end)
        tz = resolve_timezone(schedule.policy.timezone)
        start = start.in_timezone(tz)
        end = end.in_timezone(tz)

        # Reload unfiltered so saving does not drop slots outside the interval
        schedule = await self._load_schedule(professional_id)
        slot = ScheduleSlot(start=start, end=end, status=SlotStatus.RESERVED)
        schedule.slots.append(slot)
        await self._repository.save_schedule(schedule)

        logger.info("Booked %s - %s for %s", start, end, professional_id)
        return slot

    async def reserved_slots(self, professional_id: str) -> List[ScheduleSlot]:
        """Return the professional's reserved slots ordered by start."""
        schedule = await self._repository.get_schedule(professional_id)
        if schedule is None:
            raise ScheduleNotFoundError(
                f"No schedule found for professional '{professional_id}'"
            )

        return sorted(
            (slot for slot in schedule.slots if slot.status == SlotStatus.RESERVED),
            key=lambda slot: slot.start
        )

    async def update_policy(
        self,
        professional_id: str,
        policy: SchedulePolicy,
    ) -> ProfessionalSchedule:
        """
        Replace a professional's schedule policy as a whole.

        Creates the schedule when the professional has none yet.

        Raises:
            InvalidPolicyError: If the duration is not positive
            InvalidTimeZoneError: If the time zone is blank or malformed
        """
        if policy.duration_minutes <= 0:
            raise InvalidPolicyError(
                f"duration_minutes must be greater than zero, got {policy.duration_minutes}"
            )

        policy = replace(policy, timezone=normalize_timezone(policy.timezone))

        schedule = await self._repository.get_schedule(professional_id)
        if schedule is None:
            schedule = ProfessionalSchedule(professional_id=professional_id)

        schedule.policy = policy
        await self._repository.save_schedule(schedule)

        logger.info(
            "Replaced schedule policy for %s (%s windows, %s min)",
            professional_id, len(policy.weekly_windows), policy.duration_minutes
        )
        return schedule

    async def _load_schedule(
        self,
        professional_id: str,
        from_: Optional[DateTime] = None,
        to: Optional[DateTime] = None,
    ) -> ProfessionalSchedule:
        schedule = await self._repository.get_schedule(professional_id, from_, to)

        if schedule is None or schedule.policy is None:
            raise ScheduleNotFoundError(
                f"No configured schedule found for professional '{professional_id}'"
            )

        return schedule
