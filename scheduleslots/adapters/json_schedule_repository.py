"""
File-backed schedule repository storing professional schedules as JSON.
"""

import json
import logging
from datetime import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import ScheduleDataError, SchedulingError
from ..domain.models import (
    ProfessionalSchedule,
    SchedulePolicy,
    ScheduleSlot,
    SlotStatus,
    WeekDay,
    WeeklyWindow,
    normalize_timezone,
    resolve_timezone,
)

logger = logging.getLogger(__name__)


class JsonScheduleRepository:
    """
    Keeps professional schedules in memory, optionally backed by a JSON file.

    Expected document layout::

        {"schedules": [{"professional_id": "...",
                        "policy": {"duration_minutes": 30, "timezone": "...",
                                   "weekly_windows": [{"day_of_week": "monday",
                                                       "start_time": "08:00",
                                                       "end_time": "12:00"}]},
                        "slots": [{"start": "...", "end": "...", "status": "reserved"}]}]}

    Slot instants without an explicit offset are read in the policy's time zone.
    """

    def __init__(
        self,
        schedules: Iterable[ProfessionalSchedule] = (),
        data_file: Optional[Path] = None,
        default_timezone: str = "Etc/UTC"
    ):
        """
        Initialize the repository.

        Args:
            schedules: Schedules to start with
            data_file: Optional JSON file to load from and dump to
            default_timezone: Zone for slot data of schedules without a policy
        """
        self.data_file = data_file
        self.default_timezone = default_timezone
        self._schedules: Dict[str, ProfessionalSchedule] = {
            schedule.professional_id: schedule for schedule in schedules
        }

        if data_file is not None:
            self._load_data_file(data_file)

    def _load_data_file(self, data_file: Path) -> None:
        """Load schedules from the JSON data file."""
        if not data_file.exists():
            logger.info("Schedule data file %s not found, starting empty", data_file)
            return

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ScheduleDataError(f"Invalid JSON in {data_file}: {exc}") from exc

        for schedule in self.parse_document(document, self.default_timezone):
            self._schedules[schedule.professional_id] = schedule

        logger.debug("Loaded %s schedules from %s", len(self._schedules), data_file)

    async def get_schedule(
        self,
        professional_id: str,
        from_: Optional[DateTime] = None,
        to: Optional[DateTime] = None
    ) -> Optional[ProfessionalSchedule]:
        """
        Return a copy of a professional's schedule.

        When both bounds are given only slots intersecting [from_, to) are included.
        """
        schedule = self._schedules.get(professional_id)
        if schedule is None:
            return None

        if from_ is not None and to is not None:
            slots = schedule.slots_between(from_, to)
        else:
            slots = list(schedule.slots)

        return ProfessionalSchedule(
            professional_id=schedule.professional_id,
            policy=schedule.policy,
            slots=slots
        )

    async def save_schedule(self, schedule: ProfessionalSchedule) -> None:
        """Store the schedule, replacing any previous version."""
        self._schedules[schedule.professional_id] = ProfessionalSchedule(
            professional_id=schedule.professional_id,
            policy=schedule.policy,
            slots=list(schedule.slots)
        )

    def professional_ids(self) -> List[str]:
        """List the professionals that have a stored schedule."""
        return sorted(self._schedules)

    def dump(self, data_file: Optional[Path] = None) -> Path:
        """
        Write every stored schedule to JSON.

        Returns:
            The path written to
        """
        target = data_file or self.data_file
        if target is None:
            raise ValueError("No data file configured for the schedule repository.")

        document = {
            "schedules": [
                self._serialize_schedule(self._schedules[key])
                for key in sorted(self._schedules)
            ]
        }

        with open(target, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)

        return target

    @classmethod
    def parse_document(
        cls,
        document: Any,
        default_timezone: str = "Etc/UTC"
    ) -> List[ProfessionalSchedule]:
        """
        Parse a schedules document into domain objects.

        Raises:
            ScheduleDataError: If any entry is malformed
        """
        if not isinstance(document, dict) or not isinstance(document.get("schedules", []), list):
            raise ScheduleDataError("Schedule data must be a mapping with a 'schedules' list.")

        schedules: List[ProfessionalSchedule] = []

        for index, entry in enumerate(document.get("schedules", [])):
            try:
                schedules.append(cls._parse_schedule(entry, default_timezone))
            except (KeyError, TypeError, ValueError, SchedulingError) as exc:
                raise ScheduleDataError(
                    f"Invalid schedule entry #{index}: {exc}"
                ) from exc

        return schedules

    @classmethod
    def _parse_schedule(cls, entry: Dict[str, Any], default_timezone: str) -> ProfessionalSchedule:
        policy_data = entry.get("policy")
        policy = cls._parse_policy(policy_data) if policy_data is not None else None

        tz = resolve_timezone(policy.timezone if policy else default_timezone)

        slots = [
            ScheduleSlot(
                start=pendulum.parse(slot["start"], tz=tz),
                end=pendulum.parse(slot["end"], tz=tz),
                status=SlotStatus(slot.get("status", SlotStatus.RESERVED.value))
            )
            for slot in entry.get("slots", [])
        ]

        return ProfessionalSchedule(
            professional_id=str(entry["professional_id"]),
            policy=policy,
            slots=slots
        )

    @staticmethod
    def _parse_policy(data: Dict[str, Any]) -> SchedulePolicy:
        windows = tuple(
            WeeklyWindow(
                day_of_week=WeekDay.from_name(window["day_of_week"]),
                start_time=time.fromisoformat(window["start_time"]),
                end_time=time.fromisoformat(window["end_time"])
            )
            for window in data.get("weekly_windows", [])
        )

        return SchedulePolicy(
            duration_minutes=int(data["duration_minutes"]),
            timezone=normalize_timezone(data.get("timezone", "Etc/UTC")),
            weekly_windows=windows
        )

    @staticmethod
    def _serialize_schedule(schedule: ProfessionalSchedule) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"professional_id": schedule.professional_id}

        if schedule.policy is not None:
            entry["policy"] = {
                "duration_minutes": schedule.policy.duration_minutes,
                "timezone": schedule.policy.timezone,
                "weekly_windows": [
                    {
                        "day_of_week": window.day_of_week.value,
                        "start_time": window.start_time.isoformat(),
                        "end_time": window.end_time.isoformat()
                    }
                    for window in schedule.policy.weekly_windows
                ]
            }

        entry["slots"] = [
            {
                "start": slot.start.isoformat(),
                "end": slot.end.isoformat(),
                "status": slot.status.value
            }
            for slot in schedule.slots
        ]

        return entry
