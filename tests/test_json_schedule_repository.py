"""
Tests for the JSON-backed schedule repository.
"""

import asyncio
import json
from datetime import time

import pendulum
import pytest

from scheduleslots.adapters.json_schedule_repository import JsonScheduleRepository
from scheduleslots.domain.exceptions import ScheduleDataError
from scheduleslots.domain.models import SlotStatus, WeekDay, WeeklyWindow

DOCUMENT = {
    "schedules": [
        {
            "professional_id": "dr-ana",
            "policy": {
                "duration_minutes": 30,
                "timezone": "America/Sao_Paulo",
                "weekly_windows": [
                    {"day_of_week": "monday", "start_time": "08:00", "end_time": "12:00"},
                    {"day_of_week": "Wed", "start_time": "09:00", "end_time": "13:00"},
                ],
            },
            "slots": [
                {"start": "2024-11-25T08:30:00", "end": "2024-11-25T09:00:00", "status": "reserved"},
                {"start": "2024-12-02T08:00:00", "end": "2024-12-02T08:30:00", "status": "canceled"},
            ],
        },
        {"professional_id": "dr-bob"},
    ]
}


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "schedules.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
    return path


class TestJsonScheduleRepository:
    """Tests for loading, filtering and writing schedules."""

    def test_loads_policy_and_slots(self, data_file):
        """Test parsing a schedules document."""
        repository = JsonScheduleRepository(data_file=data_file)

        schedule = asyncio.run(repository.get_schedule("dr-ana"))

        assert schedule.policy.duration_minutes == 30
        assert schedule.policy.weekly_windows == (
            WeeklyWindow(WeekDay.MONDAY, time(8, 0), time(12, 0)),
            WeeklyWindow(WeekDay.WEDNESDAY, time(9, 0), time(13, 0)),
        )
        assert [slot.status for slot in schedule.slots] == [SlotStatus.RESERVED, SlotStatus.CANCELED]
        assert schedule.slots[0].start == pendulum.datetime(2024, 11, 25, 8, 30, tz="America/Sao_Paulo")
        assert repository.professional_ids() == ["dr-ana", "dr-bob"]

    def test_schedule_without_policy(self, data_file):
        """Test that a schedule may lack a policy."""
        repository = JsonScheduleRepository(data_file=data_file)

        schedule = asyncio.run(repository.get_schedule("dr-bob"))

        assert schedule.policy is None
        assert schedule.slots == []

    def test_get_schedule_filters_slots_by_range(self, data_file):
        """Test that only slots intersecting the range are returned."""
        repository = JsonScheduleRepository(data_file=data_file)
        tz = "America/Sao_Paulo"

        schedule = asyncio.run(
            repository.get_schedule(
                "dr-ana",
                pendulum.datetime(2024, 11, 25, tz=tz),
                pendulum.datetime(2024, 11, 26, tz=tz),
            )
        )

        assert len(schedule.slots) == 1
        assert asyncio.run(repository.get_schedule("dr-zoe")) is None

    def test_returned_schedule_is_a_copy(self, data_file):
        """Test that mutating a returned schedule does not change the store."""
        repository = JsonScheduleRepository(data_file=data_file)

        schedule = asyncio.run(repository.get_schedule("dr-ana"))
        schedule.slots.clear()

        assert len(asyncio.run(repository.get_schedule("dr-ana")).slots) == 2

    def test_missing_file_starts_empty(self, tmp_path):
        """Test that a missing data file yields an empty repository."""
        repository = JsonScheduleRepository(data_file=tmp_path / "missing.json")

        assert repository.professional_ids() == []

    def test_dump_round_trips(self, data_file, tmp_path):
        """Test writing and reloading the store."""
        repository = JsonScheduleRepository(data_file=data_file)
        target = repository.dump(tmp_path / "out.json")

        reloaded = JsonScheduleRepository(data_file=target)

        original = asyncio.run(repository.get_schedule("dr-ana"))
        copy = asyncio.run(reloaded.get_schedule("dr-ana"))
        assert copy.policy == original.policy
        assert copy.slots == original.slots

    def test_dump_without_file_raises(self):
        """Test that dumping needs a target."""
        with pytest.raises(ValueError, match="No data file"):
            JsonScheduleRepository().dump()

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"schedules": [{"policy": {"duration_minutes": 30}}]},
            {"schedules": [{"professional_id": "x", "policy": {"duration_minutes": 30, "weekly_windows": [
                {"day_of_week": "monday", "start_time": "10:00", "end_time": "09:00"}]}}]},
            {"schedules": [{"professional_id": "x", "policy": {"duration_minutes": 30, "timezone": "bad zone"}}]},
            {"schedules": [{"professional_id": "x", "slots": [{"start": "not a date", "end": "2024-11-25"}]}]},
            {"schedules": [{"professional_id": "x", "slots": [
                {"start": "2024-11-25T08:00", "end": "2024-11-25T08:30", "status": "lost"}]}]},
        ],
    )
    def test_malformed_documents_raise(self, document):
        """Test that malformed entries are reported as ScheduleDataError."""
        with pytest.raises(ScheduleDataError):
            JsonScheduleRepository.parse_document(document)

    def test_invalid_json_raises(self, tmp_path):
        """Test that unreadable JSON is reported."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ScheduleDataError, match="Invalid JSON"):
            JsonScheduleRepository(data_file=path)

    def test_non_utf8_file_raises(self, tmp_path):
        """Test that a file that is not UTF-8 text is reported, not leaked as a decode error."""
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe{\x00\x80")

        with pytest.raises(ScheduleDataError, match="Invalid JSON"):
            JsonScheduleRepository(data_file=path)
