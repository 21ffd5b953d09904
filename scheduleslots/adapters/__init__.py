"""
Adapters layer - Schedule storage backends.
"""

from .json_schedule_repository import JsonScheduleRepository

__all__ = ["JsonScheduleRepository"]
