# backend/studio/repositories/__init__.py
"""
Repository layer for the studio scheduling core.

Repositories own data access only; services own transactions.
"""

from .attendance_repository import AttendanceRepository
from .base_repository import BaseRepository
from .event_repository import EventRepository
from .factory import RepositoryFactory
from .lesson_repository import LessonRepository
from .participant_repository import ParticipantRepository
from .schedule_repository import ScheduleRepository, ScheduleRow

__all__ = [
    "AttendanceRepository",
    "BaseRepository",
    "EventRepository",
    "LessonRepository",
    "ParticipantRepository",
    "RepositoryFactory",
    "ScheduleRepository",
    "ScheduleRow",
]
