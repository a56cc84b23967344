# backend/studio/repositories/factory.py
"""
Repository Factory for the studio scheduling core.

Provides centralized creation of repository instances so services never
construct data access objects directly.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .attendance_repository import AttendanceRepository
    from .event_repository import EventRepository
    from .lesson_repository import LessonRepository
    from .participant_repository import ParticipantRepository
    from .schedule_repository import ScheduleRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_lesson_repository(db: Session) -> "LessonRepository":
        from .lesson_repository import LessonRepository

        return LessonRepository(db)

    @staticmethod
    def create_attendance_repository(db: Session) -> "AttendanceRepository":
        from .attendance_repository import AttendanceRepository

        return AttendanceRepository(db)

    @staticmethod
    def create_event_repository(db: Session) -> "EventRepository":
        from .event_repository import EventRepository

        return EventRepository(db)

    @staticmethod
    def create_participant_repository(db: Session) -> "ParticipantRepository":
        """Create repository for directory and level catalog reads."""
        from .participant_repository import ParticipantRepository

        return ParticipantRepository(db)

    @staticmethod
    def create_schedule_repository(db: Session) -> "ScheduleRepository":
        """Create repository for read-only schedule projections."""
        from .schedule_repository import ScheduleRepository

        return ScheduleRepository(db)
