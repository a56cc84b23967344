# backend/studio/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets fresh service instances bound to its own session and to
the settings the application was built with.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import Settings
from ...services.attendance_service import AttendanceService
from ...services.event_service import EventService
from ...services.lesson_service import LessonService
from ...services.participant_service import ParticipantService
from ...services.schedule_service import ScheduleService
from .database import get_db, get_settings


def get_lesson_service(
    db: Session = Depends(get_db), config: Settings = Depends(get_settings)
) -> LessonService:
    return LessonService(db, config)


def get_event_service(
    db: Session = Depends(get_db), config: Settings = Depends(get_settings)
) -> EventService:
    return EventService(db, config)


def get_attendance_service(
    db: Session = Depends(get_db), config: Settings = Depends(get_settings)
) -> AttendanceService:
    return AttendanceService(db, config)


def get_schedule_service(
    db: Session = Depends(get_db), config: Settings = Depends(get_settings)
) -> ScheduleService:
    return ScheduleService(db, config)


def get_participant_service(
    db: Session = Depends(get_db), config: Settings = Depends(get_settings)
) -> ParticipantService:
    return ParticipantService(db, config)
