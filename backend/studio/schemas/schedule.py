"""Read models for schedule views."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import AttendanceStatus
from ._strict_base import StrictModel


class GuardianContact(StrictModel):
    guardian_id: int
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    email: Optional[str] = None


class ScheduleEnrollment(StrictModel):
    enrollment_id: int
    participant_id: int
    first_name: str
    last_name: str
    attendance_status: Optional[AttendanceStatus] = None
    attendance_notes: Optional[str] = None
    guardian_note: Optional[str] = None
    guardian: Optional[GuardianContact] = None


class LessonView(StrictModel):
    """One lesson with its enrollments (empty when nobody is enrolled)."""

    lesson_id: int
    teacher_id: int
    instrument_id: int
    instrument_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: str
    recurrence_group_id: Optional[str] = None
    enrollments: List[ScheduleEnrollment] = Field(default_factory=list)
