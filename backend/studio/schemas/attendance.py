"""Pydantic schemas for attendance marking."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..core.enums import AttendanceStatus
from ._strict_base import StrictModel, StrictRequestModel


class AttendanceMark(StrictRequestModel):
    """
    Mark one participant's attendance for a lesson.

    To edit only the note, resubmit the current status unchanged.
    """

    lesson_id: int
    participant_id: int
    status: AttendanceStatus
    notes: Optional[str] = Field(None, max_length=2000)


class AttendanceRecordResponse(StrictModel):
    id: int
    enrollment_id: int
    lesson_id: int
    participant_id: int
    status: AttendanceStatus
    notes: Optional[str] = None
    recorded_at: datetime
    recorded_by_user_id: Optional[int] = None


class LessonAttendanceEntry(StrictModel):
    """One enrolled participant with their attendance, if recorded."""

    enrollment_id: int
    participant_id: int
    first_name: str
    last_name: str
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None
    recorded_at: Optional[datetime] = None
