# backend/studio/services/attendance_service.py
"""
Attendance Service: records one participant's outcome for one lesson.

Marking is an upsert keyed on the enrollment, so re-marking a lesson
updates the existing record instead of adding a second one.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotEnrolledException, NotFoundException
from ..repositories.factory import RepositoryFactory
from ..schemas.attendance import AttendanceRecordResponse, LessonAttendanceEntry
from ..utils.time_utils import utc_now
from .base import BaseService

logger = logging.getLogger(__name__)


class AttendanceService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.attendance_repository = RepositoryFactory.create_attendance_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    @BaseService.measure_operation("mark_attendance")
    def mark_attendance(
        self,
        lesson_id: int,
        participant_id: int,
        actor_id: int,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> AttendanceRecordResponse:
        """
        Record attendance for (lesson, participant).

        Raises:
            NotEnrolledException: The participant is not enrolled in the lesson
        """
        status_value = AttendanceStatus(status).value

        with self.transaction():
            enrollment = self.lesson_repository.get_enrollment(lesson_id, participant_id)
            if enrollment is None:
                raise NotEnrolledException(lesson_id, participant_id)

            created = self.attendance_repository.get_for_enrollment(enrollment.id) is None
            record = self.attendance_repository.upsert_for_enrollment(
                enrollment.id,
                status=status_value,
                notes=notes,
                recorded_at=utc_now(),
                recorded_by_user_id=actor_id,
            )

        self.log_operation(
            "mark_attendance",
            lesson_id=lesson_id,
            participant_id=participant_id,
            status=status_value,
            created=created,
        )
        return AttendanceRecordResponse(
            id=record.id,
            enrollment_id=record.enrollment_id,
            lesson_id=lesson_id,
            participant_id=participant_id,
            status=record.status,
            notes=record.notes,
            recorded_at=record.recorded_at,
            recorded_by_user_id=record.recorded_by_user_id,
        )

    def get_lesson_attendance(self, lesson_id: int) -> List[LessonAttendanceEntry]:
        """Every enrolled participant of the lesson with their record, if any."""
        if self.lesson_repository.get_by_id(lesson_id) is None:
            raise NotFoundException(
                "Lesson not found", code="LESSON_NOT_FOUND", details={"lesson_id": lesson_id}
            )
        entries = []
        for enrollment, participant, record in self.attendance_repository.list_for_lesson(
            lesson_id
        ):
            entries.append(
                LessonAttendanceEntry(
                    enrollment_id=enrollment.id,
                    participant_id=participant.id,
                    first_name=participant.first_name,
                    last_name=participant.last_name,
                    status=record.status if record else None,
                    notes=record.notes if record else None,
                    recorded_at=record.recorded_at if record else None,
                )
            )
        return entries
