# backend/studio/services/schedule_service.py
"""
Schedule Service: read-only lesson views for teachers and guardians.

Views join lessons, instruments, enrollments, attendance and guardian
contacts. Nothing here writes or locks.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.schedule_repository import ScheduleRow
from ..schemas.schedule import GuardianContact, LessonView, ScheduleEnrollment
from ..utils.time_utils import utc_now
from .base import BaseService

logger = logging.getLogger(__name__)


def _guardian_contact(guardian: Optional[User]) -> Optional[GuardianContact]:
    if guardian is None:
        return None
    return GuardianContact(
        guardian_id=guardian.id,
        first_name=guardian.first_name,
        last_name=guardian.last_name,
        phone_number=guardian.phone_number,
        email=guardian.email,
    )


class ScheduleService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)
        self.participant_repository = RepositoryFactory.create_participant_repository(db)

    def _assemble(self, rows: List[ScheduleRow]) -> List[LessonView]:
        """Fold joined rows into one view per lesson, keeping row order."""
        participant_ids = {row.participant.id for row in rows if row.participant is not None}
        guardians = self.participant_repository.guardians_for(participant_ids)

        views: Dict[int, LessonView] = {}
        for row in rows:
            lesson = row.lesson
            view = views.get(lesson.id)
            if view is None:
                view = LessonView(
                    lesson_id=lesson.id,
                    teacher_id=lesson.teacher_user_id,
                    instrument_id=lesson.instrument_id,
                    instrument_name=row.instrument_name,
                    start_time=lesson.start_time,
                    end_time=lesson.end_time,
                    duration_minutes=lesson.duration_minutes,
                    status=lesson.status,
                    recurrence_group_id=lesson.recurrence_group_id,
                )
                views[lesson.id] = view

            if row.enrollment is None or row.participant is None:
                continue
            view.enrollments.append(
                ScheduleEnrollment(
                    enrollment_id=row.enrollment.id,
                    participant_id=row.participant.id,
                    first_name=row.participant.first_name,
                    last_name=row.participant.last_name,
                    attendance_status=row.attendance.status if row.attendance else None,
                    attendance_notes=row.attendance.notes if row.attendance else None,
                    guardian_note=row.enrollment.guardian_note,
                    guardian=_guardian_contact(guardians.get(row.participant.id)),
                )
            )
        return list(views.values())

    @BaseService.measure_operation("schedule_for_owner")
    def schedule_for_owner(self, teacher_id: int) -> List[LessonView]:
        """
        Every lesson the teacher owns, start time ascending.

        Lessons without enrollments appear with an empty enrollment list.
        """
        return self._assemble(self.schedule_repository.rows_for_teacher(teacher_id))

    @BaseService.measure_operation("schedule_for_guardian")
    def schedule_for_guardian(self, manager_id: int) -> List[LessonView]:
        """Upcoming, non-cancelled lessons of the guardian's participants."""
        participant_ids = self.participant_repository.participant_ids_for_guardian(manager_id)
        rows = self.schedule_repository.rows_for_participants(
            participant_ids, starting_after=utc_now()
        )
        return self._assemble(rows)

    @BaseService.measure_operation("attendance_history_for_guardian")
    def attendance_history_for_guardian(self, manager_id: int) -> List[LessonView]:
        """Finished, non-cancelled lessons of the guardian's participants, newest first."""
        participant_ids = self.participant_repository.participant_ids_for_guardian(manager_id)
        rows = self.schedule_repository.rows_for_participants(
            participant_ids, ended_before=utc_now(), newest_first=True
        )
        return self._assemble(rows)
