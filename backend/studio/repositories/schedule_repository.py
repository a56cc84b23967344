# backend/studio/repositories/schedule_repository.py
"""
Schedule Repository: read-only joins across lessons, enrollments,
participants and attendance.

All joins past ``lessons`` are outer joins so a lesson without enrollments
still yields one row (with NULL enrollment columns).
"""

from datetime import datetime
import logging
from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from ..core.enums import LessonStatus
from ..models.attendance import AttendanceRecord
from ..models.catalog import Instrument
from ..models.lesson import Enrollment, Lesson
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ScheduleRow(NamedTuple):
    lesson: Lesson
    instrument_name: Optional[str]
    enrollment: Optional[Enrollment]
    participant: Optional[User]
    attendance: Optional[AttendanceRecord]


class ScheduleRepository(BaseRepository[Lesson]):
    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    def _schedule_select(self):
        participant = aliased(User, name="participant")
        return (
            select(Lesson, Instrument.name, Enrollment, participant, AttendanceRecord)
            .outerjoin(Instrument, Instrument.id == Lesson.instrument_id)
            .outerjoin(Enrollment, Enrollment.lesson_id == Lesson.id)
            .outerjoin(participant, participant.id == Enrollment.participant_user_id)
            .outerjoin(AttendanceRecord, AttendanceRecord.enrollment_id == Enrollment.id)
        ), participant

    def rows_for_teacher(self, teacher_id: int) -> List[ScheduleRow]:
        """Every lesson owned by ``teacher_id``, start time ascending."""
        stmt, participant = self._schedule_select()
        stmt = stmt.where(Lesson.teacher_user_id == teacher_id).order_by(
            Lesson.start_time.asc(),
            Lesson.id.asc(),
            participant.last_name.asc(),
            participant.first_name.asc(),
        )
        return [ScheduleRow(*row) for row in self.db.execute(stmt)]

    def rows_for_participants(
        self,
        participant_ids: Iterable[int],
        *,
        starting_after: Optional[datetime] = None,
        ended_before: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> List[ScheduleRow]:
        """
        Non-cancelled lessons of the given participants, restricted to their
        own enrollments.
        """
        ids = list(participant_ids)
        if not ids:
            return []
        stmt, participant = self._schedule_select()
        stmt = stmt.where(
            Enrollment.participant_user_id.in_(ids),
            Lesson.status != LessonStatus.CANCELLED.value,
        )
        if starting_after is not None:
            stmt = stmt.where(Lesson.start_time >= starting_after)
        if ended_before is not None:
            stmt = stmt.where(Lesson.end_time < ended_before)
        order = Lesson.start_time.desc() if newest_first else Lesson.start_time.asc()
        stmt = stmt.order_by(order, Lesson.id.asc(), participant.last_name.asc())
        return [ScheduleRow(*row) for row in self.db.execute(stmt)]
