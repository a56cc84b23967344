# backend/studio/repositories/lesson_repository.py
"""
Lesson Repository for the studio scheduling core.

Handles lessons, their enrollments and the dependency-ordered removal of
lessons (attendance records, then enrollments, then the lessons).
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.attendance import AttendanceRecord
from ..models.lesson import Enrollment, Lesson
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LessonRepository(BaseRepository[Lesson]):
    """Data access for lessons and enrollments."""

    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    def add_enrollment(self, lesson_id: int, participant_id: int) -> Enrollment:
        enrollment = Enrollment(lesson_id=lesson_id, participant_user_id=participant_id)
        self.db.add(enrollment)
        self.db.flush()
        return enrollment

    def get_enrollment(self, lesson_id: int, participant_id: int) -> Optional[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(
                Enrollment.lesson_id == lesson_id,
                Enrollment.participant_user_id == participant_id,
            )
            .first()
        )

    def get_enrollment_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        return self.db.get(Enrollment, enrollment_id)

    def get_series_ids_from(self, recurrence_group_id: str, cutoff: datetime) -> List[int]:
        """Ids of series members starting at or after ``cutoff``."""
        rows = self.db.execute(
            select(Lesson.id).where(
                Lesson.recurrence_group_id == recurrence_group_id,
                Lesson.start_time >= cutoff,
            )
        )
        return [row[0] for row in rows]

    def delete_lessons(self, lesson_ids: Sequence[int]) -> int:
        """
        Remove lessons with their enrollments and attendance records.

        Runs inside the caller's transaction; returns the number of lessons removed.
        """
        ids = list(lesson_ids)
        if not ids:
            return 0

        enrollment_ids = select(Enrollment.id).where(Enrollment.lesson_id.in_(ids))
        attendance_removed = self._delete_where(
            AttendanceRecord.enrollment_id.in_(enrollment_ids), model=AttendanceRecord
        )
        enrollments_removed = self._delete_where(Enrollment.lesson_id.in_(ids), model=Enrollment)
        lessons_removed = self._delete_where(Lesson.id.in_(ids))

        self.logger.debug(
            "Removed %d lessons (%d enrollments, %d attendance records)",
            lessons_removed,
            enrollments_removed,
            attendance_removed,
        )
        return lessons_removed
