# backend/studio/repositories/attendance_repository.py
"""Attendance Repository: one record per enrollment."""

from datetime import datetime
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..models.attendance import AttendanceRecord
from ..models.lesson import Enrollment
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AttendanceRepository(BaseRepository[AttendanceRecord]):
    def __init__(self, db: Session):
        super().__init__(db, AttendanceRecord)

    def get_for_enrollment(self, enrollment_id: int) -> Optional[AttendanceRecord]:
        return (
            self.db.query(AttendanceRecord)
            .filter(AttendanceRecord.enrollment_id == enrollment_id)
            .first()
        )

    def upsert_for_enrollment(
        self,
        enrollment_id: int,
        *,
        status: str,
        notes: Optional[str],
        recorded_at: datetime,
        recorded_by_user_id: int,
    ) -> AttendanceRecord:
        """
        Insert the enrollment's record, or overwrite it if one already exists.

        A single INSERT .. ON CONFLICT statement, so two first-time marks of
        the same enrollment end with one record holding the later write.
        """
        values = {
            "enrollment_id": enrollment_id,
            "status": status,
            "notes": notes,
            "recorded_at": recorded_at,
            "recorded_by_user_id": recorded_by_user_id,
        }
        insert = pg_insert if self.dialect_name == "postgresql" else sqlite_insert
        stmt = insert(AttendanceRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[AttendanceRecord.enrollment_id],
            set_={key: value for key, value in values.items() if key != "enrollment_id"},
        )
        self.db.execute(stmt)
        # Reload so an identity-mapped copy of the row reflects the write
        return self.db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.enrollment_id == enrollment_id)
            .execution_options(populate_existing=True)
        ).scalar_one()

    def list_for_lesson(
        self, lesson_id: int
    ) -> List[Tuple[Enrollment, User, Optional[AttendanceRecord]]]:
        """Every enrollment of the lesson with its attendance record, if any."""
        rows = (
            self.db.query(Enrollment, User, AttendanceRecord)
            .join(User, User.id == Enrollment.participant_user_id)
            .outerjoin(AttendanceRecord, AttendanceRecord.enrollment_id == Enrollment.id)
            .filter(Enrollment.lesson_id == lesson_id)
            .order_by(User.last_name.asc(), User.first_name.asc())
            .all()
        )
        return [(row[0], row[1], row[2]) for row in rows]
