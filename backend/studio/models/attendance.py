# backend/studio/models/attendance.py
"""Attendance outcome recorded against an enrollment."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import AttendanceStatus
from ..database import Base
from .types import UTCDateTime


class AttendanceRecord(Base):
    """
    At most one per enrollment (``enrollment_id`` is unique), so marking a
    lesson twice updates the row in place.
    """

    __tablename__ = "attendance_records"
    __table_args__ = (
        CheckConstraint(
            "status IN ('Pending', 'Present', 'Absent', 'Late')",
            name="ck_attendance_records_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id"), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default=AttendanceStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    recorded_at = Column(UTCDateTime, server_default=func.now(), nullable=False)
    recorded_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    enrollment = relationship("Enrollment", back_populates="attendance")

    def __repr__(self) -> str:
        return f"<AttendanceRecord enrollment={self.enrollment_id} status={self.status}>"
