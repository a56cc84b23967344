# backend/studio/models/lesson.py
"""
Lesson and enrollment models.

A lesson is one scheduled occurrence owned by a teacher. Lessons created
together as a weekly series share a ``recurrence_group_id``; a lesson created
on its own has none. Every lesson enrolls one or more participants.
"""

import logging
from datetime import timedelta

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import LessonStatus
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class Lesson(Base):
    """
    One scheduled lesson occurrence.

    Attributes:
        id: Primary key
        teacher_user_id: Owning teacher
        instrument_id: Subject taught
        start_time / end_time: UTC instants, end = start + duration
        duration_minutes: Positive length of the lesson
        status: One of LessonStatus
        recurrence_group_id: ULID shared by a multi-week series, else NULL
    """

    __tablename__ = "lessons"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_lessons_duration_positive"),
        CheckConstraint("end_time > start_time", name="ck_lessons_time_order"),
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')",
            name="ck_lessons_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    instrument_id = Column(Integer, ForeignKey("instruments.id"), nullable=False)
    start_time = Column(UTCDateTime, nullable=False, index=True)
    end_time = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=LessonStatus.SCHEDULED.value)
    recurrence_group_id = Column(String(26), nullable=True, index=True)
    created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)

    teacher = relationship("User", foreign_keys=[teacher_user_id])
    instrument = relationship("Instrument")
    enrollments = relationship("Enrollment", back_populates="lesson")

    def __init__(self, **kwargs):
        """Derive end_time from start_time and duration when not given."""
        super().__init__(**kwargs)
        if self.end_time is None and self.start_time is not None and self.duration_minutes:
            self.end_time = self.start_time + timedelta(minutes=self.duration_minutes)
        if self.status is None:
            self.status = LessonStatus.SCHEDULED.value

    @property
    def is_series_member(self) -> bool:
        return self.recurrence_group_id is not None

    def __repr__(self) -> str:
        return f"<Lesson {self.id} teacher={self.teacher_user_id} start={self.start_time}>"


class Enrollment(Base):
    """Participant enrolled in a lesson, with an optional guardian note."""

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("lesson_id", "participant_user_id", name="uq_enrollments_pair"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False, index=True)
    participant_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    guardian_note = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    lesson = relationship("Lesson", back_populates="enrollments")
    participant = relationship("User", foreign_keys=[participant_user_id])
    attendance = relationship("AttendanceRecord", back_populates="enrollment", uselist=False)

    def __repr__(self) -> str:
        return f"<Enrollment lesson={self.lesson_id} participant={self.participant_user_id}>"
