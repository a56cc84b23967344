# backend/studio/services/lesson_service.py
"""
Lesson Service for the studio scheduling core.

Creates single lessons and weekly series with their enrollments, removes
one lesson or the tail of a series, and lets guardians edit the note on an
enrollment. Every mutation is one all-or-nothing transaction.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.enums import LessonStatus
from ..core.exceptions import NotFoundException, ValidationException
from ..core.ulid_helper import generate_ulid
from ..repositories.factory import RepositoryFactory
from ..schemas.lesson import (
    EnrollmentNoteResponse,
    LessonOccurrence,
    LessonSeriesCreate,
    LessonSeriesResult,
)
from ..utils.time_utils import ensure_aware
from .base import BaseService

logger = logging.getLogger(__name__)

SERIES_INTERVAL = timedelta(days=7)


class LessonService(BaseService):
    """Lesson recurrence and removal."""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    def _validated_participants(self, participant_ids: List[int]) -> List[int]:
        unique_ids = list(dict.fromkeys(participant_ids))
        if not unique_ids:
            raise ValidationException(
                "At least one participant is required", code="PARTICIPANTS_REQUIRED"
            )
        return unique_ids

    def _validate_series(self, data: LessonSeriesCreate, duration: int) -> None:
        if duration <= 0:
            raise ValidationException(
                "Lesson duration must be positive",
                code="INVALID_DURATION",
                details={"duration_minutes": duration},
            )
        ceiling = self.settings.max_series_occurrences
        if not 1 <= data.occurrence_count <= ceiling:
            raise ValidationException(
                f"Occurrence count must be between 1 and {ceiling}",
                code="INVALID_OCCURRENCE_COUNT",
                details={"occurrence_count": data.occurrence_count, "max": ceiling},
            )

    @BaseService.measure_operation("create_series")
    def create_series(self, data: LessonSeriesCreate) -> LessonSeriesResult:
        """
        Create ``occurrence_count`` weekly lessons enrolling the same participants.

        Occurrence i starts at ``first_start + 7 days * i``. A recurrence group
        id is assigned only when more than one occurrence is created. Input is
        validated before any write.
        """
        participant_ids = self._validated_participants(data.participant_ids)
        duration = (
            data.duration_minutes
            if data.duration_minutes is not None
            else self.settings.default_lesson_duration_minutes
        )
        self._validate_series(data, duration)

        first_start = ensure_aware(data.first_start, self.settings.tzinfo)
        group_id = generate_ulid() if data.occurrence_count > 1 else None

        occurrences: List[LessonOccurrence] = []
        with self.transaction():
            for index in range(data.occurrence_count):
                start = first_start + SERIES_INTERVAL * index
                lesson = self.lesson_repository.create(
                    teacher_user_id=data.teacher_id,
                    instrument_id=data.instrument_id,
                    start_time=start,
                    end_time=start + timedelta(minutes=duration),
                    duration_minutes=duration,
                    status=LessonStatus.SCHEDULED.value,
                    recurrence_group_id=group_id,
                )
                for participant_id in participant_ids:
                    self.lesson_repository.add_enrollment(lesson.id, participant_id)
                occurrences.append(
                    LessonOccurrence(
                        lesson_id=lesson.id,
                        start_time=start,
                        end_time=start + timedelta(minutes=duration),
                    )
                )

        self.log_operation(
            "create_series",
            teacher_id=data.teacher_id,
            recurrence_group_id=group_id,
            occurrences=len(occurrences),
            participants=len(participant_ids),
        )
        return LessonSeriesResult(
            recurrence_count=len(occurrences),
            recurrence_group_id=group_id,
            participant_ids=participant_ids,
            lessons=occurrences,
        )

    @BaseService.measure_operation("delete_lesson")
    def delete_lesson(self, lesson_id: int) -> bool:
        """
        Remove a lesson with its enrollments and attendance records.

        Returns False when the lesson does not exist.
        """
        with self.transaction():
            removed = self.lesson_repository.delete_lessons([lesson_id])

        if removed:
            self.log_operation("delete_lesson", lesson_id=lesson_id)
        else:
            self.logger.info("Lesson %s not found; nothing deleted", lesson_id)
        return removed > 0

    @BaseService.measure_operation("delete_series_from")
    def delete_series_from(self, recurrence_group_id: str, cutoff: datetime) -> int:
        """
        Remove every lesson of the series starting at or after ``cutoff``.

        Earlier occurrences are kept as history. Returns the number removed;
        zero is a normal result.
        """
        if not recurrence_group_id:
            raise ValidationException("Recurrence group id is required", code="GROUP_ID_REQUIRED")
        cutoff = ensure_aware(cutoff, self.settings.tzinfo)

        with self.transaction():
            lesson_ids = self.lesson_repository.get_series_ids_from(recurrence_group_id, cutoff)
            removed = self.lesson_repository.delete_lessons(lesson_ids)

        self.log_operation(
            "delete_series_from",
            recurrence_group_id=recurrence_group_id,
            cutoff=cutoff.isoformat(),
            removed=removed,
        )
        return removed

    @BaseService.measure_operation("update_guardian_note")
    def update_guardian_note(
        self, enrollment_id: int, note: Optional[str]
    ) -> EnrollmentNoteResponse:
        with self.transaction():
            enrollment = self.lesson_repository.get_enrollment_by_id(enrollment_id)
            if enrollment is None:
                raise NotFoundException(
                    "Enrollment not found",
                    code="ENROLLMENT_NOT_FOUND",
                    details={"enrollment_id": enrollment_id},
                )
            enrollment.guardian_note = note or None
            self.db.flush()

        return EnrollmentNoteResponse(
            enrollment_id=enrollment.id,
            lesson_id=enrollment.lesson_id,
            participant_id=enrollment.participant_user_id,
            guardian_note=enrollment.guardian_note,
        )
