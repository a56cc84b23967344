"""
Pydantic schemas for lesson series creation and removal.

Structural checks (types, lengths) live here; rules that depend on
configuration, such as the occurrence ceiling, are enforced by LessonService.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from ._strict_base import StrictModel, StrictRequestModel


class LessonSeriesCreate(StrictRequestModel):
    """
    Create one lesson or a weekly series.

    Solo lessons are expected to carry exactly one participant and group
    lessons two or more; that rule belongs to the caller.
    """

    teacher_id: int = Field(..., description="Owning teacher user id")
    instrument_id: int = Field(..., description="Instrument taught")
    participant_ids: List[int] = Field(..., description="Participants enrolled in every occurrence")
    first_start: datetime = Field(
        ..., description="Start of the first occurrence; naive values use the reference timezone"
    )
    duration_minutes: Optional[int] = Field(
        None, description="Lesson length; defaults to the configured duration"
    )
    occurrence_count: int = Field(1, description="Number of weekly occurrences")

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "teacher_id": 3,
                "instrument_id": 1,
                "participant_ids": [7, 9],
                "first_start": "2026-02-02T10:00:00Z",
                "duration_minutes": 60,
                "occurrence_count": 4,
            }
        },
    )


class LessonOccurrence(StrictModel):
    lesson_id: int
    start_time: datetime
    end_time: datetime


class LessonSeriesResult(StrictModel):
    """Created occurrences, oldest first."""

    recurrence_count: int
    recurrence_group_id: Optional[str] = Field(
        None, description="Shared ULID when more than one occurrence was created"
    )
    participant_ids: List[int]
    lessons: List[LessonOccurrence]


class LessonDeleteResult(StrictModel):
    lesson_id: int
    deleted: bool


class SeriesDeleteResult(StrictModel):
    recurrence_group_id: str
    cutoff: datetime
    deleted_count: int


class GuardianNoteUpdate(StrictRequestModel):
    note: Optional[str] = Field(None, max_length=2000, description="Free-text note; null clears it")


class EnrollmentNoteResponse(StrictModel):
    enrollment_id: int
    lesson_id: int
    participant_id: int
    guardian_note: Optional[str] = None
