# backend/studio/routes/v1/lessons.py
"""
Lesson routes - API v1

Versioned lesson endpoints under /api/v1/lessons.
All business logic delegated to LessonService and ScheduleService.

Endpoints:
    POST /                                   → Create a lesson or weekly series
    DELETE /series/{group_id}?from_date=     → Remove series occurrences from a date
    PATCH /enrollments/{enrollment_id}/note  → Guardian note on an enrollment
    GET /teacher/{teacher_id}/schedule       → Teacher's full schedule
    GET /guardian/{manager_id}/schedule      → Guardian's upcoming lessons
    GET /guardian/{manager_id}/attendance    → Guardian's attendance history
    DELETE /{lesson_id}                      → Remove one lesson
"""

import asyncio
from datetime import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import (
    ActorContext,
    ensure_self_or_admin,
    get_lesson_service,
    get_schedule_service,
    require_roles,
)
from ...core.enums import RoleName
from ...core.exceptions import DomainException
from ...schemas.lesson import (
    EnrollmentNoteResponse,
    GuardianNoteUpdate,
    LessonDeleteResult,
    LessonSeriesCreate,
    LessonSeriesResult,
    SeriesDeleteResult,
)
from ...schemas.schedule import LessonView
from ...services.lesson_service import LessonService
from ...services.schedule_service import ScheduleService
from ...utils.time_utils import utc_now
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["lessons-v1"])

_staff = require_roles(RoleName.ADMIN, RoleName.TEACHER)


@router.post("", response_model=LessonSeriesResult, status_code=status.HTTP_201_CREATED)
async def create_lessons(
    payload: LessonSeriesCreate,
    actor: ActorContext = Depends(_staff),
    service: LessonService = Depends(get_lesson_service),
) -> LessonSeriesResult:
    """
    Create a lesson, or a weekly series when ``occurrence_count`` > 1.

    Solo lessons take exactly one participant and group lessons two or more;
    callers are expected to enforce that before submitting.
    """
    try:
        return await asyncio.to_thread(service.create_series, payload)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/series/{group_id}", response_model=SeriesDeleteResult)
async def delete_series(
    group_id: str,
    from_date: Optional[datetime] = Query(
        None, description="Remove occurrences starting at or after this instant (default: now)"
    ),
    actor: ActorContext = Depends(_staff),
    service: LessonService = Depends(get_lesson_service),
) -> SeriesDeleteResult:
    cutoff = from_date or utc_now()
    try:
        removed = await asyncio.to_thread(service.delete_series_from, group_id, cutoff)
    except DomainException as e:
        handle_domain_exception(e)
    return SeriesDeleteResult(recurrence_group_id=group_id, cutoff=cutoff, deleted_count=removed)


@router.patch("/enrollments/{enrollment_id}/note", response_model=EnrollmentNoteResponse)
async def update_enrollment_note(
    enrollment_id: int,
    payload: GuardianNoteUpdate,
    actor: ActorContext = Depends(
        require_roles(RoleName.ADMIN, RoleName.TEACHER, RoleName.MANAGER)
    ),
    service: LessonService = Depends(get_lesson_service),
) -> EnrollmentNoteResponse:
    try:
        return await asyncio.to_thread(service.update_guardian_note, enrollment_id, payload.note)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/teacher/{teacher_id}/schedule", response_model=List[LessonView])
async def get_teacher_schedule(
    teacher_id: int,
    actor: ActorContext = Depends(_staff),
    service: ScheduleService = Depends(get_schedule_service),
) -> List[LessonView]:
    ensure_self_or_admin(actor, teacher_id)
    return await asyncio.to_thread(service.schedule_for_owner, teacher_id)


@router.get("/guardian/{manager_id}/schedule", response_model=List[LessonView])
async def get_guardian_schedule(
    manager_id: int,
    actor: ActorContext = Depends(require_roles(RoleName.ADMIN, RoleName.MANAGER)),
    service: ScheduleService = Depends(get_schedule_service),
) -> List[LessonView]:
    ensure_self_or_admin(actor, manager_id)
    return await asyncio.to_thread(service.schedule_for_guardian, manager_id)


@router.get("/guardian/{manager_id}/attendance", response_model=List[LessonView])
async def get_guardian_attendance_history(
    manager_id: int,
    actor: ActorContext = Depends(require_roles(RoleName.ADMIN, RoleName.MANAGER)),
    service: ScheduleService = Depends(get_schedule_service),
) -> List[LessonView]:
    ensure_self_or_admin(actor, manager_id)
    return await asyncio.to_thread(service.attendance_history_for_guardian, manager_id)


@router.delete("/{lesson_id}", response_model=LessonDeleteResult)
async def delete_lesson(
    lesson_id: int,
    actor: ActorContext = Depends(_staff),
    service: LessonService = Depends(get_lesson_service),
) -> LessonDeleteResult:
    """Remove one lesson. A missing lesson reports ``deleted: false`` rather than 404."""
    try:
        deleted = await asyncio.to_thread(service.delete_lesson, lesson_id)
    except DomainException as e:
        handle_domain_exception(e)
    return LessonDeleteResult(lesson_id=lesson_id, deleted=deleted)
