# backend/studio/routes/v1/attendance.py
"""
Attendance routes - API v1

Endpoints:
    POST /                      → Mark (or re-mark) attendance
    GET /lessons/{lesson_id}    → Attendance panel for one lesson
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends

from ...api.dependencies import ActorContext, get_attendance_service, require_roles
from ...core.enums import RoleName
from ...core.exceptions import DomainException
from ...schemas.attendance import AttendanceMark, AttendanceRecordResponse, LessonAttendanceEntry
from ...services.attendance_service import AttendanceService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["attendance-v1"])

_staff = require_roles(RoleName.ADMIN, RoleName.TEACHER)


@router.post("", response_model=AttendanceRecordResponse)
async def mark_attendance(
    payload: AttendanceMark,
    actor: ActorContext = Depends(_staff),
    service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceRecordResponse:
    try:
        return await asyncio.to_thread(
            service.mark_attendance,
            payload.lesson_id,
            payload.participant_id,
            actor.actor_id,
            payload.status,
            payload.notes,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/lessons/{lesson_id}", response_model=List[LessonAttendanceEntry])
async def get_lesson_attendance(
    lesson_id: int,
    actor: ActorContext = Depends(_staff),
    service: AttendanceService = Depends(get_attendance_service),
) -> List[LessonAttendanceEntry]:
    try:
        return await asyncio.to_thread(service.get_lesson_attendance, lesson_id)
    except DomainException as e:
        handle_domain_exception(e)
