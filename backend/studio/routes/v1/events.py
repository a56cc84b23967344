# backend/studio/routes/v1/events.py
"""
Event routes - API v1

Versioned event endpoints under /api/v1/events.
All business logic delegated to EventService.

Endpoints:
    GET /?filter=upcoming|past|all     → List events
    POST /                             → Create an event
    GET /manager/{manager_id}          → Guardian-scoped upcoming events
    GET /teacher/{teacher_id}          → Roster-scoped upcoming events
    DELETE /bookings/{booking_id}      → Cancel a booking (idempotent)
    GET /{event_id}/eligible           → Participants who may be booked now
    GET /{event_id}/bookings           → Booked participants
    POST /{event_id}/bookings          → Book a participant
    DELETE /{event_id}                 → Remove an event
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import (
    ActorContext,
    ensure_self_or_admin,
    get_actor_context,
    get_event_service,
    require_roles,
)
from ...core.enums import EventListFilter, RoleName
from ...core.exceptions import DomainException
from ...schemas.event import (
    BookedParticipant,
    BookingCancelResult,
    BookingRequest,
    BookingResponse,
    EventCreate,
    EventDeleteResult,
    EventResponse,
    ParticipantSummary,
    ScopedEventView,
)
from ...services.event_service import EventService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events-v1"])

_staff = require_roles(RoleName.ADMIN, RoleName.TEACHER)


@router.get("", response_model=List[EventResponse])
async def list_events(
    filter: EventListFilter = Query(EventListFilter.UPCOMING),
    actor: ActorContext = Depends(get_actor_context),
    service: EventService = Depends(get_event_service),
) -> List[EventResponse]:
    return await asyncio.to_thread(service.list_events, filter)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    actor: ActorContext = Depends(require_roles(RoleName.ADMIN)),
    service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        return await asyncio.to_thread(service.create_event, payload)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/manager/{manager_id}", response_model=List[ScopedEventView])
async def get_manager_events(
    manager_id: int,
    actor: ActorContext = Depends(require_roles(RoleName.ADMIN, RoleName.MANAGER)),
    service: EventService = Depends(get_event_service),
) -> List[ScopedEventView]:
    ensure_self_or_admin(actor, manager_id)
    return await asyncio.to_thread(service.events_for_manager, manager_id)


@router.get("/teacher/{teacher_id}", response_model=List[ScopedEventView])
async def get_teacher_events(
    teacher_id: int,
    actor: ActorContext = Depends(_staff),
    service: EventService = Depends(get_event_service),
) -> List[ScopedEventView]:
    ensure_self_or_admin(actor, teacher_id)
    return await asyncio.to_thread(service.events_for_teacher, teacher_id)


@router.delete("/bookings/{booking_id}", response_model=BookingCancelResult)
async def cancel_booking(
    booking_id: int,
    actor: ActorContext = Depends(_staff),
    service: EventService = Depends(get_event_service),
) -> BookingCancelResult:
    """Cancel a booking. Cancelling twice succeeds and reports ``removed: 0``."""
    try:
        removed = await asyncio.to_thread(service.cancel_booking, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingCancelResult(booking_id=booking_id, removed=removed)


@router.get("/{event_id}/eligible", response_model=List[ParticipantSummary])
async def list_eligible_participants(
    event_id: int,
    actor: ActorContext = Depends(_staff),
    service: EventService = Depends(get_event_service),
) -> List[ParticipantSummary]:
    try:
        return await asyncio.to_thread(service.list_eligible, event_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{event_id}/bookings", response_model=List[BookedParticipant])
async def list_booked_participants(
    event_id: int,
    actor: ActorContext = Depends(_staff),
    service: EventService = Depends(get_event_service),
) -> List[BookedParticipant]:
    try:
        return await asyncio.to_thread(service.list_booked, event_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{event_id}/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Already booked, eligibility lost or event full"},
        503: {"description": "Lock wait timed out; retry"},
    },
)
async def book_participant(
    event_id: int,
    payload: BookingRequest,
    actor: ActorContext = Depends(_staff),
    service: EventService = Depends(get_event_service),
) -> BookingResponse:
    """
    Book a participant onto an event.

    A 409 with code ELIGIBILITY_LOST means the eligible list the caller saw is
    stale: refresh it and retry rather than resubmitting blindly.
    """
    try:
        return await asyncio.to_thread(
            service.book, event_id, payload.participant_id, actor.actor_id
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{event_id}", response_model=EventDeleteResult)
async def delete_event(
    event_id: int,
    actor: ActorContext = Depends(require_roles(RoleName.ADMIN)),
    service: EventService = Depends(get_event_service),
) -> EventDeleteResult:
    try:
        deleted = await asyncio.to_thread(service.delete_event, event_id)
    except DomainException as e:
        handle_domain_exception(e)
    return EventDeleteResult(event_id=event_id, deleted=deleted)
