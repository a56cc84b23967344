# backend/studio/services/event_service.py
"""
Event Service for the studio scheduling core.

Computes who may currently be booked onto an event and performs bookings
as one locked, re-validated transaction so that two staff members booking
the same participant cannot both succeed.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import date
import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.enums import EventListFilter
from ..core.exceptions import (
    AlreadyBookedException,
    CapacityReachedException,
    EligibilityLostException,
    NotFoundException,
    ValidationException,
)
from ..models.event import Event, EventBooking
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.event import (
    BookedParticipant,
    BookingResponse,
    EventCreate,
    EventResponse,
    ParticipantSummary,
    ScopedEventView,
)
from ..utils.time_utils import ensure_aware, local_today, utc_now
from .base import BaseService
from .eligibility import EventConstraints, ParticipantProfile, evaluate_eligibility

logger = logging.getLogger(__name__)

_PAIR_CONSTRAINT = "uq_event_bookings_pair"
_PAIR_COLUMNS = ("event_bookings.event_id", "event_bookings.participant_user_id")
_UNIQUE_VIOLATION = "23505"


def _is_pair_conflict(exc: IntegrityError) -> bool:
    """
    True when ``exc`` is a unique violation of the (event, participant) pair.

    PostgreSQL reports the SQLSTATE and the constraint name; SQLite only
    names the columns, in no guaranteed order.
    """
    orig = exc.orig
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode is not None:
        if pgcode != _UNIQUE_VIOLATION:
            return False
        constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
        if constraint is not None:
            return constraint == _PAIR_CONSTRAINT
        return _PAIR_CONSTRAINT in str(orig)
    message = str(orig).lower()
    return "unique constraint failed" in message and all(
        column in message for column in _PAIR_COLUMNS
    )


def _booked_participant(booking: EventBooking, participant: User) -> BookedParticipant:
    return BookedParticipant(
        booking_id=booking.id,
        booked_at=booking.booked_at,
        participant_id=participant.id,
        first_name=participant.first_name,
        last_name=participant.last_name,
        email=participant.email,
        phone_number=participant.phone_number,
    )


class EventService(BaseService):
    """Event eligibility, booking and cancellation."""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.event_repository = RepositoryFactory.create_event_repository(db)
        self.participant_repository = RepositoryFactory.create_participant_repository(db)

    def _today(self) -> date:
        return local_today(self.settings.tzinfo, utc_now())

    def _require_event(self, event_id: int, for_update: bool = False) -> Event:
        event = self.event_repository.get_event(event_id, for_update=for_update)
        if event is None:
            raise NotFoundException(
                "Event not found", code="EVENT_NOT_FOUND", details={"event_id": event_id}
            )
        return event

    def _constraints(self, event_id: int, level_ids: Iterable[int]) -> EventConstraints:
        return EventConstraints(
            event_id=event_id,
            eligible_level_ids=frozenset(level_ids),
            max_age=self.settings.max_participant_age,
        )

    def _profiles(
        self, participant_ids: Optional[Iterable[int]] = None
    ) -> List[ParticipantProfile]:
        return [
            ParticipantProfile(
                participant_id=user.id,
                first_name=user.first_name,
                last_name=user.last_name,
                date_of_birth=user.date_of_birth,
                current_level_id=level_id,
                current_level_name=level_name,
            )
            for user, level_id, level_name in self.participant_repository.list_participants(
                participant_ids
            )
        ]

    def _eligible_summaries(
        self,
        profiles: List[ParticipantProfile],
        constraints: EventConstraints,
        booked_ids: Set[int],
        today: date,
    ) -> List[ParticipantSummary]:
        summaries = []
        for profile in profiles:
            decision = evaluate_eligibility(
                replace(profile, already_booked=profile.participant_id in booked_ids),
                constraints,
                today=today,
            )
            if decision:
                summaries.append(
                    ParticipantSummary(
                        participant_id=profile.participant_id,
                        first_name=profile.first_name,
                        last_name=profile.last_name,
                        age=decision.age,
                        current_level_id=profile.current_level_id,
                        current_level_name=profile.current_level_name,
                    )
                )
        return summaries

    @BaseService.measure_operation("list_eligible")
    def list_eligible(self, event_id: int) -> List[ParticipantSummary]:
        """
        Participants who may be booked onto the event right now.

        Age and level are evaluated against the current instant on every
        call. Results are ordered by last then first name.
        """
        self._require_event(event_id)
        constraints = self._constraints(
            event_id, self.event_repository.get_eligible_level_ids(event_id)
        )
        booked_ids = self.event_repository.get_booked_participant_ids(event_id)
        return self._eligible_summaries(self._profiles(), constraints, booked_ids, self._today())

    @BaseService.measure_operation("book")
    def book(self, event_id: int, participant_id: int, acting_staff_id: int) -> BookingResponse:
        """
        Book a participant onto an event.

        Protocol, all inside one transaction:
        1. bound lock waits and, when capacity is enforced, lock the event row
        2. lock the (event, participant) pair and read any existing booking
        3. existing booking -> AlreadyBookedException
        4. re-evaluate eligibility on live data -> EligibilityLostException
        5. capacity check -> CapacityReachedException
        6. insert the booking stamped with now and the acting staff id

        Raises:
            NotFoundException: Unknown event
            AlreadyBookedException: The pair is already booked
            EligibilityLostException: The participant no longer qualifies
            CapacityReachedException: No seats left
            TransientStoreException: Lock timeout, deadlock or lost connection
        """
        enforce_capacity = self.settings.enforce_event_capacity

        with self.transaction():
            self.event_repository.set_lock_timeout(self.settings.db_lock_timeout_ms)
            event = self._require_event(event_id, for_update=enforce_capacity)

            self.event_repository.lock_booking_pair(event_id, participant_id)
            existing = self.event_repository.get_booking_for_pair(
                event_id, participant_id, for_update=True
            )
            if existing is not None:
                raise AlreadyBookedException(event_id, participant_id)

            profiles = self._profiles([participant_id])
            if not profiles:
                raise EligibilityLostException(
                    event_id, participant_id, reason="unknown_participant"
                )
            constraints = self._constraints(
                event_id, self.event_repository.get_eligible_level_ids(event_id)
            )
            decision = evaluate_eligibility(profiles[0], constraints, today=self._today())
            if not decision:
                self.logger.info(
                    "Booking rejected on re-validation",
                    extra={
                        "event_id": event_id,
                        "participant_id": participant_id,
                        "reason": decision.reason,
                    },
                )
                raise EligibilityLostException(event_id, participant_id, reason=decision.reason)

            if enforce_capacity and event.max_capacity is not None:
                if self.event_repository.count_bookings(event_id) >= event.max_capacity:
                    raise CapacityReachedException(event_id, event.max_capacity)

            try:
                booking = self.event_repository.create_booking(
                    event_id, participant_id, acting_staff_id, utc_now()
                )
            except IntegrityError as exc:
                if _is_pair_conflict(exc):
                    raise AlreadyBookedException(event_id, participant_id) from exc
                raise

        self.log_operation(
            "book",
            event_id=event_id,
            participant_id=participant_id,
            booking_id=booking.id,
            booked_by=acting_staff_id,
        )
        return BookingResponse(
            booking_id=booking.id,
            event_id=booking.event_id,
            participant_id=booking.participant_user_id,
            booked_by_user_id=booking.booked_by_user_id,
            booking_status=booking.booking_status,
            booked_at=booking.booked_at,
        )

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: int) -> int:
        """Delete a booking. Returns rows removed; a missing booking yields 0."""
        with self.transaction():
            removed = self.event_repository.delete_booking(booking_id)
        self.log_operation("cancel_booking", booking_id=booking_id, removed=removed)
        return removed

    def list_booked(self, event_id: int) -> List[BookedParticipant]:
        self._require_event(event_id)
        return [
            _booked_participant(booking, participant)
            for booking, participant in self.event_repository.list_bookings(event_id)
        ]

    def _scoped_views(self, participant_ids: Set[int]) -> List[ScopedEventView]:
        if not participant_ids:
            return []
        events = self.event_repository.list_active_events_ending_after(utc_now())
        if not events:
            return []

        event_ids = [event.id for event in events]
        level_map = self.event_repository.get_eligible_level_map(event_ids)
        booked_map = self.event_repository.get_booked_pairs(event_ids)
        counts = self.event_repository.get_booking_counts(event_ids)
        bookings_by_event: Dict[int, List[BookedParticipant]] = defaultdict(list)
        for booking, participant in self.event_repository.list_bookings_for_participants(
            event_ids, participant_ids
        ):
            bookings_by_event[booking.event_id].append(_booked_participant(booking, participant))

        profiles = self._profiles(participant_ids)
        today = self._today()
        views = []
        for event in events:
            eligible = self._eligible_summaries(
                profiles,
                self._constraints(event.id, level_map[event.id]),
                booked_map[event.id],
                today,
            )
            booked = bookings_by_event.get(event.id, [])
            if not eligible and not booked:
                continue
            views.append(
                ScopedEventView(
                    event_id=event.id,
                    name=event.name,
                    description=event.description,
                    venue_name=event.venue_name,
                    start_time=event.start_time,
                    end_time=event.end_time,
                    event_type=event.event_type,
                    max_capacity=event.max_capacity,
                    total_booked_count=counts[event.id],
                    eligible=eligible,
                    booked=booked,
                )
            )
        return views

    @BaseService.measure_operation("events_for_manager")
    def events_for_manager(self, manager_id: int) -> List[ScopedEventView]:
        """Upcoming events restricted to the guardian's participants."""
        return self._scoped_views(
            self.participant_repository.participant_ids_for_guardian(manager_id)
        )

    @BaseService.measure_operation("events_for_teacher")
    def events_for_teacher(self, teacher_id: int) -> List[ScopedEventView]:
        """Upcoming events restricted to the teacher's roster."""
        return self._scoped_views(
            self.participant_repository.participant_ids_for_teacher(teacher_id)
        )

    @BaseService.measure_operation("create_event")
    def create_event(self, data: EventCreate) -> EventResponse:
        start_time = ensure_aware(data.start_time, self.settings.tzinfo)
        end_time = ensure_aware(data.end_time, self.settings.tzinfo)
        if end_time <= start_time:
            raise ValidationException(
                "Event must end after it starts", code="INVALID_EVENT_TIMES"
            )
        if data.max_capacity is not None and data.max_capacity <= 0:
            raise ValidationException(
                "Capacity must be positive",
                code="INVALID_CAPACITY",
                details={"max_capacity": data.max_capacity},
            )
        level_ids = list(dict.fromkeys(data.eligible_level_ids))

        with self.transaction():
            missing = set(level_ids) - self.participant_repository.existing_level_ids(level_ids)
            if missing:
                raise ValidationException(
                    "Unknown level ids",
                    code="UNKNOWN_LEVELS",
                    details={"level_ids": sorted(missing)},
                )
            event = self.event_repository.create(
                name=data.name,
                description=data.description,
                venue_name=data.venue_name,
                start_time=start_time,
                end_time=end_time,
                event_type=data.event_type,
                max_capacity=data.max_capacity,
                is_active=True,
            )
            self.event_repository.add_eligible_levels(event.id, level_ids)
            level_names = self.event_repository.get_eligible_level_names([event.id])[event.id]

        self.log_operation("create_event", event_id=event.id, levels=level_ids)
        return self._to_response(event, level_ids, level_names, 0)

    def _to_response(
        self, event: Event, level_ids: Iterable[int], level_names: List[str], booked: int
    ) -> EventResponse:
        return EventResponse(
            id=event.id,
            name=event.name,
            description=event.description,
            venue_name=event.venue_name,
            start_time=event.start_time,
            end_time=event.end_time,
            event_type=event.event_type,
            max_capacity=event.max_capacity,
            is_active=bool(event.is_active),
            eligible_level_ids=sorted(level_ids),
            eligible_level_names=level_names,
            booked_count=booked,
        )

    def list_events(
        self, event_filter: EventListFilter = EventListFilter.UPCOMING
    ) -> List[EventResponse]:
        """Events with admitted levels and booked counts; past events newest first."""
        events = self.event_repository.list_events(EventListFilter(event_filter), utc_now())
        event_ids = [event.id for event in events]
        level_map = self.event_repository.get_eligible_level_map(event_ids)
        name_map = self.event_repository.get_eligible_level_names(event_ids)
        counts = self.event_repository.get_booking_counts(event_ids)
        return [
            self._to_response(event, level_map[event.id], name_map[event.id], counts[event.id])
            for event in events
        ]

    @BaseService.measure_operation("delete_event")
    def delete_event(self, event_id: int) -> bool:
        """Remove an event with its bookings and admitted levels; False if missing."""
        with self.transaction():
            deleted = self.event_repository.delete_event(event_id)
        self.log_operation("delete_event", event_id=event_id, deleted=deleted)
        return deleted
