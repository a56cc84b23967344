# backend/studio/repositories/event_repository.py
"""
Event Repository for the studio scheduling core.

Handles events, their eligible-level sets and bookings, including the
locking reads used by the booking protocol.
"""

from datetime import datetime
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import func, select, text, update
from sqlalchemy.orm import Session

from ..core.enums import EventBookingStatus, EventListFilter
from ..models.catalog import Level
from ..models.event import Event, EventBooking, EventEligibilityLevel
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class EventRepository(BaseRepository[Event]):
    """Data access for events, eligibility levels and bookings."""

    def __init__(self, db: Session):
        super().__init__(db, Event)

    # Locking primitives

    def set_lock_timeout(self, timeout_ms: int) -> None:
        """Bound lock waits for the rest of the current transaction."""
        if self.dialect_name != "postgresql":
            return
        self.db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'"))

    def lock_booking_pair(self, event_id: int, participant_id: int) -> None:
        """
        Take a transaction-scoped advisory lock on (event, participant).

        Row locks cannot cover a booking that does not exist yet, so concurrent
        bookers of the same pair queue here until the holder commits.
        """
        if self.dialect_name != "postgresql":
            return
        self.db.execute(
            text("SELECT pg_advisory_xact_lock(:event_id, :participant_id)"),
            {"event_id": int(event_id), "participant_id": int(participant_id)},
        )

    def get_event(self, event_id: int, for_update: bool = False) -> Optional[Event]:
        if for_update and self.dialect_name != "postgresql":
            self._claim_write_lock(event_id)
        query = self.db.query(Event).filter(Event.id == event_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def _claim_write_lock(self, event_id: int) -> None:
        """
        Begin the write transaction with a no-op update of the event row.

        SQLite ignores FOR UPDATE and pysqlite defers BEGIN to the first write.
        Other bookers wait on the database lock, up to the busy timeout, until
        this transaction ends.
        """
        self.db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(updated_at=Event.updated_at)
            .execution_options(synchronize_session=False)
        )

    # Eligibility levels

    def get_eligible_level_ids(self, event_id: int) -> Set[int]:
        rows = self.db.execute(
            select(EventEligibilityLevel.level_id).where(
                EventEligibilityLevel.event_id == event_id
            )
        )
        return {row[0] for row in rows}

    def get_eligible_level_map(self, event_ids: Iterable[int]) -> Dict[int, Set[int]]:
        ids = list(event_ids)
        result: Dict[int, Set[int]] = {event_id: set() for event_id in ids}
        if not ids:
            return result
        rows = self.db.execute(
            select(EventEligibilityLevel.event_id, EventEligibilityLevel.level_id).where(
                EventEligibilityLevel.event_id.in_(ids)
            )
        )
        for event_id, level_id in rows:
            result[event_id].add(level_id)
        return result

    def get_eligible_level_names(self, event_ids: Iterable[int]) -> Dict[int, List[str]]:
        ids = list(event_ids)
        result: Dict[int, List[str]] = {event_id: [] for event_id in ids}
        if not ids:
            return result
        rows = self.db.execute(
            select(EventEligibilityLevel.event_id, Level.name)
            .join(Level, Level.id == EventEligibilityLevel.level_id)
            .where(EventEligibilityLevel.event_id.in_(ids))
            .order_by(Level.level_number.asc())
        )
        for event_id, level_name in rows:
            result[event_id].append(level_name)
        return result

    def add_eligible_levels(self, event_id: int, level_ids: Iterable[int]) -> None:
        for level_id in level_ids:
            self.db.add(EventEligibilityLevel(event_id=event_id, level_id=level_id))
        self.db.flush()

    # Bookings

    def get_booking_for_pair(
        self, event_id: int, participant_id: int, for_update: bool = False
    ) -> Optional[EventBooking]:
        query = self.db.query(EventBooking).filter(
            EventBooking.event_id == event_id,
            EventBooking.participant_user_id == participant_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def count_bookings(self, event_id: int) -> int:
        return int(
            self.db.execute(
                select(func.count(EventBooking.id)).where(EventBooking.event_id == event_id)
            ).scalar_one()
        )

    def get_booking_counts(self, event_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(event_ids)
        counts = {event_id: 0 for event_id in ids}
        if not ids:
            return counts
        rows = self.db.execute(
            select(EventBooking.event_id, func.count(EventBooking.id))
            .where(EventBooking.event_id.in_(ids))
            .group_by(EventBooking.event_id)
        )
        for event_id, count in rows:
            counts[event_id] = int(count)
        return counts

    def create_booking(
        self, event_id: int, participant_id: int, booked_by: int, booked_at: datetime
    ) -> EventBooking:
        booking = EventBooking(
            event_id=event_id,
            participant_user_id=participant_id,
            booked_by_user_id=booked_by,
            booking_status=EventBookingStatus.CONFIRMED.value,
            booked_at=booked_at,
        )
        self.db.add(booking)
        self.db.flush()
        return booking

    def delete_booking(self, booking_id: int) -> int:
        return self._delete_where(EventBooking.id == booking_id, model=EventBooking)

    def get_booked_participant_ids(self, event_id: int) -> Set[int]:
        rows = self.db.execute(
            select(EventBooking.participant_user_id).where(EventBooking.event_id == event_id)
        )
        return {row[0] for row in rows}

    def get_booked_pairs(self, event_ids: Iterable[int]) -> Dict[int, Set[int]]:
        ids = list(event_ids)
        result: Dict[int, Set[int]] = {event_id: set() for event_id in ids}
        if not ids:
            return result
        rows = self.db.execute(
            select(EventBooking.event_id, EventBooking.participant_user_id).where(
                EventBooking.event_id.in_(ids)
            )
        )
        for event_id, participant_id in rows:
            result[event_id].add(participant_id)
        return result

    def list_bookings(self, event_id: int) -> List[Tuple[EventBooking, User]]:
        """Bookings with participant records, ordered by last then first name."""
        rows = (
            self.db.query(EventBooking, User)
            .join(User, User.id == EventBooking.participant_user_id)
            .filter(EventBooking.event_id == event_id)
            .order_by(User.last_name.asc(), User.first_name.asc())
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def list_bookings_for_participants(
        self, event_ids: Iterable[int], participant_ids: Iterable[int]
    ) -> List[Tuple[EventBooking, User]]:
        events = list(event_ids)
        participants = list(participant_ids)
        if not events or not participants:
            return []
        rows = (
            self.db.query(EventBooking, User)
            .join(User, User.id == EventBooking.participant_user_id)
            .filter(
                EventBooking.event_id.in_(events),
                EventBooking.participant_user_id.in_(participants),
            )
            .order_by(User.last_name.asc(), User.first_name.asc())
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    # Event listing and removal

    def list_events(self, event_filter: EventListFilter, now: datetime) -> List[Event]:
        query = self.db.query(Event)
        if event_filter == EventListFilter.UPCOMING:
            query = query.filter(Event.end_time > now).order_by(Event.start_time.asc())
        elif event_filter == EventListFilter.PAST:
            query = query.filter(Event.end_time <= now).order_by(Event.start_time.desc())
        else:
            query = query.order_by(Event.start_time.asc())
        return query.all()

    def list_active_events_ending_after(self, now: datetime) -> List[Event]:
        return (
            self.db.query(Event)
            .filter(Event.end_time > now, Event.is_active.is_(True))
            .order_by(Event.start_time.asc())
            .all()
        )

    def delete_event(self, event_id: int) -> bool:
        """Bookings, then eligibility levels, then the event. Caller owns the transaction."""
        self._delete_where(EventBooking.event_id == event_id, model=EventBooking)
        self._delete_where(
            EventEligibilityLevel.event_id == event_id, model=EventEligibilityLevel
        )
        return self.delete_by_id(event_id)
