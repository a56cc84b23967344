# backend/studio/models/event.py
"""
Event models: capacity-limited activities booked per participant.

Classes:
    Event: The activity itself
    EventEligibilityLevel: Level admitted to an event (none = all levels)
    EventBooking: One participant booked onto one event
"""

import logging

from sqlalchemy import (
    Boolean,
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

from ..core.enums import EventBookingStatus
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class Event(Base):
    """
    Scheduled activity.

    ``max_capacity`` NULL means unlimited. The eligible level set lives in
    ``event_eligibility_levels``; an empty set admits every level.
    """

    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_events_time_order"),
        CheckConstraint(
            "max_capacity IS NULL OR max_capacity > 0", name="ck_events_capacity_positive"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    venue_name = Column(String(200), nullable=True)
    start_time = Column(UTCDateTime, nullable=False, index=True)
    end_time = Column(UTCDateTime, nullable=False, index=True)
    event_type = Column(String(50), nullable=True)
    max_capacity = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    eligibility_levels = relationship("EventEligibilityLevel", back_populates="event")
    bookings = relationship("EventBooking", back_populates="event")

    @property
    def eligible_level_ids(self) -> frozenset:
        return frozenset(link.level_id for link in self.eligibility_levels)

    def __repr__(self) -> str:
        return f"<Event {self.id} {self.name!r}>"


class EventEligibilityLevel(Base):
    __tablename__ = "event_eligibility_levels"

    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    level_id = Column(Integer, ForeignKey("levels.id"), primary_key=True)

    event = relationship("Event", back_populates="eligibility_levels")
    level = relationship("Level")


class EventBooking(Base):
    """
    Booking of one participant onto one event.

    The unique pair constraint is a backstop; bookings are created under the
    pair lock taken by ``EventRepository.lock_booking_pair``.
    """

    __tablename__ = "event_bookings"
    __table_args__ = (
        UniqueConstraint("event_id", "participant_user_id", name="uq_event_bookings_pair"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    participant_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booked_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    booking_status = Column(
        String(20), nullable=False, default=EventBookingStatus.CONFIRMED.value
    )
    booked_at = Column(UTCDateTime, nullable=False)

    event = relationship("Event", back_populates="bookings")
    participant = relationship("User", foreign_keys=[participant_user_id])

    def __repr__(self) -> str:
        return f"<EventBooking {self.id} event={self.event_id} participant={self.participant_user_id}>"
