"""
Pydantic schemas for events, eligibility listings and bookings.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from ._strict_base import StrictModel, StrictRequestModel


class EventCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    venue_name: Optional[str] = Field(None, max_length=200)
    start_time: datetime
    end_time: datetime
    event_type: Optional[str] = Field(None, max_length=50)
    max_capacity: Optional[int] = Field(None, description="Seats available; null means unlimited")
    eligible_level_ids: List[int] = Field(
        default_factory=list, description="Admitted levels; empty admits every level"
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "name": "Spring Recital",
                "venue_name": "Main Hall",
                "start_time": "2026-04-18T15:00:00Z",
                "end_time": "2026-04-18T17:00:00Z",
                "event_type": "recital",
                "max_capacity": 10,
                "eligible_level_ids": [2, 3],
            }
        },
    )


class EventResponse(StrictModel):
    id: int
    name: str
    description: Optional[str] = None
    venue_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    event_type: Optional[str] = None
    max_capacity: Optional[int] = None
    is_active: bool = True
    eligible_level_ids: List[int] = Field(default_factory=list)
    eligible_level_names: List[str] = Field(default_factory=list)
    booked_count: int = 0


class ParticipantSummary(StrictModel):
    """Participant as shown in eligibility listings."""

    participant_id: int
    first_name: str
    last_name: str
    age: Optional[int] = None
    current_level_id: Optional[int] = None
    current_level_name: Optional[str] = None


class BookingRequest(StrictRequestModel):
    participant_id: int


class BookingResponse(StrictModel):
    booking_id: int
    event_id: int
    participant_id: int
    booked_by_user_id: Optional[int] = None
    booking_status: str
    booked_at: datetime


class BookedParticipant(StrictModel):
    booking_id: int
    booked_at: datetime
    participant_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None


class BookingCancelResult(StrictModel):
    booking_id: int
    removed: int = Field(..., description="Rows removed: 1, or 0 when already gone")


class EventDeleteResult(StrictModel):
    event_id: int
    deleted: bool


class ScopedEventView(StrictModel):
    """
    An upcoming event as seen by one guardian or teacher: only their own
    participants appear in ``eligible`` and ``booked``.
    """

    event_id: int
    name: str
    description: Optional[str] = None
    venue_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    event_type: Optional[str] = None
    max_capacity: Optional[int] = None
    total_booked_count: int
    eligible: List[ParticipantSummary] = Field(default_factory=list)
    booked: List[BookedParticipant] = Field(default_factory=list)
