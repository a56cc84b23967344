# backend/studio/services/eligibility.py
"""
Participant eligibility for events.

Pure functions with no database access: callers load the participant's
birth date, derived current level and booking state, then ask whether the
participant qualifies on a given day. Nothing is cached, so callers pass the
current date on every evaluation.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import AbstractSet, Optional

DEFAULT_MAX_AGE = 18

REASON_TOO_OLD = "too_old"
REASON_UNKNOWN_AGE = "unknown_age"
REASON_LEVEL_NOT_ALLOWED = "level_not_allowed"
REASON_ALREADY_BOOKED = "already_booked"


@dataclass(frozen=True)
class ParticipantProfile:
    participant_id: int
    first_name: str
    last_name: str
    date_of_birth: Optional[date]
    current_level_id: Optional[int] = None
    current_level_name: Optional[str] = None
    already_booked: bool = False


@dataclass(frozen=True)
class EventConstraints:
    """An empty ``eligible_level_ids`` admits every level."""

    event_id: int
    eligible_level_ids: AbstractSet[int] = field(default_factory=frozenset)
    max_age: int = DEFAULT_MAX_AGE


@dataclass(frozen=True)
class EligibilityDecision:
    eligible: bool
    reason: Optional[str] = None
    age: Optional[int] = None

    def __bool__(self) -> bool:
        return self.eligible


def calculate_age(date_of_birth: date, on_date: date) -> int:
    """Age in whole years on ``on_date``; the birthday itself counts."""
    before_birthday = (on_date.month, on_date.day) < (date_of_birth.month, date_of_birth.day)
    return on_date.year - date_of_birth.year - int(before_birthday)


def evaluate_eligibility(
    participant: ParticipantProfile,
    constraints: EventConstraints,
    *,
    today: date,
) -> EligibilityDecision:
    """
    Decide whether ``participant`` may be booked onto the event.

    All rules must hold: age at most ``max_age`` (inclusive), current level in
    the admitted set unless that set is empty, and no existing booking. A
    missing birth date fails the age rule; a participant with no completed
    level fails any non-empty level set.
    """
    if participant.date_of_birth is None:
        return EligibilityDecision(False, REASON_UNKNOWN_AGE)

    age = calculate_age(participant.date_of_birth, today)
    if age > constraints.max_age:
        return EligibilityDecision(False, REASON_TOO_OLD, age)

    if constraints.eligible_level_ids and (
        participant.current_level_id not in constraints.eligible_level_ids
    ):
        return EligibilityDecision(False, REASON_LEVEL_NOT_ALLOWED, age)

    if participant.already_booked:
        return EligibilityDecision(False, REASON_ALREADY_BOOKED, age)

    return EligibilityDecision(True, None, age)
