# backend/studio/core/enums.py
"""
Core enums for the studio scheduling core.

Values match what is persisted, so the string form of each member
is what the database and the API exchange.
"""

from enum import Enum


class RoleName(str, Enum):
    """Directory roles supplied by the identity collaborator."""

    ADMIN = "admin"
    TEACHER = "teacher"
    MANAGER = "manager"  # guardian account
    STUDENT = "student"  # participant


class LessonStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendanceStatus(str, Enum):
    PENDING = "Pending"
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class EventBookingStatus(str, Enum):
    CONFIRMED = "Confirmed"


class EventListFilter(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"
    ALL = "all"
