# backend/studio/models/__init__.py
"""
Database models for the studio scheduling core.

Importing this package registers every table on ``Base.metadata``.
"""

from .attendance import AttendanceRecord
from .catalog import Instrument, Level, ParticipantLevel
from .event import Event, EventBooking, EventEligibilityLevel
from .lesson import Enrollment, Lesson
from .user import GuardianRelationship, TeacherRoster, User

__all__ = [
    "AttendanceRecord",
    "Enrollment",
    "Event",
    "EventBooking",
    "EventEligibilityLevel",
    "GuardianRelationship",
    "Instrument",
    "Lesson",
    "Level",
    "ParticipantLevel",
    "TeacherRoster",
    "User",
]
