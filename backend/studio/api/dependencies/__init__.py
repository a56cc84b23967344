# backend/studio/api/dependencies/__init__.py
"""
Centralized dependency injection for the HTTP interface.
"""

from .auth import ActorContext, ensure_self_or_admin, get_actor_context, require_roles
from .database import get_db, get_session_factory, get_settings
from .services import (
    get_attendance_service,
    get_event_service,
    get_lesson_service,
    get_participant_service,
    get_schedule_service,
)

__all__ = [
    "ActorContext",
    "ensure_self_or_admin",
    "get_actor_context",
    "get_attendance_service",
    "get_db",
    "get_event_service",
    "get_lesson_service",
    "get_participant_service",
    "get_schedule_service",
    "get_session_factory",
    "get_settings",
    "require_roles",
]
