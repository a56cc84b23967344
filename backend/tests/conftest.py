# backend/tests/conftest.py
"""
Pytest configuration for the studio scheduling core.

Every test gets its own in-memory SQLite database (one shared connection via
StaticPool) with the full schema created from the models. Nothing here
touches a configured DATABASE_URL, so tests can never reach a real database.
"""

import os
import sys

# Set testing mode BEFORE any studio imports
os.environ["is_testing"] = "true"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from studio.core.config import Settings, settings

settings.is_testing = True

from datetime import date, datetime, timezone
from typing import Callable, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from studio.core.enums import RoleName
from studio.database import Base, build_session_factory, create_db_engine
from studio.main import create_app
from studio.models import (
    Event,
    EventEligibilityLevel,
    GuardianRelationship,
    Instrument,
    Level,
    ParticipantLevel,
    TeacherRoster,
    User,
)
from studio.services import attendance_service, event_service, schedule_service
from tests.factories.directory_builders import FIXED_NOW

# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(database_url="sqlite://", is_testing=True, log_level="WARNING")


@pytest.fixture
def engine(test_settings: Settings):
    engine = create_db_engine(test_settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Create a new database session for each test."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def file_engine(tmp_path, test_settings: Settings):
    """
    File-backed SQLite engine for tests that need several real connections
    (concurrent writers contend on the database lock).
    """
    url = f"sqlite:///{tmp_path / 'studio_test.db'}"
    engine = create_db_engine(test_settings, database_url=url, pool_name="TEST")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(engine, test_settings: Settings):
    """Test client bound to the per-test engine."""
    app = create_app(test_settings, engine=engine)
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# DIRECTORY AND CATALOG FIXTURES
# ============================================================================


def _add_user(db: Session, first: str, last: str, role: RoleName, **extra) -> User:
    user = User(first_name=first, last_name=last, role=role.value, **extra)
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def admin_user(db: Session) -> User:
    user = _add_user(db, "Ada", "Admin", RoleName.ADMIN, email="admin@example.com")
    db.commit()
    return user


@pytest.fixture
def teacher_user(db: Session) -> User:
    user = _add_user(db, "Tomas", "Teacher", RoleName.TEACHER, email="teacher@example.com")
    db.commit()
    return user


@pytest.fixture
def other_teacher(db: Session) -> User:
    user = _add_user(db, "Olga", "Other", RoleName.TEACHER, email="other.teacher@example.com")
    db.commit()
    return user


@pytest.fixture
def guardian_user(db: Session) -> User:
    user = _add_user(
        db,
        "Grace",
        "Guardian",
        RoleName.MANAGER,
        email="guardian@example.com",
        phone_number="555-0100",
    )
    db.commit()
    return user


@pytest.fixture
def instrument(db: Session) -> Instrument:
    piano = Instrument(name="Piano")
    db.add(piano)
    db.commit()
    return piano


@pytest.fixture
def levels(db: Session) -> dict:
    """Three curriculum levels keyed by level_number."""
    created = {}
    for number, name in ((1, "Beginner"), (2, "Intermediate"), (3, "Advanced")):
        level = Level(name=name, level_number=number)
        db.add(level)
        created[number] = level
    db.commit()
    return created


@pytest.fixture
def make_participant(db: Session) -> Callable[..., User]:
    """
    Factory for participants with optional guardian, roster teacher and level.

    The level is recorded as completed on ``level_completed`` (default
    2025-09-01).
    """

    def _make(
        first_name: str,
        last_name: str,
        date_of_birth: Optional[date],
        *,
        guardian: Optional[User] = None,
        teacher: Optional[User] = None,
        level: Optional[Level] = None,
        level_completed: date = date(2025, 9, 1),
        self_managed: bool = False,
    ) -> User:
        participant = _add_user(
            db, first_name, last_name, RoleName.STUDENT, date_of_birth=date_of_birth
        )
        if guardian is not None:
            db.add(
                GuardianRelationship(
                    guardian_user_id=guardian.id,
                    participant_user_id=participant.id,
                    relationship_type="parent",
                )
            )
        if self_managed:
            db.add(
                GuardianRelationship(
                    guardian_user_id=participant.id,
                    participant_user_id=participant.id,
                    relationship_type="self",
                    is_self_managed=True,
                )
            )
        if teacher is not None:
            db.add(
                TeacherRoster(teacher_user_id=teacher.id, participant_user_id=participant.id)
            )
        if level is not None:
            db.add(
                ParticipantLevel(
                    participant_user_id=participant.id,
                    level_id=level.id,
                    date_completed=level_completed,
                )
            )
        db.commit()
        return participant

    return _make


@pytest.fixture
def make_event(db: Session) -> Callable[..., Event]:
    """Factory for events; times default to a week after FIXED_NOW."""

    def _make(
        name: str = "Spring Recital",
        *,
        start_time: datetime = datetime(2026, 3, 9, 15, 0, tzinfo=timezone.utc),
        end_time: datetime = datetime(2026, 3, 9, 17, 0, tzinfo=timezone.utc),
        max_capacity: Optional[int] = 10,
        level_ids: tuple = (),
        is_active: bool = True,
    ) -> Event:
        event = Event(
            name=name,
            venue_name="Main Hall",
            start_time=start_time,
            end_time=end_time,
            event_type="recital",
            max_capacity=max_capacity,
            is_active=is_active,
        )
        db.add(event)
        db.flush()
        for level_id in level_ids:
            db.add(EventEligibilityLevel(event_id=event.id, level_id=level_id))
        db.commit()
        return event

    return _make


@pytest.fixture
def frozen_clock(monkeypatch):
    """
    Pin ``utc_now`` inside the services to FIXED_NOW.

    ``frozen_clock.set(dt)`` moves the clock for the rest of the test.
    """

    class _Clock:
        def __init__(self) -> None:
            self.now = FIXED_NOW

        def __call__(self) -> datetime:
            return self.now

        def set(self, value: datetime) -> None:
            self.now = value

    clock = _Clock()
    for module in (attendance_service, event_service, schedule_service):
        monkeypatch.setattr(module, "utc_now", clock)
    return clock
