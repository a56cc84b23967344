from datetime import datetime, timezone

import pytest

from studio.core.enums import AttendanceStatus
from studio.core.exceptions import IntegrityConflictException
from studio.models import (
    AttendanceRecord,
    Enrollment,
    EventBooking,
    GuardianRelationship,
    Lesson,
    ParticipantLevel,
    TeacherRoster,
    User,
)
from studio.schemas.lesson import LessonSeriesCreate
from studio.services.attendance_service import AttendanceService
from studio.services.event_service import EventService
from studio.services.lesson_service import LessonService
from studio.services.participant_service import ParticipantService
from tests.factories.directory_builders import FIXED_TODAY, years_before


@pytest.fixture
def participant_service(db, test_settings) -> ParticipantService:
    return ParticipantService(db, test_settings)


@pytest.fixture
def busy_participant(
    db,
    test_settings,
    frozen_clock,
    make_participant,
    make_event,
    guardian_user,
    teacher_user,
    admin_user,
    instrument,
    levels,
):
    """A participant with a lesson, attendance, a booking, levels and a roster entry."""
    pupil = make_participant(
        "Pia",
        "Park",
        years_before(FIXED_TODAY, 12),
        guardian=guardian_user,
        teacher=teacher_user,
        level=levels[1],
    )
    series = LessonService(db, test_settings).create_series(
        LessonSeriesCreate(
            teacher_id=teacher_user.id,
            instrument_id=instrument.id,
            participant_ids=[pupil.id],
            first_start=datetime(2026, 2, 23, 16, 0, tzinfo=timezone.utc),
            occurrence_count=2,
        )
    )
    AttendanceService(db, test_settings).mark_attendance(
        series.lessons[0].lesson_id, pupil.id, teacher_user.id, AttendanceStatus.PRESENT
    )
    event = make_event()
    EventService(db, test_settings).book(event.id, pupil.id, admin_user.id)
    return pupil


class TestRemoveParticipant:
    def test_removes_every_dependent_record(
        self, db, participant_service, busy_participant, guardian_user
    ):
        pupil_id = busy_participant.id

        result = participant_service.remove_participant(pupil_id)

        assert result.removed is True
        assert result.guardian_removed is False
        assert db.get(User, pupil_id) is None
        for model, column in (
            (Enrollment, Enrollment.participant_user_id),
            (EventBooking, EventBooking.participant_user_id),
            (ParticipantLevel, ParticipantLevel.participant_user_id),
            (TeacherRoster, TeacherRoster.participant_user_id),
            (GuardianRelationship, GuardianRelationship.participant_user_id),
        ):
            assert db.query(model).filter(column == pupil_id).count() == 0
        assert db.query(AttendanceRecord).count() == 0
        # Lessons themselves stay on the teacher's schedule
        assert db.query(Lesson).count() == 2
        assert db.get(User, guardian_user.id) is not None

    def test_missing_participant(self, participant_service):
        result = participant_service.remove_participant(31337)

        assert result.removed is False

    def test_removes_sole_guardian(self, db, participant_service, busy_participant, guardian_user):
        guardian_id = guardian_user.id

        result = participant_service.remove_participant(
            busy_participant.id, remove_guardian=True
        )

        assert result.removed is True
        assert result.guardian_removed is True
        assert result.guardian_id == guardian_id
        assert db.get(User, guardian_id) is None

    def test_guardian_with_other_participants_blocks_removal(
        self, db, participant_service, busy_participant, guardian_user, make_participant
    ):
        sibling = make_participant(
            "Ben", "Park", years_before(FIXED_TODAY, 9), guardian=guardian_user
        )

        with pytest.raises(IntegrityConflictException) as exc_info:
            participant_service.remove_participant(busy_participant.id, remove_guardian=True)

        assert exc_info.value.details["code"] == "remove_guardian_account"
        assert db.get(User, busy_participant.id) is not None
        assert db.get(User, sibling.id) is not None
        assert db.query(EventBooking).count() == 1

    def test_guardian_account_with_wards_cannot_be_removed(
        self, db, participant_service, busy_participant, guardian_user
    ):
        with pytest.raises(IntegrityConflictException):
            participant_service.remove_participant(guardian_user.id)

        assert db.get(User, guardian_user.id) is not None

    def test_self_managed_adult(self, db, participant_service, make_participant):
        adult = make_participant("Alex", "Adult", years_before(FIXED_TODAY, 30), self_managed=True)

        result = participant_service.remove_participant(adult.id, remove_guardian=True)

        assert result.removed is True
        assert result.guardian_id is None
        assert db.query(GuardianRelationship).count() == 0
