from datetime import date

import pytest

from studio.models import Enrollment, Lesson
from tests.factories.directory_builders import actor_headers

LESSONS_URL = "/api/v1/lessons"


@pytest.fixture
def pupil(make_participant, guardian_user, teacher_user):
    return make_participant(
        "Pia", "Park", date(2014, 1, 1), guardian=guardian_user, teacher=teacher_user
    )


def _series_body(teacher, instrument, participants, **overrides):
    body = {
        "teacher_id": teacher.id,
        "instrument_id": instrument.id,
        "participant_ids": [p.id for p in participants],
        "first_start": "2026-02-02T10:00:00Z",
        "duration_minutes": 30,
        "occurrence_count": 4,
    }
    body.update(overrides)
    return body


class TestActorHeaders:
    def test_missing_headers_unauthorized(self, client, teacher_user, instrument, pupil):
        response = client.post(LESSONS_URL, json=_series_body(teacher_user, instrument, [pupil]))

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")

    def test_unknown_role_unauthorized(self, client):
        response = client.delete(
            f"{LESSONS_URL}/1", headers={"X-Actor-Id": "1", "X-Actor-Role": "janitor"}
        )

        assert response.status_code == 401

    def test_guardian_cannot_create_lessons(
        self, client, guardian_user, teacher_user, instrument, pupil
    ):
        response = client.post(
            LESSONS_URL,
            json=_series_body(teacher_user, instrument, [pupil]),
            headers=actor_headers(guardian_user),
        )

        assert response.status_code == 403
        assert response.json()["status"] == 403


class TestCreateSeries:
    def test_creates_weekly_series(self, client, db, teacher_user, instrument, pupil):
        response = client.post(
            LESSONS_URL,
            json=_series_body(teacher_user, instrument, [pupil]),
            headers=actor_headers(teacher_user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["recurrence_count"] == 4
        assert body["recurrence_group_id"]
        assert len(body["lessons"]) == 4
        assert db.query(Lesson).count() == 4

    def test_validation_failure_is_problem_document(
        self, client, db, teacher_user, instrument, pupil
    ):
        response = client.post(
            LESSONS_URL,
            json=_series_body(teacher_user, instrument, [pupil], occurrence_count=0),
            headers=actor_headers(teacher_user),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_OCCURRENCE_COUNT"
        assert db.query(Lesson).count() == 0

    def test_unknown_field_rejected(self, client, teacher_user, instrument, pupil):
        response = client.post(
            LESSONS_URL,
            json=_series_body(teacher_user, instrument, [pupil], color="blue"),
            headers=actor_headers(teacher_user),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["errors"]


class TestDeletes:
    def test_missing_lesson_is_not_an_error(self, client, admin_user):
        response = client.delete(f"{LESSONS_URL}/4242", headers=actor_headers(admin_user))

        assert response.status_code == 200
        assert response.json() == {"lesson_id": 4242, "deleted": False}

    def test_delete_one_lesson(self, client, db, teacher_user, instrument, pupil):
        created = client.post(
            LESSONS_URL,
            json=_series_body(teacher_user, instrument, [pupil], occurrence_count=1),
            headers=actor_headers(teacher_user),
        ).json()
        lesson_id = created["lessons"][0]["lesson_id"]

        response = client.delete(f"{LESSONS_URL}/{lesson_id}", headers=actor_headers(teacher_user))

        assert response.json()["deleted"] is True
        assert db.query(Enrollment).count() == 0

    def test_delete_series_from_date(self, client, db, teacher_user, instrument, pupil):
        created = client.post(
            LESSONS_URL,
            json=_series_body(teacher_user, instrument, [pupil]),
            headers=actor_headers(teacher_user),
        ).json()
        group_id = created["recurrence_group_id"]

        response = client.delete(
            f"{LESSONS_URL}/series/{group_id}",
            params={"from_date": "2026-02-16T00:00:00Z"},
            headers=actor_headers(teacher_user),
        )

        assert response.status_code == 200
        assert response.json()["deleted_count"] == 2
        assert db.query(Lesson).count() == 2


class TestScheduleViews:
    def test_teacher_reads_own_schedule(
        self, client, frozen_clock, teacher_user, instrument, pupil
    ):
        client.post(
            LESSONS_URL,
            json=_series_body(
                teacher_user, instrument, [pupil], first_start="2026-03-03T16:00:00Z"
            ),
            headers=actor_headers(teacher_user),
        )

        response = client.get(
            f"{LESSONS_URL}/teacher/{teacher_user.id}/schedule",
            headers=actor_headers(teacher_user),
        )

        assert response.status_code == 200
        views = response.json()
        assert len(views) == 4
        assert views[0]["enrollments"][0]["participant_id"] == pupil.id

    def test_teacher_cannot_read_colleague_schedule(self, client, teacher_user, other_teacher):
        response = client.get(
            f"{LESSONS_URL}/teacher/{other_teacher.id}/schedule",
            headers=actor_headers(teacher_user),
        )

        assert response.status_code == 403

    def test_guardian_schedule_and_note(
        self, client, frozen_clock, guardian_user, teacher_user, instrument, pupil
    ):
        client.post(
            LESSONS_URL,
            json=_series_body(
                teacher_user,
                instrument,
                [pupil],
                first_start="2026-03-03T16:00:00Z",
                occurrence_count=1,
            ),
            headers=actor_headers(teacher_user),
        )

        schedule = client.get(
            f"{LESSONS_URL}/guardian/{guardian_user.id}/schedule",
            headers=actor_headers(guardian_user),
        ).json()
        enrollment_id = schedule[0]["enrollments"][0]["enrollment_id"]

        response = client.patch(
            f"{LESSONS_URL}/enrollments/{enrollment_id}/note",
            json={"note": "Running late"},
            headers=actor_headers(guardian_user),
        )

        assert response.status_code == 200
        assert response.json()["guardian_note"] == "Running late"
