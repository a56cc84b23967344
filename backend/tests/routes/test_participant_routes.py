from studio.models import User
from tests.factories.directory_builders import FIXED_TODAY, actor_headers, years_before

PARTICIPANTS_URL = "/api/v1/participants"


def test_admin_removes_participant_and_guardian(
    client, db, admin_user, make_participant, guardian_user
):
    pupil = make_participant("Pia", "Park", years_before(FIXED_TODAY, 12), guardian=guardian_user)

    response = client.delete(
        f"{PARTICIPANTS_URL}/{pupil.id}",
        params={"remove_guardian": "true"},
        headers=actor_headers(admin_user),
    )

    assert response.status_code == 200
    assert response.json() == {
        "participant_id": pupil.id,
        "removed": True,
        "guardian_removed": True,
        "guardian_id": guardian_user.id,
    }
    assert db.query(User).filter(User.id.in_([pupil.id, guardian_user.id])).count() == 0


def test_missing_participant_reports_not_removed(client, admin_user):
    response = client.delete(f"{PARTICIPANTS_URL}/5150", headers=actor_headers(admin_user))

    assert response.status_code == 200
    assert response.json()["removed"] is False


def test_shared_guardian_conflict(client, admin_user, make_participant, guardian_user):
    pupil = make_participant("Pia", "Park", years_before(FIXED_TODAY, 12), guardian=guardian_user)
    make_participant("Ben", "Park", years_before(FIXED_TODAY, 9), guardian=guardian_user)

    response = client.delete(
        f"{PARTICIPANTS_URL}/{pupil.id}",
        params={"remove_guardian": "true"},
        headers=actor_headers(admin_user),
    )

    assert response.status_code == 409
    assert response.json()["errors"]["code"] == "remove_guardian_account"


def test_teachers_cannot_remove_participants(client, teacher_user, make_participant):
    pupil = make_participant("Pia", "Park", years_before(FIXED_TODAY, 12))

    response = client.delete(f"{PARTICIPANTS_URL}/{pupil.id}", headers=actor_headers(teacher_user))

    assert response.status_code == 403
