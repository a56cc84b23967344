from datetime import date, datetime, timezone

import pytest

from studio.models import GuardianRelationship, ParticipantLevel, User
from studio.repositories import RepositoryFactory


@pytest.fixture
def repo(db):
    return RepositoryFactory.create_participant_repository(db)


def _record_level(db, participant, level, completed, created_at=None):
    row = ParticipantLevel(
        participant_user_id=participant.id,
        level_id=level.id,
        date_completed=completed,
    )
    if created_at is not None:
        row.created_at = created_at
    db.add(row)
    db.commit()
    return row


class TestCurrentLevel:
    def test_latest_completion_date_wins(self, db, repo, make_participant, levels):
        pupil = make_participant("Pia", "Park", date(2014, 1, 1))
        _record_level(db, pupil, levels[3], date(2025, 6, 1))
        _record_level(db, pupil, levels[2], date(2025, 9, 1))

        _, level_id, level_name = repo.get_participant(pupil.id)

        assert level_id == levels[2].id
        assert level_name == "Intermediate"

    def test_same_date_prefers_latest_created(self, db, repo, make_participant, levels):
        pupil = make_participant("Pia", "Park", date(2014, 1, 1))
        _record_level(
            db, pupil, levels[2], date(2025, 9, 1), datetime(2025, 9, 2, tzinfo=timezone.utc)
        )
        _record_level(
            db, pupil, levels[1], date(2025, 9, 1), datetime(2025, 9, 1, tzinfo=timezone.utc)
        )

        _, level_id, _ = repo.get_participant(pupil.id)

        assert level_id == levels[2].id

    def test_full_tie_prefers_highest_id(self, db, repo, make_participant, levels):
        pupil = make_participant("Pia", "Park", date(2014, 1, 1))
        stamp = datetime(2025, 9, 1, tzinfo=timezone.utc)
        _record_level(db, pupil, levels[1], date(2025, 9, 1), stamp)
        _record_level(db, pupil, levels[3], date(2025, 9, 1), stamp)

        _, level_id, _ = repo.get_participant(pupil.id)

        assert level_id == levels[3].id

    def test_no_history_means_no_level(self, repo, make_participant):
        pupil = make_participant("Pia", "Park", date(2014, 1, 1))

        assert repo.get_participant(pupil.id)[1:] == (None, None)

    def test_only_participants_listed(self, repo, make_participant, admin_user, guardian_user):
        pupil = make_participant("Pia", "Park", date(2014, 1, 1))

        assert [user.id for user, _, _ in repo.list_participants()] == [pupil.id]
        assert repo.get_participant(guardian_user.id) is None
        assert repo.list_participants([]) == []


class TestGuardianLinks:
    def test_guardian_preferred_over_self_link(self, db, repo, make_participant, guardian_user):
        adult = make_participant(
            "Alex", "Adult", date(1990, 1, 1), guardian=guardian_user, self_managed=True
        )

        guardians = repo.guardians_for([adult.id])

        assert guardians[adult.id].id == guardian_user.id

    def test_lowest_guardian_id_breaks_ties(self, db, repo, make_participant, guardian_user):
        second = User(first_name="Sid", last_name="Second", role="manager")
        db.add(second)
        db.commit()
        pupil = make_participant("Pia", "Park", date(2014, 1, 1), guardian=second)
        db.add(
            GuardianRelationship(guardian_user_id=guardian_user.id, participant_user_id=pupil.id)
        )
        db.commit()

        assert repo.guardians_for([pupil.id])[pupil.id].id == min(guardian_user.id, second.id)

    def test_ward_counts_and_scopes(self, repo, make_participant, guardian_user, teacher_user):
        first = make_participant(
            "Ava", "A", date(2014, 1, 1), guardian=guardian_user, teacher=teacher_user
        )
        second = make_participant("Ben", "B", date(2015, 1, 1), guardian=guardian_user)

        assert repo.count_wards(guardian_user.id) == 2
        assert repo.count_wards(guardian_user.id, excluding=first.id) == 1
        assert repo.participant_ids_for_guardian(guardian_user.id) == {first.id, second.id}
        assert repo.participant_ids_for_teacher(teacher_user.id) == {first.id}

    def test_existing_level_ids(self, repo, levels):
        assert repo.existing_level_ids([levels[1].id, 999]) == {levels[1].id}
        assert repo.existing_level_ids([]) == set()
