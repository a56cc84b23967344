from datetime import date

import pytest

from studio.services.eligibility import (
    REASON_ALREADY_BOOKED,
    REASON_LEVEL_NOT_ALLOWED,
    REASON_TOO_OLD,
    REASON_UNKNOWN_AGE,
    EventConstraints,
    ParticipantProfile,
    calculate_age,
    evaluate_eligibility,
)

TODAY = date(2026, 3, 2)


def _profile(**overrides) -> ParticipantProfile:
    values = {
        "participant_id": 7,
        "first_name": "Pia",
        "last_name": "Park",
        "date_of_birth": date(2011, 5, 20),
        "current_level_id": 2,
        "current_level_name": "Intermediate",
        "already_booked": False,
    }
    values.update(overrides)
    return ParticipantProfile(**values)


class TestCalculateAge:
    def test_birthday_today_counts(self) -> None:
        assert calculate_age(date(2008, 3, 2), TODAY) == 18

    def test_day_before_birthday(self) -> None:
        assert calculate_age(date(2008, 3, 3), TODAY) == 17

    def test_leap_day_birthday_in_common_year(self) -> None:
        assert calculate_age(date(2012, 2, 29), date(2026, 2, 28)) == 13
        assert calculate_age(date(2012, 2, 29), date(2026, 3, 1)) == 14


class TestEvaluateEligibility:
    def test_age_eighteen_is_eligible(self) -> None:
        decision = evaluate_eligibility(
            _profile(date_of_birth=date(2008, 3, 2)),
            EventConstraints(event_id=1),
            today=TODAY,
        )

        assert decision.eligible is True
        assert decision.age == 18
        assert decision.reason is None

    def test_age_nineteen_is_too_old(self) -> None:
        decision = evaluate_eligibility(
            _profile(date_of_birth=date(2007, 3, 2)),
            EventConstraints(event_id=1),
            today=TODAY,
        )

        assert decision.eligible is False
        assert decision.reason == REASON_TOO_OLD
        assert decision.age == 19

    def test_day_before_nineteenth_birthday_still_eligible(self) -> None:
        decision = evaluate_eligibility(
            _profile(date_of_birth=date(2007, 3, 3)),
            EventConstraints(event_id=1),
            today=TODAY,
        )

        assert decision.eligible is True
        assert decision.age == 18

    def test_missing_birth_date_fails_age_rule(self) -> None:
        decision = evaluate_eligibility(
            _profile(date_of_birth=None), EventConstraints(event_id=1), today=TODAY
        )

        assert decision.eligible is False
        assert decision.reason == REASON_UNKNOWN_AGE
        assert decision.age is None

    def test_level_outside_admitted_set(self) -> None:
        decision = evaluate_eligibility(
            _profile(current_level_id=1),
            EventConstraints(event_id=1, eligible_level_ids=frozenset({2, 3})),
            today=TODAY,
        )

        assert decision.eligible is False
        assert decision.reason == REASON_LEVEL_NOT_ALLOWED

    def test_level_inside_admitted_set(self) -> None:
        decision = evaluate_eligibility(
            _profile(current_level_id=3),
            EventConstraints(event_id=1, eligible_level_ids=frozenset({2, 3})),
            today=TODAY,
        )

        assert decision.eligible is True

    @pytest.mark.parametrize("level_id", [None, 1, 5])
    def test_empty_level_set_admits_everyone(self, level_id) -> None:
        decision = evaluate_eligibility(
            _profile(current_level_id=level_id),
            EventConstraints(event_id=1, eligible_level_ids=frozenset()),
            today=TODAY,
        )

        assert decision.eligible is True

    def test_no_completed_level_fails_restricted_event(self) -> None:
        decision = evaluate_eligibility(
            _profile(current_level_id=None, current_level_name=None),
            EventConstraints(event_id=1, eligible_level_ids=frozenset({2})),
            today=TODAY,
        )

        assert decision.eligible is False
        assert decision.reason == REASON_LEVEL_NOT_ALLOWED

    def test_already_booked_is_not_eligible(self) -> None:
        decision = evaluate_eligibility(
            _profile(already_booked=True), EventConstraints(event_id=1), today=TODAY
        )

        assert decision.eligible is False
        assert decision.reason == REASON_ALREADY_BOOKED

    def test_age_checked_before_level(self) -> None:
        decision = evaluate_eligibility(
            _profile(date_of_birth=date(2000, 1, 1), current_level_id=1),
            EventConstraints(event_id=1, eligible_level_ids=frozenset({2})),
            today=TODAY,
        )

        assert decision.reason == REASON_TOO_OLD

    def test_custom_max_age(self) -> None:
        constraints = EventConstraints(event_id=1, max_age=12)

        decision = evaluate_eligibility(
            _profile(date_of_birth=date(2013, 3, 1)), constraints, today=TODAY
        )

        assert decision.eligible is False
        assert decision.age == 13

    def test_decision_truthiness_follows_eligible(self) -> None:
        yes = evaluate_eligibility(_profile(), EventConstraints(event_id=1), today=TODAY)
        no = evaluate_eligibility(
            _profile(already_booked=True), EventConstraints(event_id=1), today=TODAY
        )

        assert bool(yes) is True
        assert bool(no) is False
