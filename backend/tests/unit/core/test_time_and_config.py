from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from pydantic import ValidationError
import pytest

from studio.core.config import Settings
from studio.core.ulid_helper import generate_ulid, is_valid_ulid
from studio.utils.time_utils import ensure_aware, local_today


class TestEnsureAware:
    def test_naive_value_uses_reference_timezone(self) -> None:
        value = ensure_aware(datetime(2026, 2, 2, 10, 0), ZoneInfo("America/New_York"))

        assert value == datetime(2026, 2, 2, 15, 0, tzinfo=timezone.utc)

    def test_naive_value_defaults_to_utc(self) -> None:
        assert ensure_aware(datetime(2026, 2, 2, 10, 0)).tzinfo == timezone.utc

    def test_aware_value_is_converted(self) -> None:
        value = ensure_aware(datetime(2026, 2, 2, 10, 0, tzinfo=ZoneInfo("Europe/Berlin")))

        assert value == datetime(2026, 2, 2, 9, 0, tzinfo=timezone.utc)


def test_local_today_follows_reference_timezone() -> None:
    late_evening_utc = datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc)

    assert local_today(ZoneInfo("UTC"), late_evening_utc).day == 2
    assert local_today(ZoneInfo("Asia/Tokyo"), late_evening_utc).day == 3


class TestSettings:
    def test_defaults(self) -> None:
        config = Settings(database_url="sqlite://")

        assert config.max_participant_age == 18
        assert config.max_series_occurrences == 52
        assert config.enforce_event_capacity is True
        assert config.is_sqlite is True

    def test_unknown_timezone_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(database_url="sqlite://", reference_timezone="Mars/Olympus")

    def test_log_level_normalized(self) -> None:
        assert Settings(database_url="sqlite://", log_level="debug").log_level == "DEBUG"


def test_generated_ulids_are_valid_and_unique() -> None:
    first, second = generate_ulid(), generate_ulid()

    assert is_valid_ulid(first)
    assert first != second
    assert not is_valid_ulid("not-a-ulid")
