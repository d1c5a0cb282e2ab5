from datetime import date, time, timezone

import pytest
from booking.domain.settings import DEFAULT_SETTINGS, ReservationSettings, weekday_index


def test_weekday_index_starts_on_sunday() -> None:
    assert weekday_index(date(2026, 10, 18)) == 0  # Sunday
    assert weekday_index(date(2026, 10, 19)) == 1
    assert weekday_index(date(2026, 10, 24)) == 6  # Saturday


def test_empty_operating_days_means_open_every_day() -> None:
    settings = ReservationSettings(operating_days=[])
    assert all(settings.is_operating_day(date(2026, 10, 18 + offset)) for offset in range(7))


def test_containers_are_normalised() -> None:
    settings = ReservationSettings(operating_days=[1, 2], blocked_dates=[date(2026, 12, 25)])
    assert settings.operating_days == frozenset({1, 2})
    assert settings.is_blocked(date(2026, 12, 25))
    assert not settings.is_operating_day(date(2026, 10, 18))


def test_defaults() -> None:
    assert DEFAULT_SETTINGS.opening_time == time(11, 0)
    assert DEFAULT_SETTINGS.closing_time == time(23, 0)
    assert DEFAULT_SETTINGS.max_capacity_per_slot == 50
    assert DEFAULT_SETTINGS.advance_booking_days == 30


@pytest.mark.parametrize(
    "kwargs",
    [
        {"opening_time": time(22, 0), "closing_time": time(11, 0)},
        {"time_slot_interval": 45},
        {"max_capacity_per_slot": 0},
        {"min_party_size": 5, "max_party_size": 4},
        {"max_party_size": 21},
        {"advance_booking_days": -1},
        {"operating_days": [7]},
        {"opening_time": time(10, 0, tzinfo=timezone.utc)},
        {"closing_time": time(22, 0, tzinfo=timezone.utc)},
        {"opening_time": time(10, 0, 30)},
        {"closing_time": time(22, 0, 0, 500)},
    ],
)
def test_rejects_inconsistent_settings(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        ReservationSettings(**kwargs)
