from dataclasses import dataclass
from datetime import date, time

from booking.domain.availability import Availability, booked_covers, check_availability
from booking.domain.settings import ReservationSettings
from booking.models import ReservationStatus

DAY = date(2026, 10, 19)
SLOT = time(18, 0)


@dataclass
class Party:
    party_size: int
    status: ReservationStatus = ReservationStatus.PENDING
    reservation_date: date = DAY
    reservation_time: time = SLOT


def test_only_pending_and_confirmed_hold_seats() -> None:
    existing = [
        Party(2),
        Party(3, ReservationStatus.CONFIRMED),
        Party(4, ReservationStatus.CANCELLED),
        Party(4, ReservationStatus.DECLINED),
        Party(4, ReservationStatus.NO_SHOW),
        Party(4, ReservationStatus.COMPLETED),
    ]
    assert booked_covers(existing, day=DAY, slot_time=SLOT) == 5


def test_other_slots_and_dates_are_ignored() -> None:
    existing = [Party(2, reservation_time=time(18, 30)), Party(2, reservation_date=date(2026, 10, 20))]
    assert booked_covers(existing, day=DAY, slot_time=SLOT) == 0


def test_exact_fit_is_available() -> None:
    settings = ReservationSettings(max_capacity_per_slot=10)
    result = check_availability(settings, [Party(6)], day=DAY, slot_time=SLOT, party_size=4)
    assert result == Availability(available=True, remaining_capacity=4)


def test_one_over_is_unavailable() -> None:
    settings = ReservationSettings(max_capacity_per_slot=10)
    result = check_availability(settings, [Party(6)], day=DAY, slot_time=SLOT, party_size=5)
    assert not result.available
    assert result.remaining_capacity == 4


def test_remaining_never_negative() -> None:
    # Capacity lowered after bookings were taken.
    settings = ReservationSettings(max_capacity_per_slot=4)
    result = check_availability(settings, [Party(6)], day=DAY, slot_time=SLOT, party_size=1)
    assert result.remaining_capacity == 0
    assert not result.available


def test_unknown_is_optimistic() -> None:
    result = Availability.unknown()
    assert result.available
    assert not result.known
