from datetime import date, datetime, time

import pytest
from booking.domain.errors import ConflictError
from booking.domain.identity import Authenticated, Guest
from booking.domain.services import DaySnapshot, verify_commit
from booking.domain.validation import ValidatedReservation
from booking.models import Reservation, ReservationStatus

DAY = date(2026, 10, 19)


def _candidate(identity=Guest("ada@example.com"), *, slot_time: time = time(18, 0), party_size: int = 2):
    return ValidatedReservation(
        identity=identity,
        customer_name="Ada",
        customer_email="ada@example.com",
        customer_phone="0123",
        reservation_date=DAY,
        reservation_time=slot_time,
        party_size=party_size,
    )


def _existing(
    *,
    user_id: str | None = None,
    email: str = "other@example.com",
    slot_time: time = time(18, 0),
    party_size: int = 2,
    status: ReservationStatus = ReservationStatus.PENDING,
) -> Reservation:
    stamp = datetime(2026, 10, 18, 9, 0)
    return Reservation(
        id=f"r-{slot_time.hour}-{party_size}-{email}",
        user_id=user_id,
        customer_name="Someone",
        customer_email=email,
        customer_phone="0123",
        reservation_date=DAY,
        reservation_time=slot_time,
        party_size=party_size,
        status=status,
        created_at=stamp,
        updated_at=stamp,
    )


def test_rejects_when_party_exceeds_remaining() -> None:
    snap = DaySnapshot(reservations=[_existing(party_size=8)], max_capacity_per_slot=10)
    with pytest.raises(ConflictError) as excinfo:
        verify_commit(snap, _candidate(party_size=3))
    assert excinfo.value.reason == "capacity"


def test_accepts_exact_fit() -> None:
    snap = DaySnapshot(reservations=[_existing(party_size=8)], max_capacity_per_slot=10)
    assert verify_commit(snap, _candidate(party_size=2)) == 0


def test_cancelled_rows_free_their_seats() -> None:
    snap = DaySnapshot(
        reservations=[_existing(party_size=8, status=ReservationStatus.CANCELLED)],
        max_capacity_per_slot=10,
    )
    assert verify_commit(snap, _candidate(party_size=3)) == 7


def test_rejects_duplicate_of_same_guest() -> None:
    snap = DaySnapshot(
        reservations=[_existing(email="ada@example.com", slot_time=time(18, 30))],
        max_capacity_per_slot=50,
    )
    with pytest.raises(ConflictError) as excinfo:
        verify_commit(snap, _candidate())
    assert excinfo.value.reason == "duplicate"


def test_guest_email_does_not_collide_with_member_booking() -> None:
    snap = DaySnapshot(
        reservations=[_existing(user_id="u-1", email="ada@example.com")],
        max_capacity_per_slot=50,
    )
    assert verify_commit(snap, _candidate()) == 46


def test_rejects_duplicate_of_same_member() -> None:
    snap = DaySnapshot(reservations=[_existing(user_id="u-1", slot_time=time(17, 30))], max_capacity_per_slot=50)
    with pytest.raises(ConflictError):
        verify_commit(snap, _candidate(Authenticated("u-1")))
