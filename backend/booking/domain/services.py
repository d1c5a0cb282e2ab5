from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..models import Reservation
from .availability import booked_covers
from .errors import ConflictError
from .validation import ValidatedReservation, find_duplicate


@dataclass(frozen=True)
class DaySnapshot:
    """Bookings for one date, read inside the repository's atomic region."""

    reservations: Sequence[Reservation]
    max_capacity_per_slot: int


def verify_commit(snapshot: DaySnapshot, candidate: ValidatedReservation) -> int:
    """
    Authoritative duplicate and capacity re-check before a write.
    Returns remaining capacity of the slot after booking. Raises ConflictError otherwise.
    """
    duplicate = find_duplicate(
        snapshot.reservations,
        candidate.identity,
        day=candidate.reservation_date,
        slot_time=candidate.reservation_time,
    )
    if duplicate is not None:
        raise ConflictError("duplicate", "caller already holds a reservation near this time")

    reserved = booked_covers(
        snapshot.reservations,
        day=candidate.reservation_date,
        slot_time=candidate.reservation_time,
    )
    remaining = snapshot.max_capacity_per_slot - reserved
    if candidate.party_size > remaining:
        raise ConflictError("capacity", "capacity exceeded")
    return remaining - candidate.party_size
