from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Optional, Protocol

from ..models import ReservationStatus
from .settings import ReservationSettings
from .status import CAPACITY_STATUSES


class BookedParty(Protocol):
    reservation_date: date
    reservation_time: time
    party_size: int
    status: ReservationStatus


@dataclass(frozen=True)
class Availability:
    available: bool
    remaining_capacity: Optional[int]

    @property
    def known(self) -> bool:
        return self.remaining_capacity is not None

    @classmethod
    def unknown(cls) -> "Availability":
        """Optimistic answer for when existing bookings could not be read."""
        return cls(available=True, remaining_capacity=None)


def booked_covers(existing: Iterable[BookedParty], *, day: date, slot_time: time) -> int:
    """Seats held in the slot by pending and confirmed reservations."""
    return sum(
        party.party_size
        for party in existing
        if party.status in CAPACITY_STATUSES
        and party.reservation_date == day
        and party.reservation_time == slot_time
    )


def check_availability(
    settings: ReservationSettings,
    existing: Iterable[BookedParty],
    *,
    day: date,
    slot_time: time,
    party_size: int,
) -> Availability:
    booked = booked_covers(existing, day=day, slot_time=slot_time)
    capacity = settings.max_capacity_per_slot
    return Availability(
        available=booked + party_size <= capacity,
        remaining_capacity=max(capacity - booked, 0),
    )
