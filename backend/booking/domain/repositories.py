from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import TYPE_CHECKING, Optional, Protocol

from ..models import Reservation, ReservationStatus
from .identity import CallerIdentity
from .settings import ReservationSettings

if TYPE_CHECKING:
    from .validation import ValidatedReservation


@dataclass(frozen=True)
class ReservationFilters:
    status: Optional[ReservationStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
    limit: Optional[int] = None


class SettingsStore(Protocol):
    async def get(self) -> ReservationSettings: ...

    async def save(self, settings: ReservationSettings) -> ReservationSettings: ...


class ReservationRepository(Protocol):
    async def insert_if_valid(self, validated: ValidatedReservation) -> Reservation: ...

    async def get(self, reservation_id: str) -> Reservation | None: ...

    async def list_by_caller(
        self,
        *,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> list[Reservation]: ...

    async def list_for_identity_on_date(self, identity: CallerIdentity, day: date) -> list[Reservation]: ...

    async def list_for_slot(self, day: date, slot_time: time) -> list[Reservation]: ...

    async def list_for_date(self, day: date) -> list[Reservation]: ...

    async def list_all(self, filters: ReservationFilters) -> list[Reservation]: ...

    async def update_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
        *,
        admin_notes: Optional[str] = None,
    ) -> Reservation: ...
