from __future__ import annotations

import asyncio
from datetime import date, time
from typing import Dict, List, Optional

from ..domain.errors import ReservationNotFoundError
from ..domain.identity import CallerIdentity
from ..domain.repositories import ReservationFilters, ReservationRepository, SettingsStore
from ..domain.services import DaySnapshot, verify_commit
from ..domain.settings import DEFAULT_SETTINGS, ReservationSettings
from ..domain.status import ensure_transition
from ..domain.validation import ValidatedReservation, belongs_to
from ..models import Reservation, ReservationStatus
from ..utils.time import utc_now_naive
from .repositories import build_reservation


def _newest_first(rows: List[Reservation]) -> List[Reservation]:
    return sorted(rows, key=lambda r: (r.reservation_date, r.reservation_time), reverse=True)


class InMemorySettingsStore(SettingsStore):
    def __init__(self, settings: ReservationSettings = DEFAULT_SETTINGS) -> None:
        self._settings = settings

    async def get(self) -> ReservationSettings:
        return self._settings

    async def save(self, settings: ReservationSettings) -> ReservationSettings:
        self._settings = settings
        return settings


class InMemoryReservationRepository(ReservationRepository):
    """
    Process-local reference implementation.

    A single asyncio.Lock makes the re-check and the write in
    ``insert_if_valid`` one indivisible step for every coroutine sharing
    the instance.
    """

    def __init__(self, settings_store: SettingsStore) -> None:
        self.settings_store = settings_store
        self._rows: Dict[str, Reservation] = {}
        self._lock = asyncio.Lock()

    async def insert_if_valid(self, validated: ValidatedReservation) -> Reservation:
        async with self._lock:
            settings = await self.settings_store.get()
            snapshot = DaySnapshot(
                reservations=[r for r in self._rows.values() if r.reservation_date == validated.reservation_date],
                max_capacity_per_slot=settings.max_capacity_per_slot,
            )
            verify_commit(snapshot, validated)
            reservation = build_reservation(validated, now=utc_now_naive())
            self._rows[reservation.id] = reservation
            return reservation

    async def get(self, reservation_id: str) -> Optional[Reservation]:
        return self._rows.get(reservation_id)

    async def list_by_caller(
        self,
        *,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> List[Reservation]:
        if user_id is None and email is None:
            raise ValueError("user_id or email is required")
        if user_id is not None:
            rows = [r for r in self._rows.values() if r.user_id == user_id]
        else:
            rows = [r for r in self._rows.values() if r.user_id is None and r.customer_email == email]
        return _newest_first(rows)

    async def list_for_identity_on_date(self, identity: CallerIdentity, day: date) -> List[Reservation]:
        return [r for r in self._rows.values() if r.reservation_date == day and belongs_to(r, identity)]

    async def list_for_slot(self, day: date, slot_time: time) -> List[Reservation]:
        return [r for r in self._rows.values() if r.reservation_date == day and r.reservation_time == slot_time]

    async def list_for_date(self, day: date) -> List[Reservation]:
        rows = [r for r in self._rows.values() if r.reservation_date == day]
        return sorted(rows, key=lambda r: r.reservation_time)

    async def list_all(self, filters: ReservationFilters) -> List[Reservation]:
        rows = list(self._rows.values())
        if filters.status is not None:
            rows = [r for r in rows if r.status == filters.status]
        if filters.user_id is not None:
            rows = [r for r in rows if r.user_id == filters.user_id]
        if filters.email is not None:
            rows = [r for r in rows if r.customer_email == filters.email]
        if filters.date_from is not None:
            rows = [r for r in rows if r.reservation_date >= filters.date_from]
        if filters.date_to is not None:
            rows = [r for r in rows if r.reservation_date <= filters.date_to]
        rows = _newest_first(rows)
        if filters.limit is not None:
            rows = rows[: filters.limit]
        return rows

    async def update_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
        *,
        admin_notes: Optional[str] = None,
    ) -> Reservation:
        async with self._lock:
            reservation = self._rows.get(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            ensure_transition(reservation.status, new_status)
            reservation.status = new_status
            if admin_notes is not None:
                reservation.admin_notes = admin_notes
            reservation.updated_at = utc_now_naive()
            return reservation
