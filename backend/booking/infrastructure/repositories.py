from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import (
    RepositoryUnavailableError,
    ReservationNotFoundError,
    SettingsUnavailableError,
)
from ..domain.identity import Authenticated, CallerIdentity
from ..domain.repositories import ReservationFilters, ReservationRepository, SettingsStore
from ..domain.services import DaySnapshot, verify_commit
from ..domain.settings import DEFAULT_SETTINGS, ReservationSettings
from ..domain.status import ensure_transition
from ..domain.validation import ValidatedReservation
from ..models import SETTINGS_ROW_ID, Reservation, ReservationSettingsRow, ReservationStatus
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


def settings_from_row(row: ReservationSettingsRow) -> ReservationSettings:
    return ReservationSettings(
        opening_time=row.opening_time,
        closing_time=row.closing_time,
        time_slot_interval=row.time_slot_interval,
        max_capacity_per_slot=row.max_capacity_per_slot,
        min_party_size=row.min_party_size,
        max_party_size=row.max_party_size,
        operating_days=frozenset(int(day) for day in row.operating_days),
        allow_same_day_booking=row.allow_same_day_booking,
        advance_booking_days=row.advance_booking_days,
        blocked_dates=frozenset(date.fromisoformat(value) for value in row.blocked_dates),
        enabled_occasions=tuple(row.enabled_occasions),
        enabled_preferences=tuple(row.enabled_preferences),
        special_notice=row.special_notice,
    )


def _apply_settings(row: ReservationSettingsRow, settings: ReservationSettings) -> None:
    row.opening_time = settings.opening_time
    row.closing_time = settings.closing_time
    row.time_slot_interval = settings.time_slot_interval
    row.max_capacity_per_slot = settings.max_capacity_per_slot
    row.min_party_size = settings.min_party_size
    row.max_party_size = settings.max_party_size
    row.operating_days = sorted(settings.operating_days)
    row.allow_same_day_booking = settings.allow_same_day_booking
    row.advance_booking_days = settings.advance_booking_days
    row.blocked_dates = sorted(day.isoformat() for day in settings.blocked_dates)
    row.enabled_occasions = list(settings.enabled_occasions)
    row.enabled_preferences = list(settings.enabled_preferences)
    row.special_notice = settings.special_notice


def _new_settings_row(now: datetime) -> ReservationSettingsRow:
    row = ReservationSettingsRow(id=SETTINGS_ROW_ID, created_at=now, updated_at=now)
    _apply_settings(row, DEFAULT_SETTINGS)
    return row


def build_reservation(validated: ValidatedReservation, *, now: datetime) -> Reservation:
    return Reservation(
        id=uuid.uuid4().hex,
        user_id=validated.user_id,
        customer_name=validated.customer_name,
        customer_email=validated.customer_email,
        customer_phone=validated.customer_phone,
        reservation_date=validated.reservation_date,
        reservation_time=validated.reservation_time,
        party_size=validated.party_size,
        status=ReservationStatus.PENDING,
        special_requests=validated.special_requests,
        occasion=validated.occasion,
        table_preference=validated.table_preference,
        admin_notes=None,
        created_at=now,
        updated_at=now,
    )


class SqlAlchemySettingsStore(SettingsStore):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self) -> ReservationSettings:
        try:
            row = await self.session.get(ReservationSettingsRow, SETTINGS_ROW_ID)
        except SQLAlchemyError as exc:
            raise SettingsUnavailableError("reservation settings could not be read") from exc
        if row is None:
            logger.debug("no reservation settings stored yet, using defaults")
            return DEFAULT_SETTINGS
        try:
            return settings_from_row(row)
        except ValueError as exc:
            raise SettingsUnavailableError("stored reservation settings are invalid") from exc

    async def save(self, settings: ReservationSettings) -> ReservationSettings:
        row = await self.session.get(ReservationSettingsRow, SETTINGS_ROW_ID, with_for_update=True)
        now = utc_now_naive()
        if row is None:
            row = _new_settings_row(now)
            self.session.add(row)
        _apply_settings(row, settings)
        row.updated_at = now
        await self.session.flush()
        return settings


class SqlAlchemyReservationRepository(ReservationRepository):
    """
    Reservation storage on a relational database.

    Writes run inside the caller's transaction (``async with session.begin()``).
    ``insert_if_valid`` serialises concurrent bookings by locking the settings
    row, then re-reads the day's bookings with a locking read so the re-check
    sees every committed row rather than the transaction's first snapshot.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert_if_valid(self, validated: ValidatedReservation) -> Reservation:
        try:
            settings_row = await self.session.get(
                ReservationSettingsRow,
                SETTINGS_ROW_ID,
                with_for_update=True,
                populate_existing=True,
            )
            if settings_row is None:
                settings_row = await self._create_settings_row()
            stmt = (
                select(Reservation)
                .where(Reservation.reservation_date == validated.reservation_date)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            existing = list((await self.session.scalars(stmt)).all())
            snapshot = DaySnapshot(
                reservations=existing,
                max_capacity_per_slot=settings_row.max_capacity_per_slot,
            )
            remaining = verify_commit(snapshot, validated)

            reservation = build_reservation(validated, now=utc_now_naive())
            self.session.add(reservation)
            await self.session.flush()
        except _UNAVAILABLE_ERRORS as exc:
            raise RepositoryUnavailableError("reservation store unavailable") from exc
        logger.debug(
            "reservation %s stored for %s %s, %d seats left",
            reservation.id,
            validated.reservation_date,
            validated.time_label,
            remaining,
        )
        return reservation

    async def _create_settings_row(self) -> ReservationSettingsRow:
        # The first booking persists the defaults so later bookings have a row to lock.
        logger.info("no reservation settings stored yet, writing defaults")
        row = _new_settings_row(utc_now_naive())
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise RepositoryUnavailableError("reservation settings were created concurrently, retry") from exc
        return row

    async def get(self, reservation_id: str) -> Optional[Reservation]:
        return await self.session.get(Reservation, reservation_id)

    async def list_by_caller(
        self,
        *,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> List[Reservation]:
        if user_id is None and email is None:
            raise ValueError("user_id or email is required")
        stmt = select(Reservation)
        if user_id is not None:
            stmt = stmt.where(Reservation.user_id == user_id)
        else:
            stmt = stmt.where(Reservation.user_id.is_(None), Reservation.customer_email == email)
        return await self._all(stmt.order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc()))

    async def list_for_identity_on_date(self, identity: CallerIdentity, day: date) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.reservation_date == day)
        if isinstance(identity, Authenticated):
            stmt = stmt.where(Reservation.user_id == identity.user_id)
        else:
            stmt = stmt.where(Reservation.user_id.is_(None), Reservation.customer_email == identity.email)
        return await self._all(stmt)

    async def list_for_slot(self, day: date, slot_time: time) -> List[Reservation]:
        stmt = select(Reservation).where(
            Reservation.reservation_date == day,
            Reservation.reservation_time == slot_time,
        )
        return await self._all(stmt)

    async def list_for_date(self, day: date) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.reservation_date == day).order_by(Reservation.reservation_time)
        return await self._all(stmt)

    async def list_all(self, filters: ReservationFilters) -> List[Reservation]:
        stmt = select(Reservation)
        if filters.status is not None:
            stmt = stmt.where(Reservation.status == filters.status)
        if filters.user_id is not None:
            stmt = stmt.where(Reservation.user_id == filters.user_id)
        if filters.email is not None:
            stmt = stmt.where(Reservation.customer_email == filters.email)
        if filters.date_from is not None:
            stmt = stmt.where(Reservation.reservation_date >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(Reservation.reservation_date <= filters.date_to)
        stmt = stmt.order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        return await self._all(stmt)

    async def update_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
        *,
        admin_notes: Optional[str] = None,
    ) -> Reservation:
        reservation = await self.session.get(
            Reservation,
            reservation_id,
            with_for_update=True,
            populate_existing=True,
        )
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        ensure_transition(reservation.status, new_status)
        reservation.status = new_status
        if admin_notes is not None:
            reservation.admin_notes = admin_notes
        reservation.updated_at = utc_now_naive()
        await self.session.flush()
        return reservation

    async def _all(self, stmt: Select[tuple[Reservation]]) -> List[Reservation]:
        try:
            return list((await self.session.scalars(stmt)).all())
        except _UNAVAILABLE_ERRORS as exc:
            raise RepositoryUnavailableError("reservation store unavailable") from exc
