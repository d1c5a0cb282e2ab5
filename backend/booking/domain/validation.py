"""
Reservation request validation.

Checks run in a fixed order and the first failure wins. Everything except
the duplicate-booking check is a pure function of the settings snapshot,
the request and the current restaurant-local time; the duplicate check
reads the caller's bookings for the day and may therefore be stale. The
repository repeats it atomically when the reservation is written.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from ..models import Reservation
from ..utils.time import canonical_time, parse_date, parse_time
from .errors import (
    DateBlockedError,
    DuplicateBookingError,
    InvalidFormatError,
    InvalidTimeSlotError,
    MissingFieldError,
    PartySizeOutOfRangeError,
    PastDateTimeError,
    RestaurantClosedError,
    SameDayNotAllowedError,
    TooFarInAdvanceError,
)
from .identity import Authenticated, CallerIdentity, identity_for
from .settings import ReservationSettings
from .slots import is_valid_slot
from .status import DUPLICATE_BLOCKING_STATUSES

if TYPE_CHECKING:
    from .repositories import ReservationRepository

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-+()]+$")
DUPLICATE_WINDOW = timedelta(minutes=60)


@dataclass
class ReservationRequest:
    """Raw booking input as received from the caller, before any checks."""

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    reservation_date: Union[date, str, None] = None
    reservation_time: Union[time, str, None] = None
    party_size: Union[int, str, None] = None
    user_id: Optional[str] = None
    special_requests: Optional[str] = None
    occasion: Optional[str] = None
    table_preference: Optional[str] = None


@dataclass(frozen=True)
class ValidatedReservation:
    identity: CallerIdentity
    customer_name: str
    customer_email: str
    customer_phone: str
    reservation_date: date
    reservation_time: time
    party_size: int
    special_requests: Optional[str] = None
    occasion: Optional[str] = None
    table_preference: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.identity.user_id if isinstance(self.identity, Authenticated) else None

    @property
    def time_label(self) -> str:
        return canonical_time(self.reservation_time)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_text(request: ReservationRequest, field: str) -> str:
    value = _clean(getattr(request, field))
    if value is None:
        raise MissingFieldError(field)
    return value


def _require_value(request: ReservationRequest, field: str) -> Any:
    value = getattr(request, field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingFieldError(field)
    return value


def _coerce_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_date(value)
    except ValueError as exc:
        raise InvalidFormatError("reservation_date", value) from exc


def _coerce_time(value: Union[time, str]) -> time:
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)
    try:
        return parse_time(value)
    except ValueError as exc:
        raise InvalidFormatError("reservation_time", value) from exc


def _coerce_party_size(value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise InvalidFormatError("party_size", value)
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise InvalidFormatError("party_size", value)
    try:
        return int(value.strip())
    except ValueError as exc:
        raise InvalidFormatError("party_size", value) from exc


def validate_request(
    settings: ReservationSettings,
    request: ReservationRequest,
    now: datetime,
) -> ValidatedReservation:
    """Checks that need no storage access. ``now`` is naive restaurant-local time."""
    name = _require_text(request, "customer_name")
    email = _require_text(request, "customer_email")
    phone = _require_text(request, "customer_phone")
    raw_date = _require_value(request, "reservation_date")
    raw_time = _require_value(request, "reservation_time")
    raw_party_size = _require_value(request, "party_size")

    if not EMAIL_PATTERN.match(email):
        raise InvalidFormatError("customer_email", email)
    if not PHONE_PATTERN.match(phone):
        raise InvalidFormatError("customer_phone", phone)
    day = _coerce_date(raw_date)
    slot_time = _coerce_time(raw_time)
    party_size = _coerce_party_size(raw_party_size)

    if not settings.min_party_size <= party_size <= settings.max_party_size:
        raise PartySizeOutOfRangeError(
            party_size,
            minimum=settings.min_party_size,
            maximum=settings.max_party_size,
        )

    if datetime.combine(day, slot_time) <= now:
        raise PastDateTimeError(datetime.combine(day, slot_time))

    today = now.date()
    if day == today and not settings.allow_same_day_booking:
        raise SameDayNotAllowedError(day)

    latest = today + timedelta(days=settings.advance_booking_days)
    if day > latest:
        raise TooFarInAdvanceError(day, latest=latest)

    if settings.is_blocked(day):
        raise DateBlockedError(day)

    if not settings.is_operating_day(day):
        raise RestaurantClosedError(day)

    if not is_valid_slot(settings, day, slot_time):
        raise InvalidTimeSlotError(slot_time)

    return ValidatedReservation(
        identity=identity_for(_clean(request.user_id), email),
        customer_name=name,
        customer_email=email,
        customer_phone=phone,
        reservation_date=day,
        reservation_time=slot_time,
        party_size=party_size,
        special_requests=_clean(request.special_requests),
        occasion=_clean(request.occasion),
        table_preference=_clean(request.table_preference),
    )


def belongs_to(reservation: Reservation, identity: CallerIdentity) -> bool:
    if isinstance(identity, Authenticated):
        return reservation.user_id == identity.user_id
    return reservation.user_id is None and reservation.customer_email == identity.email


def find_duplicate(
    existing: Iterable[Reservation],
    identity: CallerIdentity,
    *,
    day: date,
    slot_time: time,
) -> Optional[Reservation]:
    """
    First reservation of the same caller on ``day`` less than an hour away.

    Times are compared on the same calendar date only; bookings either side
    of midnight never collide.
    """
    candidate = datetime.combine(day, slot_time)
    for reservation in existing:
        if reservation.reservation_date != day:
            continue
        if reservation.status not in DUPLICATE_BLOCKING_STATUSES:
            continue
        if not belongs_to(reservation, identity):
            continue
        if abs(datetime.combine(day, reservation.reservation_time) - candidate) < DUPLICATE_WINDOW:
            return reservation
    return None


class ReservationValidator:
    def __init__(self, res_repo: ReservationRepository) -> None:
        self.res_repo = res_repo

    async def validate(
        self,
        settings: ReservationSettings,
        request: ReservationRequest,
        now: datetime,
    ) -> ValidatedReservation:
        validated = validate_request(settings, request, now)
        existing = await self.res_repo.list_for_identity_on_date(validated.identity, validated.reservation_date)
        duplicate = find_duplicate(
            existing,
            validated.identity,
            day=validated.reservation_date,
            slot_time=validated.reservation_time,
        )
        if duplicate is not None:
            raise DuplicateBookingError(duplicate.id, existing_time=duplicate.reservation_time)
        return validated

