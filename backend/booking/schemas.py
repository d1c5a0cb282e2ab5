from datetime import date, datetime, time
from typing import Optional, Union

from pydantic import BaseModel, Field, field_serializer

from .domain.settings import ReservationSettings
from .domain.validation import ReservationRequest
from .models import Reservation, ReservationStatus
from .utils.time import canonical_time


class ReservationCreate(BaseModel):
    # Presence and format are checked by the booking validator so every
    # rejection carries the same error shape.
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    reservation_date: Optional[str] = None
    reservation_time: Optional[str] = None
    party_size: Union[int, str, None] = None
    special_requests: Optional[str] = Field(default=None, max_length=1000)
    occasion: Optional[str] = Field(default=None, max_length=50)
    table_preference: Optional[str] = Field(default=None, max_length=50)

    def to_request(self, *, user_id: Optional[str]) -> ReservationRequest:
        return ReservationRequest(
            customer_name=self.customer_name,
            customer_email=self.customer_email,
            customer_phone=self.customer_phone,
            reservation_date=self.reservation_date,
            reservation_time=self.reservation_time,
            party_size=self.party_size,
            user_id=user_id,
            special_requests=self.special_requests,
            occasion=self.occasion,
            table_preference=self.table_preference,
        )


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus
    admin_notes: Optional[str] = Field(default=None, max_length=2000)


class ReservationRead(BaseModel):
    reservation_id: str
    user_id: Optional[str]
    customer_name: str
    customer_email: str
    customer_phone: str
    reservation_date: date
    reservation_time: time
    party_size: int
    status: ReservationStatus
    special_requests: Optional[str] = None
    occasion: Optional[str] = None
    table_preference: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: datetime

    @field_serializer("reservation_time")
    def _ser_time(self, value: time) -> str:
        return canonical_time(value)

    @classmethod
    def from_db(cls, reservation: Reservation, *, include_admin_notes: bool = False) -> "ReservationRead":
        return cls(
            reservation_id=reservation.id,
            user_id=reservation.user_id,
            customer_name=reservation.customer_name,
            customer_email=reservation.customer_email,
            customer_phone=reservation.customer_phone,
            reservation_date=reservation.reservation_date,
            reservation_time=reservation.reservation_time,
            party_size=reservation.party_size,
            status=reservation.status,
            special_requests=reservation.special_requests,
            occasion=reservation.occasion,
            table_preference=reservation.table_preference,
            admin_notes=reservation.admin_notes if include_admin_notes else None,
            created_at=reservation.created_at,
        )


class SlotAvailability(BaseModel):
    slot_time: time
    remaining: Optional[int]

    @field_serializer("slot_time")
    def _ser_time(self, value: time) -> str:
        return canonical_time(value)


class AvailabilityCheck(BaseModel):
    reservation_date: date
    reservation_time: time
    party_size: int
    available: bool
    remaining_capacity: Optional[int]

    @field_serializer("reservation_time")
    def _ser_time(self, value: time) -> str:
        return canonical_time(value)


class SettingsRead(BaseModel):
    opening_time: time
    closing_time: time
    time_slot_interval: int
    max_capacity_per_slot: int
    min_party_size: int
    max_party_size: int
    operating_days: list[int]
    allow_same_day_booking: bool
    advance_booking_days: int
    blocked_dates: list[date]
    enabled_occasions: list[str]
    enabled_preferences: list[str]
    special_notice: Optional[str]

    @classmethod
    def from_domain(cls, settings: ReservationSettings) -> "SettingsRead":
        return cls(
            opening_time=settings.opening_time,
            closing_time=settings.closing_time,
            time_slot_interval=settings.time_slot_interval,
            max_capacity_per_slot=settings.max_capacity_per_slot,
            min_party_size=settings.min_party_size,
            max_party_size=settings.max_party_size,
            operating_days=sorted(settings.operating_days),
            allow_same_day_booking=settings.allow_same_day_booking,
            advance_booking_days=settings.advance_booking_days,
            blocked_dates=sorted(settings.blocked_dates),
            enabled_occasions=list(settings.enabled_occasions),
            enabled_preferences=list(settings.enabled_preferences),
            special_notice=settings.special_notice,
        )


class SettingsUpdate(BaseModel):
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    time_slot_interval: Optional[int] = None
    max_capacity_per_slot: Optional[int] = Field(default=None, ge=1)
    min_party_size: Optional[int] = Field(default=None, ge=1, le=20)
    max_party_size: Optional[int] = Field(default=None, ge=1, le=20)
    operating_days: Optional[list[int]] = None
    allow_same_day_booking: Optional[bool] = None
    advance_booking_days: Optional[int] = Field(default=None, ge=0)
    blocked_dates: Optional[list[date]] = None
    enabled_occasions: Optional[list[str]] = None
    enabled_preferences: Optional[list[str]] = None
    special_notice: Optional[str] = None

    def changes(self) -> dict[str, object]:
        # Only special_notice may be cleared with an explicit null.
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key == "special_notice"
        }


class ErrorDetail(BaseModel):
    code: str
    message: str
    field: Optional[str] = None
