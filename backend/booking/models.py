from __future__ import annotations

from datetime import date, datetime, time
from enum import StrEnum
from typing import Optional

from sqlalchemy import JSON, CheckConstraint, Enum, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Boolean, Date, DateTime, Integer, String, Text, Time


class Base(DeclarativeBase):
    pass


class ReservationStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


SETTINGS_ROW_ID = 1


class ReservationSettingsRow(Base):
    """Singleton row holding the restaurant-wide booking rules."""

    __tablename__ = "reservation_settings"
    __table_args__ = (
        CheckConstraint("opening_time < closing_time", name="chk_settings_hours"),
        CheckConstraint("time_slot_interval IN (15, 30, 60)", name="chk_settings_interval"),
        CheckConstraint("max_capacity_per_slot >= 1", name="chk_settings_capacity"),
        CheckConstraint(
            "min_party_size >= 1 AND min_party_size <= max_party_size AND max_party_size <= 20",
            name="chk_settings_party_size",
        ),
        CheckConstraint("advance_booking_days >= 0", name="chk_settings_advance_days"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    opening_time: Mapped[time] = mapped_column(Time, nullable=False)
    closing_time: Mapped[time] = mapped_column(Time, nullable=False)
    time_slot_interval: Mapped[int] = mapped_column(Integer, nullable=False)
    max_capacity_per_slot: Mapped[int] = mapped_column(Integer, nullable=False)
    min_party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    max_party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    # weekday indices, 0=Sunday
    operating_days: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    allow_same_day_booking: Mapped[bool] = mapped_column(Boolean, nullable=False)
    advance_booking_days: Mapped[int] = mapped_column(Integer, nullable=False)
    # ISO dates (YYYY-MM-DD)
    blocked_dates: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    enabled_occasions: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    enabled_preferences: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    special_notice: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class Reservation(Base):
    __tablename__ = "table_reservations"
    __table_args__ = (
        CheckConstraint("party_size >= 1 AND party_size <= 20", name="chk_res_party_size"),
        Index("idx_res_datetime", "reservation_date", "reservation_time"),
        Index("idx_res_user", "user_id"),
        Index("idx_res_email", "customer_email"),
        Index("idx_res_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    reservation_time: Mapped[time] = mapped_column(Time, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    occasion: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    table_preference: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

