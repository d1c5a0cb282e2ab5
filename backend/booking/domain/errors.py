from __future__ import annotations

from datetime import date, time
from typing import Any, Literal, Optional


class DomainError(Exception):
    """Base class for every error raised by the booking core."""


class ReservationValidationError(DomainError):
    """Caller-correctable rejection of a reservation request."""

    code = "validation_error"
    default_message = "Reservation request is invalid."

    def __init__(self, message: Optional[str] = None, *, field: Optional[str] = None, value: Any = None) -> None:
        self.message = message or self.default_message
        self.field = field
        self.value = value
        super().__init__(self.message)


class MissingFieldError(ReservationValidationError):
    code = "missing_field"

    _labels = {
        "customer_name": "Customer name",
        "customer_email": "Email address",
        "customer_phone": "Phone number",
        "reservation_date": "Reservation date",
        "reservation_time": "Reservation time",
        "party_size": "Party size",
    }

    def __init__(self, field: str) -> None:
        label = self._labels.get(field, field)
        super().__init__(f"{label} is required.", field=field)


class InvalidFormatError(ReservationValidationError):
    code = "invalid_format"

    _messages = {
        "customer_email": "Please enter a valid email address.",
        "customer_phone": "Phone number may only contain digits, spaces, dashes, plus signs and parentheses.",
        "reservation_date": "Reservation date must be in YYYY-MM-DD format.",
        "reservation_time": "Reservation time must be in HH:MM or HH:MM:SS format.",
        "party_size": "Party size must be a whole number.",
    }

    def __init__(self, field: str, value: Any) -> None:
        message = self._messages.get(field, f"{field} has an invalid format.")
        super().__init__(message, field=field, value=value)


class PartySizeOutOfRangeError(ReservationValidationError):
    code = "party_size_out_of_range"

    def __init__(self, party_size: int, *, minimum: int, maximum: int) -> None:
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Party size must be between {minimum} and {maximum} guests.",
            field="party_size",
            value=party_size,
        )


class PastDateTimeError(ReservationValidationError):
    code = "past_date_time"
    default_message = "Cannot make reservations for past dates or times."

    def __init__(self, value: Any = None) -> None:
        super().__init__(field="reservation_time", value=value)


class SameDayNotAllowedError(ReservationValidationError):
    code = "same_day_not_allowed"
    default_message = "Same-day reservations are not available. Please choose a later date."

    def __init__(self, value: Optional[date] = None) -> None:
        super().__init__(field="reservation_date", value=value)


class TooFarInAdvanceError(ReservationValidationError):
    code = "too_far_in_advance"

    def __init__(self, value: date, *, latest: date) -> None:
        self.latest = latest
        super().__init__(
            f"Reservations can only be made up to {latest.isoformat()}.",
            field="reservation_date",
            value=value,
        )


class DateBlockedError(ReservationValidationError):
    code = "date_blocked"

    def __init__(self, value: date) -> None:
        super().__init__(
            f"We are not taking reservations on {value.isoformat()}. Please choose another date.",
            field="reservation_date",
            value=value,
        )


class RestaurantClosedError(ReservationValidationError):
    code = "restaurant_closed"

    def __init__(self, value: date) -> None:
        super().__init__(
            f"The restaurant is closed on {value.strftime('%A')}s. Please choose another date.",
            field="reservation_date",
            value=value,
        )


class InvalidTimeSlotError(ReservationValidationError):
    code = "invalid_time_slot"

    def __init__(self, value: time) -> None:
        super().__init__(
            f"{value.strftime('%H:%M')} is not an available reservation time.",
            field="reservation_time",
            value=value,
        )


class DuplicateBookingError(ReservationValidationError):
    code = "duplicate_booking"
    default_message = "You already have a reservation around this time. Please choose a different time."

    def __init__(self, existing_id: str, *, existing_time: time) -> None:
        self.existing_id = existing_id
        self.existing_time = existing_time
        super().__init__(field="reservation_time", value=existing_time)


class RepositoryError(DomainError):
    """Storage-side failure or a commit-time conflict."""


ConflictReason = Literal["capacity", "duplicate"]


class ConflictError(RepositoryError):
    """A concurrent booking won the slot; the caller may pick another time."""

    def __init__(self, reason: ConflictReason, message: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(message or f"reservation conflict: {reason}")


class InvalidTransitionError(RepositoryError):
    def __init__(self, status_from: str, status_to: str) -> None:
        self.status_from = status_from
        self.status_to = status_to
        super().__init__(f"cannot change reservation status from {status_from} to {status_to}")


class ReservationNotFoundError(RepositoryError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"reservation {reservation_id} not found")


class RepositoryUnavailableError(RepositoryError):
    pass


class SettingsUnavailableError(DomainError):
    pass
