import logging

from fastapi import HTTPException, status

from ..domain.errors import (
    ConflictError,
    DomainError,
    InvalidTransitionError,
    ReservationNotFoundError,
    ReservationValidationError,
)
from ..schemas import ErrorDetail

logger = logging.getLogger(__name__)

RETRY_LATER = "Reservations are temporarily unavailable. Please try again in a few minutes."

_CONFLICT_MESSAGES = {
    "capacity": "This time slot just filled up. Please choose a different time.",
    "duplicate": "You already have a reservation around this time. Please choose a different time.",
}


def to_http_exception(exc: DomainError) -> HTTPException:
    """Map a booking-core error onto the response the caller sees."""
    if isinstance(exc, ReservationValidationError):
        detail = ErrorDetail(code=exc.code, message=exc.message, field=exc.field)
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail.model_dump())
    if isinstance(exc, ConflictError):
        detail = ErrorDetail(code=f"conflict_{exc.reason}", message=_CONFLICT_MESSAGES[exc.reason])
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail.model_dump())
    if isinstance(exc, InvalidTransitionError):
        detail = ErrorDetail(code="invalid_transition", message=str(exc), field="status")
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail.model_dump())
    if isinstance(exc, ReservationNotFoundError):
        detail = ErrorDetail(code="not_found", message="Reservation not found.")
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail.model_dump())

    logger.error("booking request failed: %s", exc, exc_info=exc)
    detail = ErrorDetail(code="unavailable", message=RETRY_LATER)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail.model_dump())
