from __future__ import annotations

from types import MappingProxyType

from ..models import ReservationStatus
from .errors import InvalidTransitionError

ALLOWED_TRANSITIONS = MappingProxyType(
    {
        ReservationStatus.PENDING: frozenset(
            {ReservationStatus.CONFIRMED, ReservationStatus.DECLINED, ReservationStatus.CANCELLED}
        ),
        ReservationStatus.CONFIRMED: frozenset(
            {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED, ReservationStatus.NO_SHOW}
        ),
    }
)

# Reservations that hold seats in a slot.
CAPACITY_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})

# Reservations that still count against the same caller's duplicate window.
DUPLICATE_BLOCKING_STATUSES = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED}
)


def can_transition(status_from: ReservationStatus, status_to: ReservationStatus) -> bool:
    return status_to in ALLOWED_TRANSITIONS.get(status_from, frozenset())


def ensure_transition(status_from: ReservationStatus, status_to: ReservationStatus) -> None:
    """Raise InvalidTransitionError unless the move is in the transition table."""
    if not can_transition(status_from, status_to):
        raise InvalidTransitionError(str(status_from), str(status_to))
