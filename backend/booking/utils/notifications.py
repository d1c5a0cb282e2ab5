from __future__ import annotations

import logging
from typing import Protocol

from ..models import Reservation

logger = logging.getLogger(__name__)


class ReservationNotifier(Protocol):
    async def reservation_created(self, reservation: Reservation) -> None: ...


class LoggingNotifier:
    """Stand-in for the transactional email sender."""

    async def reservation_created(self, reservation: Reservation) -> None:
        logger.info(
            "reservation %s received for %s at %s (party of %d)",
            reservation.id,
            reservation.reservation_date.isoformat(),
            reservation.reservation_time.strftime("%H:%M"),
            reservation.party_size,
        )


def get_notifier() -> ReservationNotifier:
    return LoggingNotifier()
