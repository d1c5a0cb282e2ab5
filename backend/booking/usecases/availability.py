import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from ..domain.availability import Availability, booked_covers, check_availability
from ..domain.errors import RepositoryUnavailableError, SettingsUnavailableError
from ..domain.repositories import ReservationRepository, SettingsStore
from ..domain.settings import DEFAULT_SETTINGS, ReservationSettings
from ..domain.slots import generate_slots
from ..utils.time import restaurant_now

logger = logging.getLogger(__name__)


async def display_settings(settings_store: SettingsStore) -> ReservationSettings:
    """Settings for rendering the booking form; falls back to defaults on read failure."""
    try:
        return await settings_store.get()
    except SettingsUnavailableError:
        logger.warning("reservation settings unavailable, showing defaults", exc_info=True)
        return DEFAULT_SETTINGS


async def list_slot_availability(
    settings_store: SettingsStore,
    res_repo: ReservationRepository,
    *,
    day: date,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    settings = await display_settings(settings_store)
    if settings.is_blocked(day) or not settings.is_operating_day(day):
        return []
    now = now or restaurant_now()
    today = now.date()
    if day < today or day > today + timedelta(days=settings.advance_booking_days):
        return []
    if day == today and not settings.allow_same_day_booking:
        return []

    try:
        existing = await res_repo.list_for_date(day)
    except RepositoryUnavailableError:
        logger.warning("bookings for %s unavailable, reporting unknown capacity", day, exc_info=True)
        existing = None

    items: List[Dict[str, Any]] = []
    for slot_time in generate_slots(settings, day):
        if datetime.combine(day, slot_time) <= now:
            continue
        if existing is None:
            remaining: Optional[int] = None
        else:
            reserved = booked_covers(existing, day=day, slot_time=slot_time)
            remaining = max(settings.max_capacity_per_slot - reserved, 0)
        items.append({"time": slot_time, "remaining": remaining})
    return items


async def check_slot(
    settings_store: SettingsStore,
    res_repo: ReservationRepository,
    *,
    day: date,
    slot_time: time,
    party_size: int,
) -> Availability:
    settings = await display_settings(settings_store)
    try:
        existing = await res_repo.list_for_slot(day, slot_time)
    except RepositoryUnavailableError:
        logger.warning("bookings for %s %s unavailable", day, slot_time, exc_info=True)
        return Availability.unknown()
    return check_availability(settings, existing, day=day, slot_time=slot_time, party_size=party_size)
