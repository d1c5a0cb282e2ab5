import inspect
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

from ..domain.availability import Availability, check_availability
from ..domain.errors import (
    ConflictError,
    RepositoryUnavailableError,
    ReservationNotFoundError,
    SettingsUnavailableError,
)
from ..domain.identity import Authenticated, CallerIdentity
from ..domain.repositories import ReservationFilters, ReservationRepository, SettingsStore
from ..domain.settings import ReservationSettings
from ..domain.status import ensure_transition
from ..domain.validation import ReservationRequest, ReservationValidator, ValidatedReservation, belongs_to
from ..models import Reservation, ReservationStatus
from ..utils.time import restaurant_now

logger = logging.getLogger(__name__)

CreatedCallback = Callable[[Reservation], Union[Awaitable[None], None]]


async def load_settings(settings_store: SettingsStore) -> ReservationSettings:
    """Settings for an authoritative booking decision; never substituted with defaults."""
    try:
        return await settings_store.get()
    except SettingsUnavailableError:
        raise
    except Exception as exc:
        raise SettingsUnavailableError("reservation settings could not be loaded") from exc


async def advisory_availability(
    settings: ReservationSettings,
    res_repo: ReservationRepository,
    validated: ValidatedReservation,
) -> Availability:
    try:
        existing = await res_repo.list_for_slot(validated.reservation_date, validated.reservation_time)
    except RepositoryUnavailableError:
        logger.warning(
            "could not read bookings for %s %s, deferring capacity check to insert",
            validated.reservation_date,
            validated.time_label,
            exc_info=True,
        )
        return Availability.unknown()
    return check_availability(
        settings,
        existing,
        day=validated.reservation_date,
        slot_time=validated.reservation_time,
        party_size=validated.party_size,
    )


async def create_reservation(
    settings_store: SettingsStore,
    res_repo: ReservationRepository,
    *,
    request: ReservationRequest,
    now: Optional[datetime] = None,
    on_created: Optional[CreatedCallback] = None,
) -> Reservation:
    settings = await load_settings(settings_store)
    validated = await ReservationValidator(res_repo).validate(settings, request, now or restaurant_now())

    availability = await advisory_availability(settings, res_repo, validated)
    if not availability.available:
        raise ConflictError("capacity", "slot is fully booked")

    # Authoritative re-check happens inside the repository; its conflicts propagate as-is.
    reservation = await res_repo.insert_if_valid(validated)

    if on_created is not None:
        await _notify_created(on_created, reservation)
    return reservation


async def _notify_created(callback: CreatedCallback, reservation: Reservation) -> None:
    try:
        result = callback(reservation)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("reservation %s created but the created-callback failed", reservation.id)


async def cancel_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: str,
    identity: CallerIdentity,
) -> tuple[Reservation, ReservationStatus]:
    """Cancel one of the caller's own reservations. Returns it with its previous status."""
    reservation = await res_repo.get(reservation_id)
    if reservation is None or not belongs_to(reservation, identity):
        raise ReservationNotFoundError(reservation_id)
    previous = reservation.status
    ensure_transition(previous, ReservationStatus.CANCELLED)
    updated = await res_repo.update_status(reservation_id, ReservationStatus.CANCELLED)
    return updated, previous


async def list_reservations(
    res_repo: ReservationRepository,
    *,
    identity: CallerIdentity,
) -> list[Reservation]:
    if isinstance(identity, Authenticated):
        return await res_repo.list_by_caller(user_id=identity.user_id)
    return await res_repo.list_by_caller(email=identity.email)


async def get_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: str,
    identity: CallerIdentity,
) -> Reservation | None:
    reservation = await res_repo.get(reservation_id)
    if reservation is None or not belongs_to(reservation, identity):
        return None
    return reservation


async def list_all_reservations(
    res_repo: ReservationRepository,
    *,
    filters: ReservationFilters,
) -> list[Reservation]:
    return await res_repo.list_all(filters)


async def update_reservation_status(
    res_repo: ReservationRepository,
    *,
    reservation_id: str,
    status: ReservationStatus,
    admin_notes: Optional[str] = None,
) -> tuple[Reservation, ReservationStatus]:
    reservation = await res_repo.get(reservation_id)
    if reservation is None:
        raise ReservationNotFoundError(reservation_id)
    previous = reservation.status
    updated = await res_repo.update_status(reservation_id, status, admin_notes=admin_notes)
    return updated, previous
