from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_user_id, get_optional_caller, get_reservation_repo, get_session, get_settings_store
from ..domain.errors import DomainError
from ..domain.identity import Authenticated, Guest
from ..domain.repositories import ReservationRepository, SettingsStore
from ..models import Reservation
from ..schemas import ReservationCreate, ReservationRead
from ..usecases import reservations as reservation_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.auth import TokenSubject
from ..utils.notifications import ReservationNotifier, get_notifier
from .errors import to_http_exception

router = APIRouter(prefix="", tags=["reservations"])


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    settings_store: SettingsStore = Depends(get_settings_store),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
    caller: Optional[TokenSubject] = Depends(get_optional_caller),
    notifier: ReservationNotifier = Depends(get_notifier),
) -> ReservationRead:
    user_id = caller.user_id if caller is not None else None

    def schedule_notification(reservation: Reservation) -> None:
        # Background tasks run after the response, i.e. after the commit below.
        background_tasks.add_task(notifier.reservation_created, reservation)

    async with session.begin():
        try:
            reservation = await reservation_usecase.create_reservation(
                settings_store,
                res_repo,
                request=payload.to_request(user_id=user_id),
                on_created=schedule_notification,
            )
        except DomainError as exc:
            raise to_http_exception(exc) from exc
        try:
            emit_audit_log(
                action="reservation.created",
                initiator="user" if user_id else "guest",
                reservation_id=reservation.id,
                user_id=user_id,
                party_size=reservation.party_size,
                reservation_date=reservation.reservation_date,
                reservation_time=reservation.reservation_time,
                status_to=reservation.status,
            )
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return ReservationRead.from_db(reservation)


@router.get("/me/reservations", response_model=List[ReservationRead])
async def list_my_reservations(
    res_repo: ReservationRepository = Depends(get_reservation_repo),
    user_id: str = Depends(get_current_user_id),
) -> list[ReservationRead]:
    try:
        rows = await reservation_usecase.list_reservations(res_repo, identity=Authenticated(user_id))
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [ReservationRead.from_db(reservation) for reservation in rows]


@router.get("/guest/reservations", response_model=List[ReservationRead])
async def list_guest_reservations(
    email: str = Query(..., min_length=3, max_length=255),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
) -> list[ReservationRead]:
    try:
        rows = await reservation_usecase.list_reservations(res_repo, identity=Guest(email.strip()))
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [ReservationRead.from_db(reservation) for reservation in rows]


@router.get("/me/reservations/{reservation_id}", response_model=ReservationRead)
async def get_my_reservation(
    reservation_id: str = Path(..., min_length=1, max_length=32),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
    user_id: str = Depends(get_current_user_id),
) -> ReservationRead:
    reservation = await reservation_usecase.get_reservation(
        res_repo,
        reservation_id=reservation_id,
        identity=Authenticated(user_id),
    )
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="reservation not found")
    return ReservationRead.from_db(reservation)


@router.post("/me/reservations/{reservation_id}/cancel", response_model=ReservationRead)
async def cancel_reservation(
    reservation_id: str = Path(..., min_length=1, max_length=32),
    session: AsyncSession = Depends(get_session),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
    user_id: str = Depends(get_current_user_id),
) -> ReservationRead:
    async with session.begin():
        try:
            updated, previous = await reservation_usecase.cancel_reservation(
                res_repo,
                reservation_id=reservation_id,
                identity=Authenticated(user_id),
            )
        except DomainError as exc:
            raise to_http_exception(exc) from exc
        try:
            emit_audit_log(
                action="reservation.cancelled",
                initiator="user",
                reservation_id=updated.id,
                user_id=user_id,
                party_size=updated.party_size,
                reservation_date=updated.reservation_date,
                reservation_time=updated.reservation_time,
                status_from=previous,
                status_to=updated.status,
            )
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return ReservationRead.from_db(updated)
