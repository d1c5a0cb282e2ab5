from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_admin_user_id, get_reservation_repo, get_session, get_settings_store
from ..domain.errors import DomainError
from ..domain.repositories import ReservationFilters, ReservationRepository, SettingsStore
from ..models import ReservationStatus
from ..schemas import ReservationRead, ReservationStatusUpdate, SettingsRead, SettingsUpdate
from ..usecases import availability as availability_usecase
from ..usecases import reservations as reservation_usecase
from ..usecases import settings as settings_usecase
from ..utils.audit_log import emit_audit_log
from .errors import to_http_exception

router = APIRouter(prefix="", tags=["admin"])


@router.get("/settings", response_model=SettingsRead)
async def read_settings(
    settings_store: SettingsStore = Depends(get_settings_store),
) -> SettingsRead:
    settings = await availability_usecase.display_settings(settings_store)
    return SettingsRead.from_domain(settings)


@router.put("/admin/settings", response_model=SettingsRead)
async def update_settings(
    payload: SettingsUpdate,
    session: AsyncSession = Depends(get_session),
    settings_store: SettingsStore = Depends(get_settings_store),
    admin_id: str = Depends(get_admin_user_id),
) -> SettingsRead:
    changes = payload.changes()
    async with session.begin():
        try:
            _, saved = await settings_usecase.update_reservation_settings(settings_store, changes=changes)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        except DomainError as exc:
            raise to_http_exception(exc) from exc
        try:
            emit_audit_log(
                action="settings.updated",
                initiator="admin",
                user_id=admin_id,
                extra={"changed": sorted(changes)},
            )
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return SettingsRead.from_domain(saved)


@router.get("/admin/reservations", response_model=List[ReservationRead])
async def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(default=None, alias="status"),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    email: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
    admin_id: str = Depends(get_admin_user_id),
) -> list[ReservationRead]:
    filters = ReservationFilters(
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        user_id=user_id,
        email=email,
        limit=limit,
    )
    try:
        rows = await reservation_usecase.list_all_reservations(res_repo, filters=filters)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [ReservationRead.from_db(reservation, include_admin_notes=True) for reservation in rows]


@router.patch("/admin/reservations/{reservation_id}/status", response_model=ReservationRead)
async def update_reservation_status(
    payload: ReservationStatusUpdate,
    reservation_id: str = Path(..., min_length=1, max_length=32),
    session: AsyncSession = Depends(get_session),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
    admin_id: str = Depends(get_admin_user_id),
) -> ReservationRead:
    async with session.begin():
        try:
            updated, previous = await reservation_usecase.update_reservation_status(
                res_repo,
                reservation_id=reservation_id,
                status=payload.status,
                admin_notes=payload.admin_notes,
            )
        except DomainError as exc:
            raise to_http_exception(exc) from exc
        try:
            emit_audit_log(
                action="reservation.status_changed",
                initiator="admin",
                reservation_id=updated.id,
                user_id=admin_id,
                party_size=updated.party_size,
                reservation_date=updated.reservation_date,
                reservation_time=updated.reservation_time,
                status_from=previous,
                status_to=updated.status,
            )
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return ReservationRead.from_db(updated, include_admin_notes=True)
