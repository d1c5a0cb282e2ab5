from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import get_reservation_repo, get_settings_store
from ..domain.repositories import ReservationRepository, SettingsStore
from ..schemas import AvailabilityCheck, SlotAvailability
from ..usecases import availability as availability_usecase
from ..utils.time import parse_time

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=List[SlotAvailability])
async def list_availability(
    day: date = Query(..., alias="date", description="Restaurant-local date (YYYY-MM-DD)"),
    settings_store: SettingsStore = Depends(get_settings_store),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
) -> list[SlotAvailability]:
    rows = await availability_usecase.list_slot_availability(settings_store, res_repo, day=day)
    return [SlotAvailability(slot_time=entry["time"], remaining=entry["remaining"]) for entry in rows]


@router.get("/check", response_model=AvailabilityCheck)
async def check_availability(
    day: date = Query(..., alias="date"),
    time_value: str = Query(..., alias="time", description="HH:MM or HH:MM:SS"),
    party_size: int = Query(..., ge=1),
    settings_store: SettingsStore = Depends(get_settings_store),
    res_repo: ReservationRepository = Depends(get_reservation_repo),
) -> AvailabilityCheck:
    try:
        slot_time = parse_time(time_value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="time must be HH:MM or HH:MM:SS") from exc

    result = await availability_usecase.check_slot(
        settings_store,
        res_repo,
        day=day,
        slot_time=slot_time,
        party_size=party_size,
    )
    return AvailabilityCheck(
        reservation_date=day,
        reservation_time=slot_time,
        party_size=party_size,
        available=result.available,
        remaining_capacity=result.remaining_capacity,
    )
