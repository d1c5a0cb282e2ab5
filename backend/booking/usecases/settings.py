import dataclasses
from typing import Any, Mapping

from ..domain.repositories import SettingsStore
from ..domain.settings import ReservationSettings
from .reservations import load_settings


async def get_reservation_settings(settings_store: SettingsStore) -> ReservationSettings:
    return await load_settings(settings_store)


async def update_reservation_settings(
    settings_store: SettingsStore,
    *,
    changes: Mapping[str, Any],
) -> tuple[ReservationSettings, ReservationSettings]:
    """
    Merge ``changes`` onto the current settings and save the result.
    Last writer wins. Raises ValueError if the merged settings are invalid.
    Returns (previous, updated).
    """
    current = await load_settings(settings_store)
    unknown = set(changes) - {f.name for f in dataclasses.fields(ReservationSettings)}
    if unknown:
        raise ValueError(f"unknown settings: {', '.join(sorted(unknown))}")
    updated = dataclasses.replace(current, **changes)
    saved = await settings_store.save(updated)
    return current, saved
