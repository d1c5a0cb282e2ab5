from __future__ import annotations

from datetime import date, time

from .settings import ReservationSettings


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def generate_slots(settings: ReservationSettings, day: date) -> tuple[time, ...]:
    """
    Start times of every bookable slot on ``day``.

    Slots begin at opening time and step by the configured interval. A slot
    is kept only when its whole interval fits before closing time, so a
    trailing partial interval is dropped.
    """
    interval = settings.time_slot_interval
    closing = _minutes(settings.closing_time)
    slots: list[time] = []
    start = _minutes(settings.opening_time)
    while start + interval <= closing:
        slots.append(time(start // 60, start % 60))
        start += interval
    return tuple(slots)


def is_valid_slot(settings: ReservationSettings, day: date, slot_time: time) -> bool:
    return slot_time in generate_slots(settings, day)
