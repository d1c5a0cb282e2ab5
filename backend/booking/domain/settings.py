from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time

ALLOWED_SLOT_INTERVALS = (15, 30, 60)
PARTY_SIZE_CEILING = 20
ALL_DAYS = frozenset(range(7))


@dataclass(frozen=True)
class ReservationSettings:
    """
    Immutable snapshot of the restaurant-wide booking rules.

    Weekdays follow the 0=Sunday..6=Saturday convention. An empty
    ``operating_days`` means the restaurant is open every day.
    Raises ValueError when the snapshot would break its own invariants.
    """

    opening_time: time = time(11, 0)
    closing_time: time = time(23, 0)
    time_slot_interval: int = 30
    max_capacity_per_slot: int = 50
    min_party_size: int = 1
    max_party_size: int = PARTY_SIZE_CEILING
    operating_days: frozenset[int] = ALL_DAYS
    allow_same_day_booking: bool = True
    advance_booking_days: int = 30
    blocked_dates: frozenset[date] = frozenset()
    enabled_occasions: tuple[str, ...] = ("birthday", "anniversary", "business", "date", "celebration", "casual")
    enabled_preferences: tuple[str, ...] = ("window", "quiet", "bar", "outdoor", "any")
    special_notice: str | None = field(default=None)

    def __post_init__(self) -> None:
        # Normalise containers so callers may pass lists.
        object.__setattr__(self, "operating_days", frozenset(self.operating_days))
        object.__setattr__(self, "blocked_dates", frozenset(self.blocked_dates))
        object.__setattr__(self, "enabled_occasions", tuple(self.enabled_occasions))
        object.__setattr__(self, "enabled_preferences", tuple(self.enabled_preferences))

        for name in ("opening_time", "closing_time"):
            value = getattr(self, name)
            if value.tzinfo is not None:
                raise ValueError(f"{name} must be a local wall-clock time without a UTC offset")
            if value.second or value.microsecond:
                raise ValueError(f"{name} must be a whole minute")
        if self.opening_time >= self.closing_time:
            raise ValueError("opening_time must be earlier than closing_time")
        if self.time_slot_interval not in ALLOWED_SLOT_INTERVALS:
            raise ValueError(f"time_slot_interval must be one of {ALLOWED_SLOT_INTERVALS}")
        if self.max_capacity_per_slot < 1:
            raise ValueError("max_capacity_per_slot must be >= 1")
        if not 1 <= self.min_party_size <= self.max_party_size <= PARTY_SIZE_CEILING:
            raise ValueError(f"party size bounds must satisfy 1 <= min <= max <= {PARTY_SIZE_CEILING}")
        if self.advance_booking_days < 0:
            raise ValueError("advance_booking_days must be >= 0")
        if not self.operating_days <= ALL_DAYS:
            raise ValueError("operating_days must contain weekday indices 0-6")

    def is_operating_day(self, day: date) -> bool:
        if not self.operating_days:
            return True
        return weekday_index(day) in self.operating_days

    def is_blocked(self, day: date) -> bool:
        return day in self.blocked_dates


DEFAULT_SETTINGS = ReservationSettings()


def weekday_index(day: date) -> int:
    """Sunday-based weekday index (0=Sunday, 6=Saturday)."""
    return (day.weekday() + 1) % 7
