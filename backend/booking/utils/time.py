from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from ..config import get_settings

CANONICAL_TIME_FORMAT = "%H:%M:%S"
_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def restaurant_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().restaurant_timezone)


def restaurant_now() -> datetime:
    """Current wall-clock time at the restaurant, naive."""
    return datetime.now(timezone.utc).astimezone(restaurant_zone()).replace(tzinfo=None)


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_time(value: str) -> time:
    text = value.strip()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"invalid time: {value!r}")


def parse_date(value: str) -> date:
    return date.fromisoformat(value.strip())


def canonical_time(value: time) -> str:
    return value.strftime(CANONICAL_TIME_FORMAT)
