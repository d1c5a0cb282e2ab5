import os
from datetime import date, datetime
from typing import Any, Callable

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AUTH_SECRET", "testsecret")

import pytest
from booking.domain.validation import ReservationRequest

RequestFactory = Callable[..., ReservationRequest]


@pytest.fixture
def now() -> datetime:
    # Sunday, noon restaurant time.
    return datetime(2026, 10, 18, 12, 0)


@pytest.fixture
def tomorrow() -> date:
    return date(2026, 10, 19)


@pytest.fixture
def make_request() -> RequestFactory:
    def factory(**overrides: Any) -> ReservationRequest:
        values: dict[str, Any] = {
            "customer_name": "Ada Lovelace",
            "customer_email": "ada@example.com",
            "customer_phone": "+44 20 7946 0000",
            "reservation_date": "2026-10-19",
            "reservation_time": "18:00",
            "party_size": 4,
        }
        values.update(overrides)
        return ReservationRequest(**values)

    return factory
