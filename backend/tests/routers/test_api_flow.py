from datetime import timedelta
from typing import AsyncIterator, Iterator

import pytest
from booking.config import get_settings
from booking.deps import get_reservation_repo, get_session, get_settings_store
from booking.domain.settings import ReservationSettings
from booking.infrastructure.memory import InMemoryReservationRepository, InMemorySettingsStore
from booking.main import app
from booking.models import Reservation
from booking.utils.auth import ADMIN_ROLE, create_access_token
from booking.utils.notifications import get_notifier
from booking.utils.time import restaurant_now
from fastapi.testclient import TestClient


class DummySession:
    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def reservation_created(self, reservation: Reservation) -> None:
        self.sent.append(reservation.id)


@pytest.fixture(autouse=True)
def _auth_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    get_settings.cache_clear()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(notifier: RecordingNotifier) -> Iterator[TestClient]:
    settings_store = InMemorySettingsStore(ReservationSettings(max_capacity_per_slot=10))
    res_repo = InMemoryReservationRepository(settings_store)

    async def override_get_session() -> AsyncIterator[DummySession]:
        yield DummySession()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings_store] = lambda: settings_store
    app.dependency_overrides[get_reservation_repo] = lambda: res_repo
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _auth(user_id: str, role: str | None = None) -> dict[str, str]:
    token = create_access_token(user_id=user_id, secret="testsecret", role=role, expires_delta=timedelta(minutes=5))
    return {"Authorization": f"Bearer {token}"}


def _booking(**overrides: object) -> dict[str, object]:
    day = restaurant_now().date() + timedelta(days=2)
    body: dict[str, object] = {
        "customer_name": "Ada Lovelace",
        "customer_email": "ada@example.com",
        "customer_phone": "+44 20 7946 0000",
        "reservation_date": day.isoformat(),
        "reservation_time": "18:00",
        "party_size": 4,
    }
    body.update(overrides)
    return body


def test_health(client: TestClient) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    assert res.headers["X-Request-ID"]


def test_member_books_lists_and_cancels(client: TestClient, notifier: RecordingNotifier) -> None:
    created = client.post("/reservations", json=_booking(), headers=_auth("u-1"))
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "pending"
    assert body["reservation_time"] == "18:00:00"
    assert body["user_id"] == "u-1"
    assert notifier.sent == [body["reservation_id"]]

    mine = client.get("/me/reservations", headers=_auth("u-1"))
    assert [r["reservation_id"] for r in mine.json()] == [body["reservation_id"]]
    assert client.get(f"/me/reservations/{body['reservation_id']}", headers=_auth("u-2")).status_code == 404

    cancelled = client.post(f"/me/reservations/{body['reservation_id']}/cancel", headers=_auth("u-1"))
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    again = client.post(f"/me/reservations/{body['reservation_id']}/cancel", headers=_auth("u-1"))
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "invalid_transition"


def test_guest_booking_and_lookup(client: TestClient) -> None:
    created = client.post("/reservations", json=_booking())
    assert created.status_code == 201
    assert created.json()["user_id"] is None

    rows = client.get("/guest/reservations", params={"email": "ada@example.com"})
    assert [r["reservation_id"] for r in rows.json()] == [created.json()["reservation_id"]]


def test_validation_error_shape(client: TestClient) -> None:
    res = client.post("/reservations", json=_booking(customer_email="nope"))
    assert res.status_code == 422
    assert res.json()["detail"] == {
        "code": "invalid_format",
        "message": "Please enter a valid email address.",
        "field": "customer_email",
    }


def test_missing_field_error_shape(client: TestClient) -> None:
    body = _booking()
    del body["customer_phone"]
    res = client.post("/reservations", json=body)
    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "missing_field"
    assert res.json()["detail"]["field"] == "customer_phone"


def test_duplicate_window(client: TestClient) -> None:
    assert client.post("/reservations", json=_booking(), headers=_auth("u-1")).status_code == 201
    second = client.post("/reservations", json=_booking(reservation_time="18:30"), headers=_auth("u-1"))
    assert second.status_code == 422
    assert second.json()["detail"]["code"] == "duplicate_booking"
    third = client.post("/reservations", json=_booking(reservation_time="20:00"), headers=_auth("u-1"))
    assert third.status_code == 201


def test_full_slot_returns_conflict(client: TestClient) -> None:
    first = client.post("/reservations", json=_booking(customer_email="a@example.com", party_size=6))
    assert first.status_code == 201
    second = client.post("/reservations", json=_booking(customer_email="b@example.com", party_size=5))
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "conflict_capacity"


def test_invalid_token_is_rejected_even_for_booking(client: TestClient) -> None:
    res = client.post("/reservations", json=_booking(), headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401


def test_availability(client: TestClient) -> None:
    day = _booking()["reservation_date"]
    client.post("/reservations", json=_booking(party_size=6))
    res = client.get("/availability", params={"date": day})
    assert res.status_code == 200
    slots = {row["slot_time"]: row["remaining"] for row in res.json()}
    assert slots["18:00:00"] == 4
    assert slots["18:30:00"] == 10

    check = client.get("/availability/check", params={"date": day, "time": "18:00", "party_size": 5})
    assert check.json()["available"] is False
    assert check.json()["remaining_capacity"] == 4
    bad = client.get("/availability/check", params={"date": day, "time": "six", "party_size": 5})
    assert bad.status_code == 400


def test_public_settings(client: TestClient) -> None:
    res = client.get("/settings")
    assert res.status_code == 200
    assert res.json()["max_capacity_per_slot"] == 10
    assert res.json()["opening_time"] == "11:00:00"


def test_admin_routes_require_admin_role(client: TestClient) -> None:
    assert client.get("/admin/reservations").status_code == 401
    assert client.get("/admin/reservations", headers=_auth("u-1")).status_code == 403


def test_admin_confirms_reservation(client: TestClient) -> None:
    created = client.post("/reservations", json=_booking()).json()
    admin = _auth("staff-1", ADMIN_ROLE)

    res = client.patch(
        f"/admin/reservations/{created['reservation_id']}/status",
        json={"status": "confirmed", "admin_notes": "regulars"},
        headers=admin,
    )
    assert res.status_code == 200
    assert res.json()["status"] == "confirmed"
    assert res.json()["admin_notes"] == "regulars"

    listed = client.get("/admin/reservations", params={"status": "confirmed"}, headers=admin)
    assert [r["reservation_id"] for r in listed.json()] == [created["reservation_id"]]

    skipped = client.patch(
        f"/admin/reservations/{created['reservation_id']}/status",
        json={"status": "pending"},
        headers=admin,
    )
    assert skipped.status_code == 409

    missing = client.patch("/admin/reservations/nope/status", json={"status": "confirmed"}, headers=admin)
    assert missing.status_code == 404


def test_admin_updates_settings(client: TestClient) -> None:
    admin = _auth("staff-1", ADMIN_ROLE)
    res = client.put("/admin/settings", json={"max_capacity_per_slot": 4, "special_notice": "Patio closed"}, headers=admin)
    assert res.status_code == 200
    assert res.json()["max_capacity_per_slot"] == 4
    assert client.get("/settings").json()["special_notice"] == "Patio closed"

    bad = client.put("/admin/settings", json={"time_slot_interval": 45}, headers=admin)
    assert bad.status_code == 422


def test_admin_settings_reject_offset_times(client: TestClient) -> None:
    admin = _auth("staff-1", ADMIN_ROLE)
    res = client.put("/admin/settings", json={"opening_time": "10:00:00Z"}, headers=admin)
    assert res.status_code == 422
    assert client.get("/settings").json()["opening_time"] == "11:00:00"


def test_non_numeric_party_size_uses_booking_error_shape(client: TestClient) -> None:
    res = client.post("/reservations", json=_booking(party_size="four"))
    assert res.status_code == 422
    assert res.json()["detail"] == {
        "code": "invalid_format",
        "message": "Party size must be a whole number.",
        "field": "party_size",
    }
