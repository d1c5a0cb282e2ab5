from datetime import timedelta

import pytest
from booking.config import Settings, get_settings
from booking.deps import get_admin_user_id, get_current_user_id, get_optional_caller
from booking.utils.auth import ADMIN_ROLE, TokenSubject, create_access_token, decode_access_token
from fastapi import HTTPException


@pytest.fixture(autouse=True)
def _set_auth_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    get_settings.cache_clear()


def _token(user_id: str = "123", **kwargs) -> str:
    settings = Settings(auth_secret="testsecret")
    return create_access_token(user_id=user_id, secret=settings.auth_secret, algorithm=settings.auth_algorithm, **kwargs)


@pytest.mark.asyncio
async def test_optional_caller_is_none_without_header() -> None:
    assert await get_optional_caller(authorization=None) is None


@pytest.mark.asyncio
async def test_optional_caller_accepts_valid_token() -> None:
    caller = await get_optional_caller(authorization=f"Bearer {_token()}")
    assert caller == TokenSubject(user_id="123")


@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["Token abc", "Bearer ", "Bearer invalid"])
async def test_optional_caller_rejects_bad_header(header: str) -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_optional_caller(authorization=header)
    assert excinfo.value.status_code == 401
    assert excinfo.value.headers == {"WWW-Authenticate": "Bearer"}


@pytest.mark.asyncio
async def test_optional_caller_rejects_expired_token() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_optional_caller(authorization=f"Bearer {_token(expires_delta=timedelta(seconds=-1))}")
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_current_user_id_requires_caller() -> None:
    assert await get_current_user_id(caller=TokenSubject(user_id="7")) == "7"
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(caller=None)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_admin_user_id_requires_role() -> None:
    assert await get_admin_user_id(caller=TokenSubject(user_id="1", role=ADMIN_ROLE)) == "1"
    with pytest.raises(HTTPException) as excinfo:
        await get_admin_user_id(caller=TokenSubject(user_id="1"))
    assert excinfo.value.status_code == 403
    with pytest.raises(HTTPException) as excinfo:
        await get_admin_user_id(caller=None)
    assert excinfo.value.status_code == 401


def test_token_round_trip_keeps_role() -> None:
    subject = decode_access_token(_token("staff-1", role=ADMIN_ROLE), secret="testsecret", algorithms=["HS256"])
    assert subject.user_id == "staff-1"
    assert subject.is_admin


def test_token_signed_with_other_secret_is_rejected() -> None:
    with pytest.raises(ValueError):
        decode_access_token(_token(), secret="othersecret", algorithms=["HS256"])
