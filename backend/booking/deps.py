from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemySettingsStore
from .utils.auth import TokenSubject, decode_access_token

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail, headers=_BEARER_CHALLENGE)


async def get_optional_caller(authorization: Optional[str] = Header(default=None)) -> Optional[TokenSubject]:
    """Caller from a bearer token, or None for a guest. A malformed or expired token is rejected."""
    if authorization is None:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("bearer token required")
    settings = get_settings()
    try:
        return decode_access_token(
            token.strip(),
            secret=settings.auth_secret,
            algorithms=[settings.auth_algorithm],
        )
    except ValueError as exc:
        raise _unauthorized("invalid or expired token") from exc


async def get_current_user_id(caller: Optional[TokenSubject] = Depends(get_optional_caller)) -> str:
    if caller is None:
        raise _unauthorized("authorization header required")
    return caller.user_id


async def get_admin_user_id(caller: Optional[TokenSubject] = Depends(get_optional_caller)) -> str:
    if caller is None:
        raise _unauthorized("authorization header required")
    if not caller.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin role required")
    return caller.user_id


async def get_settings_store(session: AsyncSession = Depends(get_session)) -> SqlAlchemySettingsStore:
    return SqlAlchemySettingsStore(session)


async def get_reservation_repo(
    session: AsyncSession = Depends(get_session),
) -> SqlAlchemyReservationRepository:
    return SqlAlchemyReservationRepository(session)
