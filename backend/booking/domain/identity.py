from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Authenticated:
    user_id: str


@dataclass(frozen=True)
class Guest:
    email: str


CallerIdentity = Union[Authenticated, Guest]


def identity_for(user_id: Optional[str], email: str) -> CallerIdentity:
    """Authenticated callers are keyed by user id, guests by the email they booked with."""
    if user_id:
        return Authenticated(user_id)
    return Guest(email)
