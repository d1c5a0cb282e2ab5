from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_LENGTH = 128
# Incoming ids end up in JSON audit lines; keep them to a safe alphabet.
_ALLOWED = re.compile(r"^[A-Za-z0-9._:\-]+$")

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def accept_request_id(incoming: str | None) -> str:
    """Incoming id when it is usable, otherwise a fresh one."""
    if incoming:
        candidate = incoming.strip()
        if 0 < len(candidate) <= _MAX_LENGTH and _ALLOWED.match(candidate):
            return candidate
    return generate_request_id()


def set_request_id(request_id: str | None) -> None:
    """Store request id in context (None to clear)."""
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()
