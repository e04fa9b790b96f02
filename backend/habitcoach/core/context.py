"""Per-request context: the request id and the user whose habit data is handled."""
from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Optional
from uuid import UUID

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_ctx_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def get_request_id() -> Optional[str]:
    return request_id_ctx_var.get()


def get_user_id() -> Optional[str]:
    return user_id_ctx_var.get()


def bind_user(user_id: UUID | str | None) -> Token:
    """Attach ``user_id`` to the current context for log records and traces."""
    return user_id_ctx_var.set(str(user_id) if user_id else None)
