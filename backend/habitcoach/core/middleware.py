"""HTTP middleware that binds request context."""
from __future__ import annotations

from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from habitcoach.core.context import bind_user, request_id_ctx_var, user_id_ctx_var


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id, and the ``user_id`` query parameter when present.

    The id comes from ``X-Request-Id`` or is generated. It is stored on
    ``request.state`` and echoed on the response. Routes that take the user
    id from a JSON body bind it themselves.
    """

    header_name = "X-Request-Id"

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get(self.header_name) or uuid4().hex
        request.state.request_id = request_id
        request_token = request_id_ctx_var.set(request_id)
        user_token = bind_user(request.query_params.get("user_id"))

        try:
            response = await call_next(request)
        finally:
            user_id_ctx_var.reset(user_token)
            request_id_ctx_var.reset(request_token)

        response.headers[self.header_name] = request_id
        return response
