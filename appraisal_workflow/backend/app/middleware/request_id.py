# backend/app/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

REQUEST_ID_HEADER = "X-Request-ID"

# ids from the front end or a proxy are echoed and logged, so keep them short and plain
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def get_request_id() -> str | None:
    return request_id_ctx.get()


def clean_request_id(value: str | None) -> str:
    """The caller's id when it is safe to log, else a fresh uuid4."""
    v = (value or "").strip()
    if v and _SAFE_ID.match(v):
        return v
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id that ends up on every log line it produces,
    on ``request.state`` (read by AppContext), and in the response header so
    a user reporting "refresh to retry" can quote it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = clean_request_id(request.headers.get(REQUEST_ID_HEADER))

        request.state.request_id = rid
        token = request_id_ctx.set(rid)
        try:
            resp = await call_next(request)
            resp.headers[REQUEST_ID_HEADER] = rid
            return resp
        finally:
            request_id_ctx.reset(token)
