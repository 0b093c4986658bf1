"""
Blog API Backend - Request ID Middleware
=========================================

What:  Gives every request a correlation ID and returns it in X-Request-ID.
How:   Reuses a client-supplied X-Request-ID header, otherwise generates a
       short id; stores it in a ContextVar read by loggers and exception
       handlers.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_CLIENT_REQUEST_ID_LENGTH = 64

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns, propagates and echoes the request correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if not rid or len(rid) > MAX_CLIENT_REQUEST_ID_LENGTH:
            rid = _new_request_id()

        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
