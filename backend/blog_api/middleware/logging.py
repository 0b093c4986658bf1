"""
Blog API Backend - Request Logging Middleware
==============================================

What:  One access-log line per request on the `blogapi.access` logger.
When:  Runs inside RequestIDMiddleware, so every line carries the request id.

Line format:
    GET /api/blogs 200 12.3ms [a1b2c3d4] from 10.0.0.7

Request bodies, query strings and the Authorization header are never
logged: signin bodies carry passwords and bearer tokens grant access.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from blog_api.middleware.request_id import request_id_var

logger = logging.getLogger("blogapi.access")

# Probe endpoints are polled every few seconds
QUIET_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, anything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Times each request and logs it once the response is ready."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        entry = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            level_for_status(response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] from %(client_ip)s",
            entry,
            extra=entry,
        )
        return response
