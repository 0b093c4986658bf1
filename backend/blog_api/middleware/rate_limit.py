"""
Blog API Backend - Auth Rate Limiting Middleware
=================================================

What:  Per-IP sliding-window limit on /api/auth/* (signup and signin).
How:   Keeps recent request timestamps per client IP in memory. Once an IP
       has AUTH_RATE_LIMIT_REQUESTS requests inside the last
       AUTH_RATE_LIMIT_WINDOW seconds, further auth requests get a 429 with
       a Retry-After header until the oldest one leaves the window.

Scope:
    In-memory state is per process. With several workers each worker
    enforces its own limit.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from blog_api.config import settings
from blog_api.exceptions import RateLimitExceededError
from blog_api.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

LIMITED_PATH_PREFIX = "/api/auth/"

# Idle IPs are purged every CLEANUP_INTERVAL limited requests
CLEANUP_INTERVAL = 1000


class AuthRateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limiter for credential endpoints."""

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not settings.auth_rate_limit_enabled or not request.url.path.startswith(LIMITED_PATH_PREFIX):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        window = settings.auth_rate_limit_window
        window_start = now - window

        timestamps = self._requests[client_ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= settings.auth_rate_limit_requests:
            retry_after = int(timestamps[0] + window - now) + 1
            logger.warning(
                "Auth rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                window,
            )
            return self._reject(RateLimitExceededError(retry_after=retry_after))

        timestamps.append(now)

        self._seen += 1
        if self._seen % CLEANUP_INTERVAL == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    @staticmethod
    def _reject(exc: RateLimitExceededError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.error_code,
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
