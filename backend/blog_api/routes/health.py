"""
Blog API Backend - Health Check & Index Routes
===============================================

What:  GET /health for monitoring / load balancer probes, and GET / with
       the service name, version and endpoint map.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from blog_api import __version__
from blog_api.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """Probes the database with SELECT 1 and reports uptime."""
    database = request.app.state.database
    connected = await database.ping()

    payload = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if not connected:
        return JSONResponse(status_code=503, content=payload.model_dump())
    return payload


@router.get("/", summary="API index")
async def index() -> dict:
    return {
        "success": True,
        "message": "Welcome to the Blogging API",
        "data": {
            "version": __version__,
            "endpoints": {
                "auth": "/api/auth",
                "blogs": "/api/blogs",
                "health": "/health",
                "docs": "/docs",
            },
        },
    }
