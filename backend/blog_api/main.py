"""
Blog API Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application.
How:   create_app() wires middleware, exception handlers, routes and the
       lifespan that owns the Database handle.
Who:   uvicorn (`uvicorn blog_api.main:app`) and the test suite, which calls
       create_app(database=...) with its own SQLite-backed handle.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌─────────────────────┐  │
    │  │  Req ID  │→│ Logging  │→│ Auth Rate Limit     │  │
    │  └──────────┘ └──────────┘ └─────────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌────────────┐ ┌──────────────┐   │
    │  │ /api/auth/*  │ │ /api/blogs │ │ /health, /   │   │
    │  └──────────────┘ └────────────┘ └──────────────┘   │
    │                                                     │
    │  Exception Handlers (JSON envelope):                │
    │  ┌───────────────────────────────────────────────┐  │
    │  │ Validation/Conflict→400 │ Auth→401 │ NF→404   │  │
    │  │ RateLimit→429 │ Database/unexpected→500       │  │
    │  └───────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → Database handle (unless one was
              injected) → optional create_all
    Shutdown: dispose the Database handle this app created
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blog_api import __version__
from blog_api.config import settings
from blog_api.database import Database
from blog_api.exceptions import (
    AuthenticationError,
    BlogAPIError,
    RateLimitExceededError,
)
from blog_api.middleware.logging import RequestLoggingMiddleware
from blog_api.middleware.rate_limit import AuthRateLimitMiddleware
from blog_api.middleware.request_id import RequestIDMiddleware, request_id_var
from blog_api.routes import auth, blogs, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configures the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] blog_api.services.post_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Owns the Database handle for the lifetime of the application.

    A handle injected through create_app(database=...) is used as-is and
    left for the caller to dispose.
    """
    setup_logging()
    logger.info("Blog API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database.from_settings(settings)
    database: Database = app.state.database

    if settings.db_create_tables:
        await database.create_all()
        logger.info("Database tables ensured")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Blog API shutting down...")
    if owns_database:
        await database.dispose()
        app.state.database = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _field_name(loc) -> str:
    # loc looks like ("body", "password") or ("query", "page")
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(part) for part in loc]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps exceptions to the JSON error envelope.

    Handler hierarchy:
        BlogAPIError subclasses  → their status_code / error_code
        RequestValidationError   → 400 validation_error (not FastAPI's 422)
        HTTPException (routing)  → its status code (404 unknown route, 405, ...)
        Exception (fallback)     → 500, stack trace logged server-side only
    """

    @app.exception_handler(BlogAPIError)
    async def handle_app_error(request: Request, exc: BlogAPIError):
        rid = request_id_var.get("")
        headers: Dict[str, str] = {}
        details: Optional[Dict[str, Any]] = None
        message = exc.message

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        elif exc.status_code != 404:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        if isinstance(exc, AuthenticationError):
            headers["WWW-Authenticate"] = "Bearer"
        elif isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)
            details = exc.context
        elif exc.status_code == 400 and "field" in exc.context:
            details = {"field": exc.context["field"]}

        return _error_response(exc.status_code, exc.error_code, message, details, headers or None)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
            for err in exc.errors()
        ]
        if errors:
            first = errors[0]
            message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        else:
            message = "Invalid request"
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return _error_response(400, "validation_error", message, {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        error = "not_found" if exc.status_code == 404 else "http_error"
        return _error_response(
            exc.status_code, error, str(exc.detail), headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Assembles the application.

    Args:
        database: Pre-built storage handle. When omitted, the lifespan builds
            one from settings at startup and disposes it at shutdown.
    """
    app = FastAPI(
        title="Blogging API",
        description=(
            "Blogging REST API: signup/signin with bearer tokens and blog post CRUD "
            "with pagination, search and draft/published state."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database

    # Middleware executes in REVERSE order of addition (last added = outermost):
    # RequestID → Logging → AuthRateLimit → GZip → CORS → routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(AuthRateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(blogs.router)
    app.include_router(health.router)

    return app


app = create_app()
