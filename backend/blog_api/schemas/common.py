"""
Blog API Backend - Shared Response Schemas
===========================================

What:  The response envelope used by every endpoint, the pagination block,
       the error body and the health payload.

Envelope:
    Success:  {"success": true, "message": "...", "data": {...}}
    Error:    {"success": false, "error": "not_found", "message": "...",
               "details": {...}, "request_id": "a1b2c3d4"}
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope. `data` holds the endpoint-specific payload."""

    success: bool = Field(default=True)
    message: Optional[str] = Field(default=None, description="Human-readable status message")
    data: Optional[T] = Field(default=None)


class Pagination(BaseModel):
    """Offset pagination block returned by list endpoints."""

    total: int = Field(description="Total number of items matching the filters")
    page: int = Field(description="Current page (1-based)")
    pages: int = Field(description="Number of pages: ceil(total / limit)")
    limit: int = Field(description="Page size used for this response")


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Fields:
        error: Machine-readable error code (e.g. "validation_error", "not_found")
        message: Human-readable description
        details: Optional extra context (e.g. field-level validation problems)
        request_id: Correlation ID for tracing this error in server logs
    """

    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check payload for monitoring and load balancer probes."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
