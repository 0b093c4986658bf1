"""
Blog API Backend - Auth Route Handlers
=======================================

What:  POST /api/auth/signup and POST /api/auth/signin.
How:   Request bodies are validated by the schemas (400 on failure), then
       AuthService does the work. Both endpoints are covered by the auth
       rate limiter in middleware/rate_limit.py.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db_session
from blog_api.schemas.common import ApiResponse, ErrorResponse
from blog_api.schemas.user import AuthData, SigninRequest, SignupRequest
from blog_api.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=ApiResponse[AuthData],
    responses={
        400: {"description": "Duplicate email or invalid input", "model": ErrorResponse},
        429: {"description": "Too many auth requests", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AuthData]:
    """Creates the account and returns the user with a bearer token."""
    data = await auth_service.signup(db, payload)
    return ApiResponse(message="User registered successfully", data=data)


@router.post(
    "/signin",
    response_model=ApiResponse[AuthData],
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        429: {"description": "Too many auth requests", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def signin(
    payload: SigninRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AuthData]:
    data = await auth_service.signin(db, payload)
    return ApiResponse(message="Login successful", data=data)
