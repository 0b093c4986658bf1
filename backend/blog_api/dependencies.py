"""
Blog API Backend - Request Dependencies
========================================

What:  Resolves the authenticated user from `Authorization: Bearer <token>`.
How:   HTTPBearer extracts the credentials (auto_error disabled so a missing
       header becomes our AuthenticationError and the standard envelope),
       the token is verified, and the user is loaded with the request's
       session.

Example:
    @router.post("/blogs")
    async def create_blog(current_user: User = Depends(get_current_user)):
        ...
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db_session
from blog_api.exceptions import AuthenticationError
from blog_api.models.user import User
from blog_api.security import decode_access_token
from blog_api.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Returns the User the bearer token was issued to.

    Raises:
        AuthenticationError: header missing, token invalid or expired, or
            the user no longer exists (→ 401)
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Not authenticated, token missing")

    user_id = decode_access_token(credentials.credentials)
    user = await auth_service.get_user(db, user_id)
    if user is None:
        raise AuthenticationError(message="Invalid or expired token")
    return user
