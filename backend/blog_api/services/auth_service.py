"""
Blog API Backend - Auth Service
================================

What:  Signup, signin and user lookup for bearer-token authentication.
Who:   Called by routes/auth.py and the current-user dependency.

Signup Flow:
    ┌────────────┐    ┌───────────────┐    ┌──────────────┐    ┌─────────┐
    │  Validate  │───▶│ Email unique? │───▶│ Hash + store │───▶│  Token  │
    │  (schema)  │    │   (SELECT)    │    │   (INSERT)   │    │  (JWT)  │
    └────────────┘    └───────────────┘    └──────────────┘    └─────────┘

    Two concurrent signups with the same email can both pass the SELECT;
    the unique index then rejects the second INSERT and the IntegrityError
    is reported as the same ConflictError.
"""

import logging
import uuid
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import AuthenticationError, ConflictError, DatabaseError
from blog_api.models.user import User
from blog_api.schemas.user import AuthData, SigninRequest, SignupRequest, UserResponse
from blog_api.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "Email already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


class AuthService:
    """
    Stateless service; every call receives the request's session.

    Error Handling Strategy:
        IntegrityError → ConflictError, any other SQLAlchemyError →
        DatabaseError. Our own exceptions propagate unchanged.
    """

    async def signup(self, db: AsyncSession, payload: SignupRequest) -> AuthData:
        """
        Registers a new user and returns it with a fresh token.

        Raises:
            ConflictError: email already registered (→ 400)
            DatabaseError: storage failure (→ 500)
        """
        try:
            existing = await self._get_by_email(db, payload.email)
            if existing is not None:
                raise ConflictError(message=DUPLICATE_EMAIL_MESSAGE, field="email")

            # bcrypt is CPU-bound; keep it off the event loop
            password_hash = await run_in_threadpool(hash_password, payload.password)
            user = User(
                first_name=payload.first_name,
                last_name=payload.last_name,
                email=payload.email,
                password_hash=password_hash,
            )
            db.add(user)
            await db.flush()

        except IntegrityError:
            raise ConflictError(message=DUPLICATE_EMAIL_MESSAGE, field="email")
        except SQLAlchemyError as e:
            logger.error("Database error during signup: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return AuthData(
            user=UserResponse.model_validate(user),
            token=create_access_token(user.id),
        )

    async def signin(self, db: AsyncSession, payload: SigninRequest) -> AuthData:
        """
        Verifies credentials and returns the user with a fresh token.

        Unknown email and wrong password produce the same 401 response.
        """
        try:
            user = await self._get_by_email(db, payload.email)
        except SQLAlchemyError as e:
            logger.error("Database error during signin: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not sign in. Please try again.",
                context={"error_type": type(e).__name__},
            )

        if user is None or not await run_in_threadpool(
            verify_password, payload.password, user.password_hash
        ):
            raise AuthenticationError(message=INVALID_CREDENTIALS_MESSAGE)

        return AuthData(
            user=UserResponse.model_validate(user),
            token=create_access_token(user.id),
        )

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        try:
            return await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error loading user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not verify the session. Please try again.",
                context={"user_id": str(user_id)},
            )

    async def _get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


auth_service = AuthService()
