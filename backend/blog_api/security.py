"""
Blog API Backend - Password Hashing & Bearer Tokens
====================================================

What:  bcrypt password hashing (passlib) and JWT issue/verify (python-jose).
Who:   AuthService (signup/signin) and the current-user dependency.

Token format:
    HS256 JWT with claims
        sub: user id (UUID string)
        iat: issued-at (UTC)
        exp: expiry, JWT_EXPIRE_MINUTES after iat (default 60)
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from blog_api.config import settings
from blog_api.exceptions import AuthenticationError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Issues a signed bearer token for `user_id`."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expire_minutes)
    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> uuid.UUID:
    """
    Verifies signature and expiry and returns the embedded user id.

    Raises:
        AuthenticationError: expired, forged or malformed token, or a token
            without a valid `sub` claim.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError(
            message="Invalid or expired token",
            context={"reason": type(e).__name__},
        )

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError(message="Invalid or expired token")
    try:
        return uuid.UUID(subject)
    except ValueError:
        raise AuthenticationError(message="Invalid or expired token")
