"""
Blog API Backend - User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table (the credential store).
Who:   AuthService (signup/signin), the current-user dependency, and Post
       (author relationship).

Table Design:
    - UUID primary key, generated in Python
    - email: unique, stored lower-cased so lookups are case-insensitive
    - password_hash: bcrypt hash from passlib; never leaves the service layer
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from blog_api.database import Base


class User(Base):
    """
    A registered author.

    Lifecycle: created at signup; not modified or deleted by this API.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Lower-cased email address; unique login identifier",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the user's password",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
