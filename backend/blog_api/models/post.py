"""
Blog API Backend - Post SQLAlchemy Models
==========================================

What:  ORM models for the `posts` table and its `post_tags` child table.
Who:   PostService (listing, reads, mutations) and Alembic.

Table Design:
    - title: UNIQUE; a duplicate insert/update raises IntegrityError,
      which PostService turns into ConflictError
    - state: 'draft' | 'published', enforced by a CHECK constraint
    - read_count: only ever changed by a single atomic UPDATE in the read path
    - reading_time: derived from body by services.reading_time before each
      write; there is no save hook
    - tags: one row per (post, tag name) in post_tags, removed by
      ON DELETE CASCADE when the post is deleted

Query Patterns:
    - Public listing: WHERE state = 'published' [AND author_id] [AND search]
      ORDER BY <created_at | read_count | reading_time> DESC LIMIT/OFFSET
      → idx_posts_state_created_at covers the default ordering
    - Owner listing: WHERE author_id = :user [AND state] ORDER BY created_at DESC
      → ix_posts_author_id
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import DateTime

from blog_api.database import Base
from blog_api.models.user import User


TAG_NAME_MAX_LENGTH = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostState(str, enum.Enum):
    """Publication state of a post."""

    DRAFT = "draft"
    PUBLISHED = "published"


class PostTag(Base):
    """A single tag attached to a post. (post_id, name) is the primary key."""

    __tablename__ = "post_tags"

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(String(TAG_NAME_MAX_LENGTH), primary_key=True)

    def __repr__(self) -> str:
        return f"<PostTag(post_id={self.post_id}, name='{self.name}')>"


# Tag search compares lower(name)
Index("idx_post_tags_name_lower", func.lower(PostTag.name))


class Post(Base):
    """
    A blog post.

    Lifecycle:
        1. Created by its author in 'draft' state
        2. Author toggles state draft ↔ published via update
        3. Each public read of a published post bumps read_count by one
        4. Deleted only by its author (terminal)
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Post title; unique across all posts",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    state: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PostState.DRAFT.value,
        comment="Publication state: draft, published",
    )

    read_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    reading_time: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Estimated minutes to read at 200 words/minute",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    # Loaded explicitly (selectinload / refresh) by PostService; async
    # sessions cannot lazy-load on attribute access.
    author: Mapped[User] = relationship(User)

    tag_links: Mapped[List[PostTag]] = relationship(
        PostTag,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("state IN ('draft', 'published')", name="ck_posts_state"),
        CheckConstraint("read_count >= 0", name="ck_posts_read_count"),
        Index("idx_posts_state_created_at", "state", "created_at"),
    )

    @property
    def tags(self) -> List[str]:
        return sorted(link.name for link in self.tag_links)

    def set_tags(self, names: Iterable[str]) -> None:
        """
        Replaces the post's tags.

        Names are stripped, blanks dropped and duplicates removed (first
        occurrence wins). Existing PostTag rows are reused for names that
        stay, so only real additions and removals hit the database.
        """
        cleaned: List[str] = []
        for name in names:
            name = name.strip()
            if name and name not in cleaned:
                cleaned.append(name)

        existing = {link.name: link for link in self.tag_links}
        self.tag_links = [existing.get(name) or PostTag(name=name) for name in cleaned]

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title}', state='{self.state}')>"
