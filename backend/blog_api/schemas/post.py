"""
Blog API Backend - Post Request/Response Schemas
=================================================

What:  Pydantic models for creating, updating and returning blog posts.

Update payloads:
    PostUpdate declares only the fields an owner may change (title,
    description, body, tags, state). Anything else in the request body
    (read_count, reading_time, author, id, ...) is dropped by pydantic's
    default `extra="ignore"` before it reaches the service.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, StringConstraints, field_validator

from blog_api.models.post import TAG_NAME_MAX_LENGTH, PostState
from blog_api.schemas.common import Pagination


def _require_text(v: Optional[str]) -> Optional[str]:
    if v is not None and not v.strip():
        raise ValueError("must not be blank")
    return v


# Stripped before the length check; blanks are dropped later by Post.set_tags
TagName = Annotated[str, StringConstraints(strip_whitespace=True, max_length=TAG_NAME_MAX_LENGTH)]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(BaseModel):
    """Body of POST /api/blogs."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    body: str = Field(min_length=1)
    tags: List[TagName] = Field(default_factory=list, max_length=50)

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("title", "body")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _require_text(v)


class PostUpdate(BaseModel):
    """
    Body of PATCH /api/blogs/{id}. Every field is optional.

    Explicit nulls for title, body, tags and state are ignored by the
    service (those fields cannot be cleared); a null description clears it.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    body: Optional[str] = Field(default=None, min_length=1)
    tags: Optional[List[TagName]] = Field(default=None, max_length=50)
    state: Optional[PostState] = None

    model_config = {"use_enum_values": True}

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("title", "body")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _require_text(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorSummary(BaseModel):
    """Author identity fields embedded in every post."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    """Full representation of a blog post."""

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    body: str
    author: AuthorSummary
    state: PostState
    read_count: int
    reading_time: int = Field(description="Estimated reading time in minutes")
    tags: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PostListData(BaseModel):
    """Payload of GET /api/blogs and GET /api/blogs/user/my-blogs."""

    blogs: List[PostResponse]
    pagination: Pagination
