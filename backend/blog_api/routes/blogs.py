"""
Blog API Backend - Blog Route Handlers
=======================================

What:  Blog post endpoints under /api/blogs.
How:   Handlers parse path/query/body, resolve the current user where
       required, and delegate to PostService.

Endpoints:
    GET    /api/blogs                  public listing (published only)
    GET    /api/blogs/user/my-blogs    requester's posts   (auth)
    GET    /api/blogs/{blog_id}        read one, read_count += 1
    POST   /api/blogs                  create draft        (auth)
    PATCH  /api/blogs/{blog_id}        owner update        (auth)
    DELETE /api/blogs/{blog_id}        owner delete        (auth)

/user/my-blogs has two path segments, so it never collides with
/{blog_id}; blog ids are UUIDs and anything else is a 400.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.config import settings
from blog_api.database import get_db_session
from blog_api.dependencies import get_current_user
from blog_api.models.post import PostState
from blog_api.models.user import User
from blog_api.schemas.common import ApiResponse, ErrorResponse
from blog_api.schemas.post import PostCreate, PostListData, PostResponse, PostUpdate
from blog_api.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blogs", tags=["Blogs"])

AUTH_RESPONSES = {401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}}


@router.get(
    "",
    response_model=ApiResponse[PostListData],
    responses={400: {"description": "Invalid query parameters", "model": ErrorResponse}},
    summary="List published blogs",
    description=(
        "Published blogs only. `search` matches titles (substring, case-insensitive) "
        "or tags (exact, case-insensitive). `order_by` accepts read_count, reading_time "
        "or created_at, always descending; other values fall back to created_at."
    ),
)
async def list_blogs(
    response: Response,
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    limit: int = Query(
        default=settings.default_page_size, ge=1, le=settings.max_page_size,
        description="Items per page",
    ),
    search: Optional[str] = Query(default=None, max_length=200, description="Title or tag search"),
    author: Optional[uuid.UUID] = Query(default=None, description="Filter by author id"),
    order_by: Optional[str] = Query(default=None, description="read_count | reading_time | created_at"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostListData]:
    data = await post_service.list_published_posts(
        db,
        page=page,
        limit=limit,
        search=search,
        author_id=author,
        order_by=order_by,
    )
    response.headers["X-Total-Count"] = str(data.pagination.total)
    return ApiResponse(data=data)


@router.get(
    "/user/my-blogs",
    response_model=ApiResponse[PostListData],
    responses=AUTH_RESPONSES,
    summary="List the current user's blogs",
)
async def list_my_blogs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    state: Optional[PostState] = Query(default=None, description="draft | published"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostListData]:
    data = await post_service.list_user_posts(
        db, current_user, page=page, limit=limit, state=state
    )
    return ApiResponse(data=data)


@router.get(
    "/{blog_id}",
    response_model=ApiResponse[PostResponse],
    responses={404: {"description": "Blog missing or not published", "model": ErrorResponse}},
    summary="Read a published blog",
    description="Returns the blog with its author and increments its read_count.",
)
async def get_blog(
    blog_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostResponse]:
    post = await post_service.read_post(db, blog_id)
    return ApiResponse(data=post)


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[PostResponse],
    responses={
        400: {"description": "Duplicate title or invalid input", "model": ErrorResponse},
        **AUTH_RESPONSES,
    },
    summary="Create a blog (draft)",
)
async def create_blog(
    payload: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostResponse]:
    post = await post_service.create_post(db, current_user, payload)
    return ApiResponse(message="Blog created successfully", data=post)


@router.patch(
    "/{blog_id}",
    response_model=ApiResponse[PostResponse],
    responses={
        400: {"description": "Duplicate title or invalid input", "model": ErrorResponse},
        404: {"description": "Blog not found or not owned by you", "model": ErrorResponse},
        **AUTH_RESPONSES,
    },
    summary="Update one of your blogs",
    description="Accepts any of title, description, body, tags, state. Other fields are ignored.",
)
async def update_blog(
    blog_id: uuid.UUID,
    payload: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostResponse]:
    post = await post_service.update_post(db, blog_id, current_user, payload)
    return ApiResponse(message="Blog updated successfully", data=post)


@router.delete(
    "/{blog_id}",
    response_model=ApiResponse[None],
    responses={
        404: {"description": "Blog not found or not owned by you", "model": ErrorResponse},
        **AUTH_RESPONSES,
    },
    summary="Delete one of your blogs",
)
async def delete_blog(
    blog_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    await post_service.delete_post(db, blog_id, current_user)
    return ApiResponse(message="Blog deleted successfully")
