"""
Blog API Backend - Post Service (Business Logic)
=================================================

What:  Listing, reading and owner-only mutation of blog posts.
Who:   Called by routes/blogs.py.

Operations:
    list_published_posts()  public listing: published only, search, author
                            filter, sort by created_at | read_count |
                            reading_time (DESC), offset pagination
    list_user_posts()       the requester's own posts, optional state filter
    read_post()             one published post; read_count += 1 atomically
    create_post()           new draft owned by the requester
    update_post()           owner-only partial update
    delete_post()           owner-only delete

Ownership:
    Update and delete locate the row with a single (id AND author) predicate.
    A post that does not exist and a post owned by someone else produce the
    same NotFoundError and the same number of queries.

Read counter:
    read_post() issues one UPDATE ... SET read_count = read_count + 1 ...
    RETURNING statement. The database applies concurrent increments one
    after another, so N concurrent reads add exactly N.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_api.exceptions import BlogAPIError, ConflictError, DatabaseError, NotFoundError
from blog_api.models.post import Post, PostState, PostTag
from blog_api.models.user import User
from blog_api.schemas.common import Pagination
from blog_api.schemas.post import PostCreate, PostListData, PostResponse, PostUpdate
from blog_api.services.reading_time import calculate_reading_time

logger = logging.getLogger(__name__)

DUPLICATE_TITLE_MESSAGE = "Blog title already exists"
NOT_FOUND_MESSAGE = "Blog not found"
NOT_FOUND_OR_UNAUTHORIZED_MESSAGE = "Blog not found or unauthorized"

# order_by selector → column; anything else falls back to created_at
SORTABLE_FIELDS = {
    "created_at": Post.created_at,
    "read_count": Post.read_count,
    "reading_time": Post.reading_time,
}
DEFAULT_SORT_FIELD = "created_at"

UPDATABLE_FIELDS = ("title", "description", "body", "tags", "state")
NON_NULLABLE_FIELDS = {"title", "body", "tags", "state"}


def resolve_sort_field(order_by: Optional[str]) -> str:
    """Maps the order_by query value to a sortable field name."""
    if order_by in SORTABLE_FIELDS:
        return order_by
    return DEFAULT_SORT_FIELD


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def _with_relations(query: Select) -> Select:
    return query.options(selectinload(Post.author), selectinload(Post.tag_links))


class PostService:
    """
    Business logic for blog posts.

    Stateless; every call receives the request's AsyncSession. Writes are
    flushed here and committed by the session dependency.

    Error Handling Strategy:
        IntegrityError on a write → ConflictError (duplicate title).
        Other SQLAlchemyError → DatabaseError (logged, generic message).
        NotFoundError / ConflictError raised here propagate unchanged.
    """

    # ── Listing Engine ────────────────────────────────────────────────────

    async def list_published_posts(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        author_id: Optional[uuid.UUID] = None,
        order_by: Optional[str] = None,
    ) -> PostListData:
        """
        Published posts matching the filters, sorted and paginated.

        Search is a case-insensitive substring match on title OR a
        case-insensitive exact match on any tag. An empty result is not an
        error: it returns blogs=[] with total=0.

        Query plan (default sort):
            SELECT ... FROM posts WHERE state = 'published' [AND ...]
            ORDER BY created_at DESC, id LIMIT :limit OFFSET :offset
        """
        filters = [Post.state == PostState.PUBLISHED.value]

        if search:
            term = search.strip()
            if term:
                filters.append(
                    or_(
                        Post.title.icontains(term, autoescape=True),
                        Post.tag_links.any(func.lower(PostTag.name) == term.lower()),
                    )
                )

        if author_id is not None:
            filters.append(Post.author_id == author_id)

        sort_field = resolve_sort_field(order_by)
        ordering = [SORTABLE_FIELDS[sort_field].desc()]
        if sort_field != DEFAULT_SORT_FIELD:
            ordering.append(Post.created_at.desc())
        ordering.append(Post.id)

        try:
            posts, total = await self._paginate(db, filters, ordering, page, limit)
        except SQLAlchemyError as e:
            logger.error("Database error listing blogs: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve blogs. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return self._list_data(posts, total, page, limit)

    async def list_user_posts(
        self,
        db: AsyncSession,
        user: User,
        page: int = 1,
        limit: int = 20,
        state: Optional[PostState] = None,
    ) -> PostListData:
        """The requester's own posts in any state, newest first."""
        filters = [Post.author_id == user.id]
        if state is not None:
            filters.append(Post.state == PostState(state).value)

        try:
            posts, total = await self._paginate(
                db, filters, [Post.created_at.desc(), Post.id], page, limit
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing blogs of %s: %s", user.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve your blogs. Please try again.",
                context={"user_id": str(user.id)},
            )

        return self._list_data(posts, total, page, limit)

    # ── Read Engine ───────────────────────────────────────────────────────

    async def read_post(self, db: AsyncSession, post_id: uuid.UUID) -> PostResponse:
        """
        Returns a published post after incrementing its read_count.

        The increment and the fetch of the new value are one statement;
        updated_at is left untouched by reads.

        Raises:
            NotFoundError: no such post, or the post is a draft (→ 404)
        """
        stmt = (
            update(Post)
            .where(Post.id == post_id, Post.state == PostState.PUBLISHED.value)
            .values(read_count=Post.read_count + 1, updated_at=Post.updated_at)
            .returning(Post)
        )

        try:
            result = await db.execute(stmt)
            post = result.scalar_one_or_none()
            if post is None:
                raise NotFoundError(
                    resource="blog", resource_id=str(post_id), message=NOT_FOUND_MESSAGE
                )
            await db.refresh(post, attribute_names=["author", "tag_links"])

        except BlogAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error reading blog %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the blog. Please try again.",
                context={"post_id": str(post_id)},
            )

        return PostResponse.model_validate(post)

    # ── Ownership-Gated Mutation ──────────────────────────────────────────

    async def create_post(
        self, db: AsyncSession, author: User, payload: PostCreate
    ) -> PostResponse:
        """
        Creates a draft post owned by `author`.

        Raises:
            ConflictError: a post with this title already exists (→ 400)
        """
        post = Post(
            title=payload.title,
            description=payload.description,
            body=payload.body,
            state=PostState.DRAFT.value,
            read_count=0,
            reading_time=calculate_reading_time(payload.body),
            author=author,
        )
        post.set_tags(payload.tags)

        try:
            db.add(post)
            await db.flush()
        except IntegrityError:
            raise ConflictError(message=DUPLICATE_TITLE_MESSAGE, field="title")
        except SQLAlchemyError as e:
            logger.error("Database error creating blog: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the blog. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Blog %s created by %s (reading_time=%d)", post.id, author.id, post.reading_time)
        return PostResponse.model_validate(post)

    async def update_post(
        self,
        db: AsyncSession,
        post_id: uuid.UUID,
        user: User,
        payload: PostUpdate,
    ) -> PostResponse:
        """
        Applies a partial update to a post owned by `user`.

        Only fields present in the request body are applied. reading_time
        is recomputed when, and only when, the body changes.

        Raises:
            NotFoundError: no such post or not owned by `user` (→ 404)
            ConflictError: the new title is taken (→ 400)
        """
        changes = payload.model_dump(exclude_unset=True)

        try:
            post = await self._get_owned(db, post_id, user)

            for field in UPDATABLE_FIELDS:
                if field not in changes:
                    continue
                value = changes[field]
                if value is None and field in NON_NULLABLE_FIELDS:
                    continue
                if field == "tags":
                    before = post.tags
                    post.set_tags(value)
                    # Tag rows live in another table; onupdate never fires for them
                    if post.tags != before:
                        post.updated_at = datetime.now(timezone.utc)
                elif field == "body":
                    if value != post.body:
                        post.body = value
                        post.reading_time = calculate_reading_time(value)
                else:
                    setattr(post, field, value)

            await db.flush()

        except BlogAPIError:
            raise
        except IntegrityError:
            raise ConflictError(message=DUPLICATE_TITLE_MESSAGE, field="title")
        except SQLAlchemyError as e:
            logger.error("Database error updating blog %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the blog. Please try again.",
                context={"post_id": str(post_id)},
            )

        logger.info("Blog %s updated by %s (fields=%s)", post.id, user.id, sorted(changes))
        return PostResponse.model_validate(post)

    async def delete_post(self, db: AsyncSession, post_id: uuid.UUID, user: User) -> None:
        """
        Deletes a post owned by `user` with one DELETE ... WHERE id AND author.

        Tag rows go with it through ON DELETE CASCADE.

        Raises:
            NotFoundError: no such post or not owned by `user` (→ 404)
        """
        stmt = (
            delete(Post)
            .where(Post.id == post_id, Post.author_id == user.id)
            .returning(Post.id)
        )

        try:
            result = await db.execute(stmt)
            deleted_id = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error deleting blog %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the blog. Please try again.",
                context={"post_id": str(post_id)},
            )

        if deleted_id is None:
            raise NotFoundError(
                resource="blog", resource_id=str(post_id), message=NOT_FOUND_OR_UNAUTHORIZED_MESSAGE
            )
        logger.info("Blog %s deleted by %s", post_id, user.id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_owned(self, db: AsyncSession, post_id: uuid.UUID, user: User) -> Post:
        result = await db.execute(
            _with_relations(select(Post).where(Post.id == post_id, Post.author_id == user.id))
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError(
                resource="blog", resource_id=str(post_id), message=NOT_FOUND_OR_UNAUTHORIZED_MESSAGE
            )
        return post

    async def _paginate(
        self,
        db: AsyncSession,
        filters: list,
        ordering: list,
        page: int,
        limit: int,
    ) -> Tuple[List[Post], int]:
        count_result = await db.execute(select(func.count(Post.id)).where(*filters))
        total = count_result.scalar() or 0

        # Pages past the end skip the row query; OFFSET must fit the driver's integer type
        offset = (page - 1) * limit
        if offset >= total:
            return [], total

        query = (
            _with_relations(select(Post).where(*filters))
            .order_by(*ordering)
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total

    def _list_data(self, posts: List[Post], total: int, page: int, limit: int) -> PostListData:
        return PostListData(
            blogs=[PostResponse.model_validate(post) for post in posts],
            pagination=Pagination(
                total=total,
                page=page,
                pages=page_count(total, limit),
                limit=limit,
            ),
        )


post_service = PostService()
