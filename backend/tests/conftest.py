"""
Blog API Backend - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied before the package is imported, so
       the `settings` singleton is built with test values.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock AsyncSession for service unit tests
    ├── sample_user / sample_post: Transient ORM objects for unit tests
    ├── database: File-backed SQLite Database with tables created
    ├── app: create_app() with that database injected
    ├── test_client: HTTPX AsyncClient bound to the app through ASGITransport
    └── signup: Async helper registering a user, returns (user, auth headers)
"""

import os
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before `blog_api` is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"
os.environ["BCRYPT_ROUNDS"] = "4"  # Cheapest cost passlib accepts
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "1000"

from blog_api.database import Database  # noqa: E402
from blog_api.main import create_app  # noqa: E402
from blog_api.models.post import Post, PostState  # noqa: E402
from blog_api.models.user import User  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Unit Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_read_missing(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
            with pytest.raises(NotFoundError):
                await post_service.read_post(mock_db_session, uuid.uuid4())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.get = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_user():
    """A transient User with every column populated."""
    return User(
        id=uuid.uuid4(),
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        password_hash="not-a-real-hash",
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def sample_post(sample_user):
    """A transient draft Post owned by sample_user, tagged 'python'."""
    now = datetime.now(timezone.utc)
    post = Post(
        id=uuid.uuid4(),
        title="Notes on the Analytical Engine",
        description="Translator's notes",
        body="word " * 300,
        author=sample_user,
        author_id=sample_user.id,
        state=PostState.DRAFT.value,
        read_count=0,
        reading_time=2,
        created_at=now,
        updated_at=now,
    )
    post.set_tags(["python"])
    return post


# ══════════════════════════════════════════════════════════════════════════
# API Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database(tmp_path):
    """
    A fresh SQLite database file per test, tables created.

    File-backed rather than :memory: so concurrent requests get their own
    connections to the same data.
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'blog_test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def app(database):
    return create_app(database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app without a running server.

    ASGITransport does not run the lifespan; the injected database is used
    directly.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def signup(test_client):
    """
    Returns an async helper that registers a user through the API.

    Usage:
        user, headers = await signup("ada@example.com")
        await test_client.post("/api/blogs", json=..., headers=headers)
    """

    async def _signup(email: str = "author@example.com", password: str = "secret123"):
        response = await test_client.post(
            "/api/auth/signup",
            json={
                "first_name": "Test",
                "last_name": "Author",
                "email": email,
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _signup
