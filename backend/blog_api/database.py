"""
Blog API Backend - Database Handle & Session Management
========================================================

What:  The `Database` handle (async engine + session factory), the ORM
       declarative base and the per-request session dependency.
How:   The application lifespan builds one `Database` from settings and
       stores it on `app.state.database`; `get_db_session` opens an
       AsyncSession from it for each request, commits on success and rolls
       back on any exception. Shutdown disposes the engine.
Who:   main.py (lifecycle), route handlers (via Depends), tests (build their
       own handle against SQLite and inject it).

Connection Pooling (server databases):
    pool_size / max_overflow:  from settings (default 20 + 10)
    pool_pre_ping:             validates connections before use
    pool_recycle=3600:         recycles connections every hour

SQLite (tests, local runs):
    No pool sizing options; foreign keys are switched on per connection so
    ON DELETE CASCADE applies, and a busy timeout lets concurrent writers
    queue instead of failing with "database is locked".
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from blog_api.config import Settings

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic and create_all."""
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Explicitly constructed storage handle.

    One instance per application. Holds the engine and the session
    factory; nothing in the package keeps a module-level engine.

    Example:
        database = Database.from_settings(settings)
        async with database.session() as session:
            await session.execute(select(User))
        await database.dispose()
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
    ):
        self.url = url
        engine_kwargs: Dict[str, Any] = {"echo": echo}

        self.is_sqlite = make_url(url).get_backend_name() == "sqlite"
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: response models are built from ORM objects
        # after the session dependency has committed
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.db_echo or settings.log_level == "DEBUG",
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Unit-of-work scope: commit on success, rollback on any exception.

        The session is always closed, returning its connection to the pool.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Creates any missing tables (tests and `DB_CREATE_TABLES=true` runs)."""
        # Registers the models on Base.metadata
        from blog_api import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Runs SELECT 1; used by the health check."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Closes every pooled connection. Called on application shutdown."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency providing one database session per request.

    Uses the Database handle attached to the application at startup.
    Exceptions raised by the handler propagate through here, trigger a
    rollback, and then reach the global exception handlers.

    Example usage in a route:
        @router.get("/blogs")
        async def list_blogs(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
