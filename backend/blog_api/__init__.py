"""
Blog API Backend - Application Package
=======================================

What: Blogging REST API (signup/signin, blog post CRUD with pagination,
      search and draft/published state).
Who:  Imported by uvicorn (`blog_api.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← auth, listing, reads, mutations
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Database handle, async sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never see a Request.
"""

__version__ = "1.0.0"
