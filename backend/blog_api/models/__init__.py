# Models package init
"""
ORM models. Importing this package registers every table on Base.metadata,
which Alembic's env.py and Database.create_all() rely on.
"""

from blog_api.models.post import Post, PostState, PostTag
from blog_api.models.user import User

__all__ = ["Post", "PostState", "PostTag", "User"]
