"""Create users, posts and post_tags tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema: registered users, their blog posts and post tags.
How:   UUID primary keys, TIMESTAMP WITH TIME ZONE, CHECK constraints on
       post state and read_count, ON DELETE CASCADE from users to posts and
       from posts to post_tags.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the three tables with their constraints and indexes."""
    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Lower-cased email address; unique login identifier",
        ),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash of the user's password",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "posts",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column(
            "title",
            sa.String(255),
            nullable=False,
            comment="Post title; unique across all posts",
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "state",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'draft'"),
            comment="Publication state: draft, published",
        ),
        sa.Column(
            "read_count",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "reading_time",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Estimated minutes to read at 200 words/minute",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("title"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("state IN ('draft', 'published')", name="ck_posts_state"),
        sa.CheckConstraint("read_count >= 0", name="ck_posts_read_count"),
    )

    # Owner listing: WHERE author_id = :user ORDER BY created_at DESC
    op.create_index("ix_posts_author_id", "posts", ["author_id"])

    # Public listing: WHERE state = 'published' ORDER BY created_at DESC
    op.create_index("idx_posts_state_created_at", "posts", ["state", "created_at"])

    op.create_table(
        "post_tags",
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("post_id", "name"),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
    )

    # Tag search compares lower(name)
    op.create_index("idx_post_tags_name_lower", "post_tags", [sa.text("lower(name)")])


def downgrade() -> None:
    """Drop all tables. WARNING: every user and post is permanently lost."""
    op.drop_index("idx_post_tags_name_lower", table_name="post_tags")
    op.drop_table("post_tags")
    op.drop_index("idx_posts_state_created_at", table_name="posts")
    op.drop_index("ix_posts_author_id", table_name="posts")
    op.drop_table("posts")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
