"""initial schema: users, stories, ratings and rating triggers

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from little_stories.db.triggers import drop_statements_for, statements_for

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the profile, story and rating tables."""
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("is_author", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_reader", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "stories",
        sa.Column("story_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=150), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("genre", sa.JSON(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("avg_rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("claim_token", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"]),
        sa.PrimaryKeyConstraint("story_id"),
        sa.UniqueConstraint("claim_token"),
    )
    op.create_index("ix_stories_public_rating", "stories", ["is_public", "avg_rating"])
    op.create_index("ix_stories_user_id", "stories", ["user_id"])
    op.create_table(
        "ratings",
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("story_id", sa.String(length=36), nullable=False),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_ratings_rating_range"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["story_id"], ["stories.story_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "story_id"),
    )
    op.create_index("ix_ratings_story_id", "ratings", ["story_id"])

    for statement in statements_for(op.get_bind().dialect.name):
        op.execute(statement)


def downgrade() -> None:
    """Drop the rating triggers and all tables."""
    for statement in drop_statements_for(op.get_bind().dialect.name):
        op.execute(statement)

    op.drop_index("ix_ratings_story_id", table_name="ratings")
    op.drop_table("ratings")
    op.drop_index("ix_stories_user_id", table_name="stories")
    op.drop_index("ix_stories_public_rating", table_name="stories")
    op.drop_table("stories")
    op.drop_table("users")
