"""Data access helpers for working with stories."""
from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, joinedload

from little_stories.db.time import utcnow
from little_stories.models.story import Story

__all__ = ["StoryRepository"]


class StoryRepository:
    """Thin wrapper around database access for story entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, story_id: str) -> Story | None:
        """Return a story by identifier with its author loaded."""
        stmt = (
            select(Story)
            .options(joinedload(Story.author))
            .where(Story.story_id == story_id)
        )
        return self.session.execute(stmt).scalars().first()

    def create(
        self,
        *,
        user_id: str | None,
        title: str,
        content: str,
        genre: list[str],
        is_public: bool,
        claim_token: str | None = None,
    ) -> Story:
        """Insert a new story and return the persisted ORM instance.

        Args:
            user_id: Owning profile, or None for a guest submission.
            title: Trimmed story title.
            content: Story body.
            genre: Normalized genre labels.
            is_public: Whether the story appears in public listings.
            claim_token: Single-use token for guest submissions.
        """
        story = Story(
            user_id=user_id,
            title=title,
            content=content,
            genre=genre,
            is_public=is_public,
            claim_token=claim_token,
        )
        self.session.add(story)
        self.session.flush()
        return story

    def claim(self, claim_token: str, user_id: str) -> str | None:
        """Attach an unclaimed story to `user_id` and burn its token.

        The token lookup and the ownership change are a single conditional
        UPDATE, so at most one concurrent claim can match the row.

        Returns:
            The claimed story id, or None if no unclaimed story holds the token.
        """
        stmt = (
            update(Story)
            .where(Story.claim_token == claim_token, Story.user_id.is_(None))
            .values(user_id=user_id, claim_token=None, updated_at=utcnow())
            .returning(Story.story_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def update_owned(self, story_id: str, owner_id: str, values: dict[str, Any]) -> int:
        """Update a story only if `owner_id` owns it; return the affected row count."""
        stmt = (
            update(Story)
            .where(Story.story_id == story_id, Story.user_id == owner_id)
            .values(**values, updated_at=utcnow())
        )
        return self.session.execute(stmt).rowcount

    def delete_owned(self, story_id: str, owner_id: str) -> int:
        """Delete a story only if `owner_id` owns it; return the affected row count."""
        stmt = delete(Story).where(Story.story_id == story_id, Story.user_id == owner_id)
        return self.session.execute(stmt).rowcount

    def count_public(self) -> int:
        """Return the number of public stories."""
        stmt = select(func.count()).select_from(Story).where(Story.is_public.is_(True))
        return int(self.session.execute(stmt).scalar_one())

    def list_public(self, *, offset: int, limit: int) -> list[Story]:
        """Return one page of public stories, best rated first."""
        stmt = (
            select(Story)
            .options(joinedload(Story.author))
            .where(Story.is_public.is_(True))
            .order_by(Story.avg_rating.desc(), Story.created_at.desc(), Story.story_id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def list_for_author(self, user_id: str, *, include_private: bool) -> list[Story]:
        """Return an author's stories, newest first."""
        stmt = select(Story).where(Story.user_id == user_id)
        if not include_private:
            stmt = stmt.where(Story.is_public.is_(True))
        stmt = stmt.order_by(Story.created_at.desc())
        return list(self.session.execute(stmt).scalars())
