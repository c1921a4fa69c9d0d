"""Data access helpers for working with ratings."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from little_stories.db.time import utcnow
from little_stories.models.rating import Rating
from little_stories.models.story import Story

__all__ = ["RatingRepository"]

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RatingRepository:
    """Thin wrapper around database access for rating rows."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def upsert(self, *, user_id: str, story_id: str, rating: int) -> None:
        """Insert or replace the (user, story) rating in one statement."""
        dialect = self.session.get_bind().dialect.name
        insert_factory = _UPSERT_INSERTS.get(dialect)
        if insert_factory is None:
            raise NotImplementedError(f"Rating upsert is not supported on {dialect}")

        now = utcnow()
        stmt = insert_factory(Rating).values(
            user_id=user_id,
            story_id=story_id,
            rating=rating,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Rating.user_id, Rating.story_id],
            set_={"rating": stmt.excluded.rating, "updated_at": stmt.excluded.updated_at},
        )
        self.session.execute(stmt)

    def delete(self, *, user_id: str, story_id: str) -> int:
        """Remove the caller's rating; return the number of rows removed."""
        stmt = delete(Rating).where(Rating.user_id == user_id, Rating.story_id == story_id)
        return self.session.execute(stmt).rowcount

    def get_value(self, *, user_id: str, story_id: str) -> int:
        """Return the user's rating of a story, 0 if none."""
        stmt = select(Rating.rating).where(
            Rating.user_id == user_id, Rating.story_id == story_id
        )
        value = self.session.execute(stmt).scalar_one_or_none()
        return int(value) if value is not None else 0

    def values_for(self, user_id: str, story_ids: Iterable[str]) -> dict[str, int]:
        """Map story id to the user's rating for the given stories."""
        ids = list(story_ids)
        if not ids:
            return {}
        stmt = select(Rating.story_id, Rating.rating).where(
            Rating.user_id == user_id, Rating.story_id.in_(ids)
        )
        return {story_id: int(value) for story_id, value in self.session.execute(stmt)}

    def aggregates(self, story_id: str) -> tuple[float, int] | None:
        """Re-read the trigger-maintained aggregates straight from the stories table."""
        stmt = select(Story.avg_rating, Story.rating_count).where(Story.story_id == story_id)
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        return float(row.avg_rating), int(row.rating_count)
