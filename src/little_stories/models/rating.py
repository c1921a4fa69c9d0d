# src/little_stories/models/rating.py
"""Models capturing reader ratings on stories."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from little_stories.db.session import Base
from little_stories.db.time import utcnow
from little_stories.db.triggers import install_rating_triggers

if TYPE_CHECKING:
    from .story import Story

MIN_RATING = 1
MAX_RATING = 5


class Rating(Base):
    """Per-user star rating on a story."""

    __tablename__ = "ratings"
    __table_args__ = (
        CheckConstraint(
            f"rating BETWEEN {MIN_RATING} AND {MAX_RATING}",
            name="ck_ratings_rating_range",
        ),
        Index("ix_ratings_story_id", "story_id"),
    )

    # Composite primary key prevents duplicate ratings from the same user.
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    story_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("stories.story_id", ondelete="CASCADE"),
        primary_key=True,
    )
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    story: Mapped[Story] = relationship("Story", back_populates="ratings")


install_rating_triggers(Rating.__table__)  # type: ignore[arg-type]
