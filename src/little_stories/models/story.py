# src/little_stories/models/story.py
"""SQLAlchemy model for stories."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from little_stories.db.session import Base
from little_stories.db.time import utcnow

if TYPE_CHECKING:
    from .rating import Rating
    from .user import User


def _new_story_id() -> str:
    return str(uuid.uuid4())


class Story(Base):
    """A short story, written by an author or submitted by a guest.

    Guest submissions have no owner (`user_id` is NULL) and carry a single-use
    `claim_token` until a signed-in user redeems it.
    """

    __tablename__ = "stories"
    __table_args__ = (
        Index("ix_stories_public_rating", "is_public", "avg_rating"),
        Index("ix_stories_user_id", "user_id"),
    )

    story_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_story_id)
    user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.user_id"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    genre: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Maintained by database triggers on the ratings table.
    avg_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    claim_token: Mapped[str | None] = mapped_column(String(36), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    author: Mapped[User | None] = relationship("User", back_populates="stories")
    ratings: Mapped[list[Rating]] = relationship(
        "Rating",
        back_populates="story",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_guest_submission(self) -> bool:
        """Return True while the story is still waiting to be claimed."""
        return self.user_id is None
