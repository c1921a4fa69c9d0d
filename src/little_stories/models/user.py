# src/little_stories/models/user.py
"""SQLAlchemy model for user profiles."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from little_stories.db.session import Base
from little_stories.db.time import utcnow

if TYPE_CHECKING:
    from .story import Story


class User(Base):
    """Public profile of an account registered with the auth provider.

    `user_id` is the provider's subject identifier, so the profile row and the
    account share one key.
    """

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # Case-sensitive; the unique constraint is the final word on conflicts.
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_author: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_reader: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    stories: Mapped[list[Story]] = relationship("Story", back_populates="author")
