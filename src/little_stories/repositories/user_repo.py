"""Data access helpers for user profiles."""
from __future__ import annotations

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from little_stories.models.user import User

__all__ = ["UserRepository"]


class UserRepository:
    """Thin wrapper around database access for profiles."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, user_id: str) -> User | None:
        """Return a profile by its auth subject id."""
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        """Return a profile by exact, case-sensitive username."""
        stmt = select(User).where(User.username == username)
        return self.session.execute(stmt).scalars().first()

    def username_held_by_other(self, username: str, user_id: str) -> bool:
        """Return True if a different profile already uses `username`."""
        stmt = select(User.user_id).where(User.username == username, User.user_id != user_id)
        return self.session.execute(stmt).first() is not None

    def create(
        self,
        *,
        user_id: str,
        username: str,
        is_author: bool,
        is_reader: bool,
        bio: str | None = None,
    ) -> User:
        """Insert a profile row for a freshly registered account."""
        user = User(
            user_id=user_id,
            username=username,
            bio=bio,
            is_author=is_author,
            is_reader=is_reader,
        )
        self.session.add(user)
        self.session.flush()
        return user

    def update_owned(self, user_id: str, values: dict[str, Any]) -> int:
        """Update the caller's own profile row; return the affected row count."""
        stmt = update(User).where(User.user_id == user_id).values(**values)
        return self.session.execute(stmt).rowcount
