# src/little_stories/models/__init__.py
"""SQLAlchemy models for the Little Stories application."""

from .rating import MAX_RATING, MIN_RATING, Rating
from .story import Story
from .user import User

__all__ = [
    "Rating", "MIN_RATING", "MAX_RATING",
    "Story",
    "User",
]
