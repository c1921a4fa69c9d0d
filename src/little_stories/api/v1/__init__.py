# src/little_stories/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    profile_router,
    ratings_router,
    session_router,
    stories_router,
)

__all__ = [
    "auth_router",
    "stories_router",
    "ratings_router",
    "profile_router",
    "session_router",
]
