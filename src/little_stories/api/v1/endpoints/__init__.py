# src/little_stories/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .profile import router as profile_router
from .ratings import router as ratings_router
from .session import router as session_router
from .stories import router as stories_router

__all__ = [
    "auth_router",
    "stories_router",
    "ratings_router",
    "profile_router",
    "session_router",
]
