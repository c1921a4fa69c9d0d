# src/little_stories/schemas/__init__.py
"""
Pydantic schemas for form input and API responses.

Form schemas raise errors whose messages are shown to users verbatim.
"""

from .common import ActionFailure, ActionSuccess, Pagination
from .rating import MyRatingResponse, RatingRemove, RatingResult, RatingSubmit
from .story import (
    ClaimRequest,
    ClaimResult,
    StoryCard,
    StoryCreate,
    StoryCreateResult,
    StoryDetail,
    StoryEditData,
    StoryListResponse,
    StoryUpdate,
    StoryUpdateResult,
)
from .user import (
    PasswordResetRequest,
    ProfilePage,
    ProfileResponse,
    ProfileStory,
    ProfileUpdate,
    ProfileUpdateResult,
    SessionResponse,
    SignUpRequest,
)

__all__ = [
    "ActionFailure", "ActionSuccess", "Pagination",
    "MyRatingResponse", "RatingRemove", "RatingResult", "RatingSubmit",
    "ClaimRequest", "ClaimResult",
    "StoryCard", "StoryCreate", "StoryCreateResult", "StoryDetail",
    "StoryEditData", "StoryListResponse", "StoryUpdate", "StoryUpdateResult",
    "PasswordResetRequest", "ProfilePage", "ProfileResponse", "ProfileStory",
    "ProfileUpdate", "ProfileUpdateResult", "SessionResponse", "SignUpRequest",
]
