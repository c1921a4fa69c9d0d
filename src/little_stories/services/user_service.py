"""Profile use cases: editing, profile pages and session display."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from little_stories.core.security import Principal
from little_stories.db.time import was_edited
from little_stories.models.user import User
from little_stories.repositories.story_repo import StoryRepository
from little_stories.repositories.user_repo import UserRepository
from little_stories.schemas.user import (
    ProfilePage,
    ProfileResponse,
    ProfileStory,
    ProfileUpdate,
    ProfileUpdateResult,
    SessionResponse,
    SignUpRequest,
)

from .errors import (
    Conflict,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    translate_db_errors,
    validate_fields,
)

logger = logging.getLogger(__name__)

__all__ = [
    "USERNAME_TAKEN",
    "create_profile",
    "get_own_profile",
    "update_profile",
    "get_profile_page",
    "get_session",
]

USERNAME_TAKEN = "This username is already taken. Please choose another."


def create_profile(db: Session, user_id: str, data: SignUpRequest) -> User:
    """Insert the profile row for an account the auth provider just created."""
    with translate_db_errors(db, conflict_message=USERNAME_TAKEN):
        user = UserRepository(db).create(
            user_id=user_id,
            username=data.username,
            is_author=data.is_author,
            is_reader=data.is_reader,
        )
        db.commit()
    logger.info("Profile %s created for %s", data.username, user_id)
    return user


def get_own_profile(db: Session, principal: Principal | None) -> ProfileResponse:
    """Return the caller's profile for the edit form."""
    if principal is None:
        raise NotAuthenticated("You must be logged in to edit your profile.")
    profile = UserRepository(db).get_by_id(principal.user_id)
    if profile is None:
        raise NotFound("Profile not found.")
    return ProfileResponse.model_validate(profile)


def update_profile(
    db: Session, principal: Principal | None, fields: Mapping[str, Any]
) -> ProfileUpdateResult:
    """Update the caller's username, bio and roles."""
    if principal is None:
        raise NotAuthenticated("You must be logged in to update your profile.")
    data = validate_fields(ProfileUpdate, fields)
    repo = UserRepository(db)

    with translate_db_errors(db, conflict_message=USERNAME_TAKEN):
        if repo.get_by_id(principal.user_id) is None:
            raise NotFound("Profile not found.")
        if repo.username_held_by_other(data.username, principal.user_id):
            raise Conflict(USERNAME_TAKEN)
        updated = repo.update_owned(
            principal.user_id,
            {
                "username": data.username,
                "bio": data.bio,
                "is_author": data.is_author,
                "is_reader": data.is_reader,
            },
        )
        if updated == 0:
            db.rollback()
            raise PermissionDenied("You do not have permission to update this profile.")
        db.commit()

    logger.info("Profile %s updated (username=%s)", principal.user_id, data.username)
    return ProfileUpdateResult(
        message="Profile updated successfully!",
        updated_username=data.username,
    )


def get_profile_page(db: Session, viewer: Principal | None, username: str) -> ProfilePage:
    """Return a profile and the stories the viewer is allowed to see."""
    profile = UserRepository(db).get_by_username(username)
    if profile is None:
        raise NotFound("Profile not found.")

    is_owner = viewer is not None and viewer.user_id == profile.user_id
    stories = StoryRepository(db).list_for_author(profile.user_id, include_private=is_owner)
    return ProfilePage(
        profile=ProfileResponse.model_validate(profile),
        is_owner=is_owner,
        stories=[
            ProfileStory(
                story_id=story.story_id,
                title=story.title,
                content=story.content,
                genre=list(story.genre or []),
                is_public=story.is_public,
                avg_rating=story.avg_rating,
                rating_count=story.rating_count,
                created_at=story.created_at,
                updated_at=story.updated_at,
                author_username=profile.username,
                was_edited=was_edited(story.created_at, story.updated_at),
            )
            for story in stories
        ],
    )


def get_session(db: Session, principal: Principal | None) -> SessionResponse:
    """Describe the caller for the navigation bar."""
    if principal is None:
        return SessionResponse(authenticated=False)
    profile = UserRepository(db).get_by_id(principal.user_id)
    return SessionResponse(
        authenticated=True,
        user_id=principal.user_id,
        username=profile.username if profile else None,
        is_author=bool(profile and profile.is_author),
    )
