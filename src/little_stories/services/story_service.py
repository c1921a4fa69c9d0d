"""Story use cases: submission, claiming, owner edits and page data."""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from little_stories.core.security import Principal, generate_claim_token
from little_stories.core.settings import settings
from little_stories.db.time import was_edited
from little_stories.models.story import Story
from little_stories.repositories.rating_repo import RatingRepository
from little_stories.repositories.story_repo import StoryRepository
from little_stories.repositories.user_repo import UserRepository
from little_stories.schemas.common import ActionSuccess
from little_stories.schemas.story import (
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

from .errors import (
    BackendError,
    Conflict,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    translate_db_errors,
    validate_fields,
)

logger = logging.getLogger(__name__)

__all__ = [
    "AuthorSubmitter",
    "GuestSubmitter",
    "Submitter",
    "submitter_for",
    "create_story",
    "claim_story",
    "update_story",
    "delete_story",
    "list_public_stories",
    "get_story",
    "get_story_for_edit",
]

AUTHOR_ROLE_REQUIRED = (
    "Only authors can publish stories. Enable the Author role on your profile first."
)
STORY_NOT_FOUND = "Story not found."
CLAIM_LOGIN_REQUIRED = "You must be logged in to claim a story."
CLAIM_TOKEN_UNUSABLE = "Invalid or already used claim token."
CLAIM_BACKEND_FAILURE = "Permission denied while claiming this story."


@dataclass(frozen=True)
class AuthorSubmitter:
    """A signed-in caller publishing under their own profile."""

    user_id: str


@dataclass(frozen=True)
class GuestSubmitter:
    """An anonymous caller; the story is held for a later claim."""


Submitter = AuthorSubmitter | GuestSubmitter


def submitter_for(principal: Principal | None) -> Submitter:
    """Pick the submitter variant for the calling principal."""
    if principal is None:
        return GuestSubmitter()
    return AuthorSubmitter(user_id=principal.user_id)


def create_story(db: Session, submitter: Submitter, fields: Mapping[str, Any]) -> StoryCreateResult:
    """Validate and persist a new story for an author or a guest.

    Authors must hold the author role and choose the visibility. Guest
    submissions are always public, unowned, and receive a fresh claim token
    that is returned exactly once.
    """
    data = validate_fields(StoryCreate, fields)
    repo = StoryRepository(db)

    with translate_db_errors(db):
        if isinstance(submitter, AuthorSubmitter):
            profile = UserRepository(db).get_by_id(submitter.user_id)
            if profile is None or not profile.is_author:
                raise PermissionDenied(AUTHOR_ROLE_REQUIRED)
            story = repo.create(
                user_id=submitter.user_id,
                title=data.title,
                content=data.content,
                genre=data.genre,
                is_public=data.is_public,
            )
            claim_token = None
            message = "Story published successfully!"
        else:
            claim_token = generate_claim_token()
            story = repo.create(
                user_id=None,
                title=data.title,
                content=data.content,
                genre=data.genre,
                is_public=True,
                claim_token=claim_token,
            )
            message = (
                "Story submitted! Save your claim token to add it to your profile "
                "after signing in."
            )
        db.commit()

    logger.info(
        "Story %s created by %s",
        story.story_id,
        submitter.user_id if isinstance(submitter, AuthorSubmitter) else "guest",
    )
    return StoryCreateResult(
        message=message,
        story_id=story.story_id,
        is_public=story.is_public,
        claim_token=claim_token,
    )


def claim_story(db: Session, principal: Principal | None, fields: Mapping[str, Any]) -> ClaimResult:
    """Attach a guest submission to the caller's profile using its claim token."""
    data = validate_fields(ClaimRequest, fields)
    if principal is None:
        raise NotAuthenticated(CLAIM_LOGIN_REQUIRED)

    try:
        story_id = StoryRepository(db).claim(data.claim_token, principal.user_id)
        if story_id is None:
            db.rollback()
            raise Conflict(CLAIM_TOKEN_UNUSABLE)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Claim failed for user %s: %s", principal.user_id, exc)
        raise BackendError(CLAIM_BACKEND_FAILURE) from exc

    logger.info("Story %s claimed by %s", story_id, principal.user_id)
    return ClaimResult(
        message="Story claimed successfully! It now appears on your profile.",
        story_id=story_id,
    )


def _load_owned(repo: StoryRepository, principal: Principal, story_id: str, verb: str) -> Story:
    story = repo.get_by_id(story_id)
    if story is None:
        raise NotFound(STORY_NOT_FOUND)
    if story.user_id != principal.user_id:
        raise PermissionDenied(f"You do not have permission to {verb} this story.")
    return story


def update_story(
    db: Session,
    principal: Principal | None,
    story_id: str,
    fields: Mapping[str, Any],
) -> StoryUpdateResult:
    """Apply an owner's edits to their story."""
    if principal is None:
        raise NotAuthenticated("You must be logged in to edit a story.")
    data = validate_fields(StoryUpdate, fields)
    repo = StoryRepository(db)

    with translate_db_errors(db):
        _load_owned(repo, principal, story_id, "edit")
        values: dict[str, Any] = {
            "title": data.title,
            "content": data.content,
        }
        if data.genre is not None:
            values["genre"] = data.genre
        if data.is_public is not None:
            values["is_public"] = data.is_public
        if repo.update_owned(story_id, principal.user_id, values) == 0:
            db.rollback()
            raise PermissionDenied("You do not have permission to edit this story.")
        db.commit()

    logger.info("Story %s updated by %s", story_id, principal.user_id)
    return StoryUpdateResult(message="Story updated successfully!", story_id=story_id)


def delete_story(db: Session, principal: Principal | None, story_id: str) -> ActionSuccess:
    """Delete an owner's story together with its ratings."""
    if principal is None:
        raise NotAuthenticated("You must be logged in to delete a story.")
    repo = StoryRepository(db)

    with translate_db_errors(db):
        _load_owned(repo, principal, story_id, "delete")
        if repo.delete_owned(story_id, principal.user_id) == 0:
            db.rollback()
            raise PermissionDenied("You do not have permission to delete this story.")
        db.commit()

    logger.info("Story %s deleted by %s", story_id, principal.user_id)
    return ActionSuccess(message="Story deleted successfully.")


def _card_fields(story: Story, user_rating: int = 0) -> dict[str, Any]:
    return {
        "story_id": story.story_id,
        "title": story.title,
        "content": story.content,
        "genre": list(story.genre or []),
        "is_public": story.is_public,
        "avg_rating": story.avg_rating,
        "rating_count": story.rating_count,
        "created_at": story.created_at,
        "updated_at": story.updated_at,
        "author_username": story.author.username if story.author else None,
        "user_rating_value": user_rating,
    }


def parse_page(raw: object) -> int:
    """Coerce a page query value; anything missing or invalid becomes 1."""
    try:
        page = int(str(raw))
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


def list_public_stories(db: Session, viewer: Principal | None, page: object = 1) -> StoryListResponse:
    """Return one page of public stories, best rated first.

    Pages beyond the last are clamped to the last page.
    """
    page_number = parse_page(page)
    per_page = settings.stories_per_page
    repo = StoryRepository(db)

    total = repo.count_public()
    total_pages = math.ceil(total / per_page) if total else 0
    page_number = min(page_number, max(total_pages, 1))
    stories = repo.list_public(offset=(page_number - 1) * per_page, limit=per_page)
    ratings: dict[str, int] = {}
    if viewer is not None:
        ratings = RatingRepository(db).values_for(viewer.user_id, (s.story_id for s in stories))

    return StoryListResponse(
        page=page_number,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
        stories=[StoryCard(**_card_fields(s, ratings.get(s.story_id, 0))) for s in stories],
    )


def get_story(db: Session, viewer: Principal | None, story_id: str) -> StoryDetail:
    """Return a story if the viewer may see it."""
    story = StoryRepository(db).get_by_id(story_id)
    is_owner = story is not None and viewer is not None and story.user_id == viewer.user_id
    if story is None or not (story.is_public or is_owner):
        raise NotFound(STORY_NOT_FOUND)

    user_rating = 0
    if viewer is not None:
        user_rating = RatingRepository(db).get_value(user_id=viewer.user_id, story_id=story_id)
    return StoryDetail(
        **_card_fields(story, user_rating),
        is_owner=is_owner,
        is_guest_submission=story.is_guest_submission,
        was_edited=was_edited(story.created_at, story.updated_at),
    )


def get_story_for_edit(db: Session, principal: Principal | None, story_id: str) -> StoryEditData:
    """Return the current values of a story for its owner's edit form."""
    if principal is None:
        raise NotAuthenticated("You must be logged in to edit a story.")
    story = _load_owned(StoryRepository(db), principal, story_id, "edit")
    return StoryEditData.model_validate(story)
