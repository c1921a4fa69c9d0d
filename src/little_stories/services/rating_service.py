"""Rating use cases: submit, remove and read back a caller's rating."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from little_stories.core.security import Principal
from little_stories.repositories.rating_repo import RatingRepository
from little_stories.repositories.story_repo import StoryRepository
from little_stories.schemas.rating import MyRatingResponse, RatingRemove, RatingResult, RatingSubmit

from .errors import NotAuthenticated, NotFound, translate_db_errors, validate_fields

logger = logging.getLogger(__name__)

__all__ = ["submit_rating", "remove_rating", "get_my_rating"]

RATING_LOGIN_REQUIRED = "You must be logged in to rate stories."


def _ensure_visible(db: Session, principal: Principal, story_id: str) -> None:
    story = StoryRepository(db).get_by_id(story_id)
    if story is None or not (story.is_public or story.user_id == principal.user_id):
        raise NotFound("Story not found.")


def _result(
    repo: RatingRepository, story_id: str, user_rating: int, message: str
) -> RatingResult:
    aggregates = repo.aggregates(story_id)
    if aggregates is None:
        raise NotFound("Story not found.")
    avg_rating, rating_count = aggregates
    return RatingResult(
        message=message,
        story_id=story_id,
        user_rating=user_rating,
        avg_rating=avg_rating,
        rating_count=rating_count,
    )


def submit_rating(db: Session, principal: Principal | None, fields: Mapping[str, Any]) -> RatingResult:
    """Create or replace the caller's rating and return fresh aggregates."""
    data = validate_fields(RatingSubmit, fields)
    if principal is None:
        raise NotAuthenticated(RATING_LOGIN_REQUIRED)

    repo = RatingRepository(db)
    with translate_db_errors(db):
        _ensure_visible(db, principal, data.story_id)
        repo.upsert(user_id=principal.user_id, story_id=data.story_id, rating=data.rating)
        db.commit()

    logger.debug("User %s rated story %s: %d", principal.user_id, data.story_id, data.rating)
    return _result(repo, data.story_id, data.rating, "Rating saved.")


def remove_rating(db: Session, principal: Principal | None, fields: Mapping[str, Any]) -> RatingResult:
    """Delete the caller's rating; removing a missing rating is a no-op."""
    data = validate_fields(RatingRemove, fields)
    if principal is None:
        raise NotAuthenticated(RATING_LOGIN_REQUIRED)

    repo = RatingRepository(db)
    with translate_db_errors(db):
        _ensure_visible(db, principal, data.story_id)
        removed = repo.delete(user_id=principal.user_id, story_id=data.story_id)
        db.commit()

    if removed:
        logger.debug("User %s removed rating on story %s", principal.user_id, data.story_id)
    return _result(repo, data.story_id, 0, "Rating removed.")


def get_my_rating(db: Session, principal: Principal | None, story_id: str) -> MyRatingResponse:
    """Return the caller's rating of a story (0 when unrated)."""
    if principal is None:
        raise NotAuthenticated(RATING_LOGIN_REQUIRED)
    value = RatingRepository(db).get_value(user_id=principal.user_id, story_id=story_id)
    return MyRatingResponse(story_id=story_id, user_rating=value)
