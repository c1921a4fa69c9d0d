# src/little_stories/schemas/story.py
"""Story-related Pydantic schemas."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from little_stories.core.security import is_claim_token

from .common import ActionSuccess, Pagination, parse_flag

TITLE_MAX_LENGTH = 150
CONTENT_MIN_LENGTH = 50
CONTENT_MAX_LENGTH = 10_000


def normalize_genres(raw: object) -> list[str]:
    """Flatten repeated and comma-separated genre fields into a clean list."""
    if raw is None:
        return []
    values: Iterable[object] = [raw] if isinstance(raw, str) else raw  # type: ignore[assignment]
    genres: list[str] = []
    for value in values:
        for part in str(value).split(","):
            genre = part.strip()
            if genre and genre not in genres:
                genres.append(genre)
    return genres


def _check_title(value: str) -> str:
    title = value.strip()
    if not title:
        raise PydanticCustomError("title_required", "Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise PydanticCustomError(
            "title_too_long", "Title cannot exceed 150 characters"
        )
    return title


def _check_content(content: str) -> str:
    if len(content) < CONTENT_MIN_LENGTH:
        raise PydanticCustomError(
            "content_too_short", "Content must be at least 50 characters"
        )
    if len(content) > CONTENT_MAX_LENGTH:
        raise PydanticCustomError(
            "content_too_long", "Content cannot exceed 10,000 characters"
        )
    return content


def _coerce_visibility(value: object) -> object:
    if value is None or value == "":
        return True
    flag = parse_flag(value)
    if flag is None:
        raise PydanticCustomError("visibility_invalid", "Visibility must be public or private")
    return flag


class StoryCreate(BaseModel):
    """Fields submitted to create a story. Validated in declaration order."""

    model_config = ConfigDict(validate_default=True)

    title: str = ""
    content: str = ""
    genre: list[str] = Field(default_factory=list)
    is_public: bool = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_title(v)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _check_content(v)

    @field_validator("genre", mode="before")
    @classmethod
    def validate_genre(cls, v: object) -> list[str]:
        genres = normalize_genres(v)
        if not genres:
            raise PydanticCustomError("genre_required", "Select at least one genre")
        return genres

    @field_validator("is_public", mode="before")
    @classmethod
    def validate_is_public(cls, v: object) -> object:
        return _coerce_visibility(v)


class StoryUpdate(BaseModel):
    """Fields submitted when an owner edits a story; omitted genres and visibility are kept."""

    model_config = ConfigDict(validate_default=True)

    title: str = ""
    content: str = ""
    genre: list[str] | None = None
    is_public: bool | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_title(v)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _check_content(v)

    @field_validator("genre", mode="before")
    @classmethod
    def validate_genre(cls, v: object) -> list[str] | None:
        if v is None:
            return None
        genres = normalize_genres(v)
        if not genres:
            raise PydanticCustomError("genre_required", "Select at least one genre")
        return genres

    @field_validator("is_public", mode="before")
    @classmethod
    def validate_is_public(cls, v: object) -> object:
        if v is None or v == "":
            return None
        return _coerce_visibility(v)


class ClaimRequest(BaseModel):
    """Claim token submitted by a signed-in user."""

    model_config = ConfigDict(validate_default=True)

    claim_token: str = Field("", description="Token handed out with a guest submission")

    @field_validator("claim_token")
    @classmethod
    def validate_claim_token(cls, v: str) -> str:
        token = v.strip()
        if not token:
            raise PydanticCustomError("claim_token_required", "Claim token is required.")
        if not is_claim_token(token):
            raise PydanticCustomError("claim_token_format", "Invalid claim token format.")
        return token.lower()


class StoryCreateResult(ActionSuccess):
    """Result of a successful story submission."""

    story_id: str
    is_public: bool
    claim_token: str | None = Field(
        None,
        description="Returned once for guest submissions; keep it to claim the story later",
    )


class StoryUpdateResult(ActionSuccess):
    """Result of a successful story edit."""

    story_id: str


class ClaimResult(ActionSuccess):
    """Result of a successful claim."""

    story_id: str


class StoryCard(BaseModel):
    """Story summary shown in the home listing."""

    story_id: str
    title: str
    content: str
    genre: list[str]
    is_public: bool
    avg_rating: float
    rating_count: int
    created_at: datetime
    updated_at: datetime
    author_username: str | None = None
    user_rating_value: int = 0

    model_config = ConfigDict(from_attributes=True)


class StoryListResponse(Pagination):
    """One page of the public story listing."""

    stories: list[StoryCard]


class StoryDetail(StoryCard):
    """Full story as shown on its own page."""

    is_owner: bool = False
    is_guest_submission: bool = False
    was_edited: bool = False


class StoryEditData(BaseModel):
    """Current values pre-filled into the owner's edit form."""

    story_id: str
    title: str
    content: str
    genre: list[str]
    is_public: bool

    model_config = ConfigDict(from_attributes=True)
