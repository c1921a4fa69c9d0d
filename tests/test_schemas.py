"""Validation rules of the form schemas and the helpers behind them."""

import pytest
from pydantic import ValidationError

from little_stories.schemas import (
    ClaimRequest,
    PasswordResetRequest,
    ProfileUpdate,
    RatingSubmit,
    StoryCreate,
    StoryUpdate,
)
from little_stories.schemas.common import first_error_message, parse_flag
from little_stories.schemas.story import normalize_genres

BODY = "x" * 60


def _message(model, data) -> str:
    with pytest.raises(ValidationError) as exc_info:
        model.model_validate(data)
    return first_error_message(exc_info.value)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Fantasy", ["Fantasy"]),
        ("Fantasy, Horror ,", ["Fantasy", "Horror"]),
        (["Fable", "Fable,Myth", " "], ["Fable", "Myth"]),
        (None, []),
    ],
)
def test_normalize_genres(raw, expected) -> None:
    assert normalize_genres(raw) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [("on", True), ("TRUE", True), ("0", False), ("off", False), (True, True), ("maybe", None), (None, None)],
)
def test_parse_flag(value, expected) -> None:
    assert parse_flag(value) is expected


class TestStoryCreate:
    def test_title_trimmed_content_kept_verbatim(self) -> None:
        story = StoryCreate.model_validate(
            {"title": "  Tide  ", "content": f"  {BODY}  ", "genre": "Sea, Myth", "is_public": "false"}
        )
        assert story.title == "Tide"
        assert story.content == f"  {BODY}  "
        assert story.genre == ["Sea", "Myth"]
        assert story.is_public is False

    def test_visibility_defaults_public(self) -> None:
        story = StoryCreate.model_validate({"title": "Tide", "content": BODY, "genre": ["Sea"]})
        assert story.is_public is True

    def test_title_checked_before_content(self) -> None:
        assert _message(StoryCreate, {"content": "short"}) == "Title is required"

    def test_content_length_counts_surrounding_whitespace(self) -> None:
        content = " " + "x" * 48 + " "
        story = StoryCreate.model_validate({"title": "T", "content": content, "genre": "A"})
        assert story.content == content

    def test_content_bounds(self) -> None:
        assert _message(StoryCreate, {"title": "T", "content": "x" * 49, "genre": "A"}) == (
            "Content must be at least 50 characters"
        )
        assert _message(StoryCreate, {"title": "T", "content": "x" * 10_001, "genre": "A"}) == (
            "Content cannot exceed 10,000 characters"
        )

    def test_title_length(self) -> None:
        assert _message(StoryCreate, {"title": "t" * 151, "content": BODY, "genre": "A"}) == (
            "Title cannot exceed 150 characters"
        )

    def test_genre_required(self) -> None:
        assert _message(StoryCreate, {"title": "T", "content": BODY, "genre": " , "}) == (
            "Select at least one genre"
        )

    def test_bad_visibility(self) -> None:
        assert _message(
            StoryCreate, {"title": "T", "content": BODY, "genre": "A", "is_public": "sometimes"}
        ) == "Visibility must be public or private"


def test_story_update_keeps_genres_and_visibility_when_absent() -> None:
    update = StoryUpdate.model_validate({"title": "T", "content": BODY})
    assert update.genre is None
    assert update.is_public is None
    assert StoryUpdate.model_validate({"title": "T", "content": BODY, "is_public": "off"}).is_public is False


class TestClaimRequest:
    def test_token_normalized(self) -> None:
        token = "1B4E28BA-2FA1-4D2E-883F-0016D3CCA427"
        assert ClaimRequest.model_validate({"claim_token": f" {token} "}).claim_token == token.lower()

    def test_missing_token(self) -> None:
        assert _message(ClaimRequest, {}) == "Claim token is required."


class TestRatingSubmit:
    @pytest.mark.parametrize("value", [1, "5", " 3 "])
    def test_accepts_whole_stars(self, value) -> None:
        assert 1 <= RatingSubmit.model_validate({"story_id": "s", "rating": value}).rating <= 5

    @pytest.mark.parametrize("value", [0, 6, "2.5", True, "-1"])
    def test_rejects_others(self, value) -> None:
        assert _message(RatingSubmit, {"story_id": "s", "rating": value}) == (
            "Rating must be a whole number between 1 and 5."
        )

    def test_story_id_required(self) -> None:
        assert _message(RatingSubmit, {"rating": "3"}) == "Story ID is required."


class TestProfileAndPassword:
    def test_username_too_short(self) -> None:
        assert _message(ProfileUpdate, {"username": "ab", "is_reader": True}) == (
            "Username must be at least 3 characters"
        )

    def test_username_too_long(self) -> None:
        assert _message(ProfileUpdate, {"username": "a" * 51, "is_reader": True}) == (
            "Username cannot exceed 50 characters"
        )

    def test_reset_password_requires_both(self) -> None:
        assert _message(PasswordResetRequest, {"password": "secret123"}) == (
            "Password and confirm password are required"
        )

    def test_reset_password_length(self) -> None:
        assert _message(PasswordResetRequest, {"password": "abc", "confirmPassword": "abc"}) == (
            "Password must be at least 6 characters long."
        )
