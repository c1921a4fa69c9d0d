"""Rating-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from little_stories.models.rating import MAX_RATING, MIN_RATING

from .common import ActionSuccess

RATING_RANGE_MESSAGE = "Rating must be a whole number between 1 and 5."


def _require_story_id(value: str) -> str:
    story_id = value.strip()
    if not story_id:
        raise PydanticCustomError("story_id_required", "Story ID is required.")
    return story_id


class RatingSubmit(BaseModel):
    """Star rating submitted for a story."""

    model_config = ConfigDict(validate_default=True)

    story_id: str = ""
    rating: int = Field(0, description="Whole number of stars between 1 and 5")

    @field_validator("story_id")
    @classmethod
    def validate_story_id(cls, v: str) -> str:
        return _require_story_id(v)

    @field_validator("rating", mode="before")
    @classmethod
    def validate_rating(cls, v: object) -> int:
        """Accept integers or their decimal string form; reject anything else."""
        if isinstance(v, bool):
            raise PydanticCustomError("rating_range", RATING_RANGE_MESSAGE)
        if isinstance(v, str):
            text = v.strip()
            if not text.lstrip("-").isdigit():
                raise PydanticCustomError("rating_range", RATING_RANGE_MESSAGE)
            v = int(text)
        if not isinstance(v, int) or not MIN_RATING <= v <= MAX_RATING:
            raise PydanticCustomError("rating_range", RATING_RANGE_MESSAGE)
        return v


class RatingRemove(BaseModel):
    """Request to clear the caller's rating of a story."""

    model_config = ConfigDict(validate_default=True)

    story_id: str = ""

    @field_validator("story_id")
    @classmethod
    def validate_story_id(cls, v: str) -> str:
        return _require_story_id(v)


class RatingResult(ActionSuccess):
    """Rating state after a submit or remove, with fresh aggregates."""

    story_id: str
    user_rating: int = Field(..., description="Caller's rating, 0 when none")
    avg_rating: float
    rating_count: int


class MyRatingResponse(BaseModel):
    """The caller's current rating of one story."""

    story_id: str
    user_rating: int = 0
