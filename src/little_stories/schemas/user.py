"""User-related Pydantic schemas."""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from .common import ActionSuccess
from .story import StoryCard

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
BIO_MAX_LENGTH = 500
PASSWORD_MIN_LENGTH = 6

PASSWORD_TOO_SHORT = "Password must be at least 6 characters long."


def check_username(value: str) -> str:
    """Trim a username and enforce the length and character rules."""
    username = value.strip()
    if len(username) < USERNAME_MIN_LENGTH:
        raise PydanticCustomError(
            "username_too_short", "Username must be at least 3 characters"
        )
    if len(username) > USERNAME_MAX_LENGTH:
        raise PydanticCustomError(
            "username_too_long", "Username cannot exceed 50 characters"
        )
    if not USERNAME_PATTERN.match(username):
        raise PydanticCustomError(
            "username_charset",
            "Username can only contain letters, numbers, and underscores",
        )
    return username


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's own profile."""

    model_config = ConfigDict(validate_default=True)

    username: str = Field("", description="Unique handle (3-50 letters, digits, underscores)")
    bio: str | None = Field(None, description="Optional bio, at most 500 characters")
    is_author: bool = False
    is_reader: bool = False

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return check_username(v)

    @field_validator("bio")
    @classmethod
    def validate_bio(cls, v: str | None) -> str | None:
        """Blank bios are stored as null."""
        if v is None:
            return None
        bio = v.strip()
        if len(bio) > BIO_MAX_LENGTH:
            raise PydanticCustomError("bio_too_long", "Bio cannot exceed 500 characters")
        return bio or None

    @model_validator(mode="after")
    def require_role(self) -> "ProfileUpdate":
        if not (self.is_author or self.is_reader):
            raise PydanticCustomError("role_required", "You must select at least one role.")
        return self


class SignUpRequest(BaseModel):
    """Fields of the sign-up form."""

    email: str
    password: str
    username: str
    is_author: bool = False
    is_reader: bool = False

    @model_validator(mode="before")
    @classmethod
    def require_credentials(cls, data: Any) -> Any:
        if isinstance(data, dict):
            username = str(data.get("username") or "").strip()
            if not data.get("email") or not data.get("password") or not username:
                raise PydanticCustomError(
                    "credentials_required",
                    "Username, email, and password are required.",
                )
        return data

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError("password_too_short", PASSWORD_TOO_SHORT)
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return check_username(v)

    @model_validator(mode="after")
    def require_role(self) -> "SignUpRequest":
        if not (self.is_author or self.is_reader):
            raise PydanticCustomError(
                "role_required", "Please select at least one role (Author or Reader)."
            )
        return self


class PasswordResetRequest(BaseModel):
    """New password submitted from the reset form."""

    password: str
    confirm_password: str = Field(..., alias="confirmPassword")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def check_passwords(cls, data: Any) -> Any:
        if isinstance(data, dict):
            password = data.get("password") or ""
            confirm = data.get("confirmPassword") or data.get("confirm_password") or ""
            if not password or not confirm:
                raise PydanticCustomError(
                    "password_required", "Password and confirm password are required"
                )
            if password != confirm:
                raise PydanticCustomError("password_mismatch", "Passwords do not match")
            if len(password) < PASSWORD_MIN_LENGTH:
                raise PydanticCustomError("password_too_short", PASSWORD_TOO_SHORT)
        return data


class ProfileUpdateResult(ActionSuccess):
    """Result of a successful profile update."""

    updated_username: str


class ProfileResponse(BaseModel):
    """Profile data as shown in the profile edit form."""

    user_id: str
    username: str
    bio: str | None = None
    is_author: bool
    is_reader: bool

    model_config = ConfigDict(from_attributes=True)


class ProfileStory(StoryCard):
    """One story in a profile's story list."""

    was_edited: bool = False


class ProfilePage(BaseModel):
    """Profile page data: the profile and the stories the viewer may see."""

    profile: ProfileResponse
    is_owner: bool
    stories: list[ProfileStory]


class SessionResponse(BaseModel):
    """Navigation display of the current caller."""

    authenticated: bool
    user_id: str | None = None
    username: str | None = None
    is_author: bool = False
