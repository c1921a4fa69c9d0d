"""Shared Pydantic schemas and helpers for form-style actions."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, ValidationError

TRUTHY = frozenset({"true", "on", "1", "yes"})
FALSY = frozenset({"false", "off", "0", "no"})


def first_error_message(exc: ValidationError) -> str:
    """Return the message of the first violated constraint."""
    errors = exc.errors()
    if not errors:
        return "Invalid input."
    return str(errors[0]["msg"])


def parse_flag(value: object) -> bool | None:
    """Interpret a submitted flag value.

    Returns None when the value is not a recognised spelling of true or false.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUTHY:
            return True
        if lowered in FALSY:
            return False
    return None


class ActionFailure(BaseModel):
    """Structured result of a failed action."""

    success: Literal[False] = False
    error: str = Field(..., description="User-facing error message")


class ActionSuccess(BaseModel):
    """Structured result of a successful action."""

    success: Literal[True] = True
    message: str = Field(..., description="User-facing confirmation")


class Pagination(BaseModel):
    """Page position for offset-paginated listings."""

    page: int
    per_page: int
    total: int
    total_pages: int
