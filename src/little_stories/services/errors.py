"""Error taxonomy shared by the form actions.

Every action failure is one of these exceptions. Endpoints translate them into
structured results or encoded redirects; nothing here is ever shown raw.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette import status

from little_stories.schemas.common import first_error_message

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class ActionError(RuntimeError):
    """Base exception for failures reported back to the submitting user."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = GENERIC_ERROR_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ActionError):
    """A submitted field violates its constraints. Raised before any database call."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input."


class NotAuthenticated(ActionError):
    """The action requires a signed-in caller."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "You must be logged in to do that."


class PermissionDenied(ActionError):
    """The caller lacks the role or ownership the action requires."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to do that."


class NotFound(ActionError):
    """The targeted row does not exist or is not visible to the caller."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class Conflict(ActionError):
    """A uniqueness rule rejected the write."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "That value is already in use."


class BackendError(ActionError):
    """The persistence layer refused or failed the operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "The database rejected the request. Please try again later."


ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_fields(model: type[ModelT], fields: Mapping[str, Any]) -> ModelT:
    """Validate submitted form fields, reporting the first violation."""
    try:
        return model.model_validate(dict(fields))
    except ValidationError as exc:
        raise ValidationFailed(first_error_message(exc)) from exc


@contextmanager
def translate_db_errors(
    db: Session,
    *,
    conflict_message: str | None = None,
    backend_message: str | None = None,
) -> Iterator[None]:
    """Roll back and convert SQLAlchemy failures into action errors.

    Integrity violations become `Conflict`; any other database error becomes
    `BackendError`. The raw cause is logged, never returned.
    """
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity violation: %s", exc.orig)
        raise Conflict(conflict_message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database error: %s", exc)
        raise BackendError(backend_message) from exc
