# src/little_stories/services/__init__.py
"""Business logic services for the Little Stories application."""

from .auth_provider import AuthProviderClient, AuthProviderError, get_auth_provider
from .errors import (
    ActionError,
    BackendError,
    Conflict,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)

__all__ = [
    "AuthProviderClient",
    "AuthProviderError",
    "get_auth_provider",
    "ActionError",
    "BackendError",
    "Conflict",
    "NotAuthenticated",
    "NotFound",
    "PermissionDenied",
    "ValidationFailed",
]
