"""Account actions delegated to the hosted auth provider."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from little_stories.repositories.user_repo import UserRepository
from little_stories.schemas.user import PASSWORD_TOO_SHORT, PasswordResetRequest, SignUpRequest

from .auth_provider import AuthProviderClient, AuthProviderError, AuthSession
from .errors import (
    GENERIC_ERROR_MESSAGE,
    ActionError,
    BackendError,
    Conflict,
    NotAuthenticated,
    ValidationFailed,
    validate_fields,
)
from .user_service import USERNAME_TAKEN, create_profile

logger = logging.getLogger(__name__)

__all__ = [
    "sign_up",
    "sign_in",
    "request_password_reset",
    "reset_password",
    "sign_out",
    "exchange_callback_code",
]

SIGN_UP_SUCCESS = "Thanks for signing up! Please check your email for a verification link."
ALREADY_REGISTERED = "This email address is already registered. Please try signing in."
BAD_CREDENTIALS = "Incorrect email or password. Please try again."
EMAIL_NOT_CONFIRMED = (
    "Please verify your email address before signing in. "
    "Check your inbox for the verification link."
)
RESET_LINK_SENT = "If an account exists for this email, a password reset link has been sent."
RESET_EMAIL_FAILED = "Could not send password reset email. Please check the address and try again."
PASSWORD_UPDATE_FAILED = (
    "Password update failed. The link may have expired or the password might not meet "
    "requirements."
)
PASSWORD_UPDATED = "Password updated successfully. Please sign in."
RESET_SESSION_REQUIRED = "Your reset link has expired. Please request a new one."
PROFILE_SETUP_FAILED = (
    "Your account was created but your profile could not be saved. Please contact support."
)


def _sign_up_message(exc: AuthProviderError) -> str:
    text = exc.message
    if "User already registered" in text or "already been registered" in text:
        return ALREADY_REGISTERED
    if "Password should be at least" in text:
        return PASSWORD_TOO_SHORT
    if "duplicate key value violates unique constraint" in text and "username" in text:
        return USERNAME_TAKEN
    return GENERIC_ERROR_MESSAGE


async def sign_up(
    db: Session,
    provider: AuthProviderClient,
    fields: Mapping[str, Any],
    *,
    email_redirect_to: str,
    code_challenge: str | None = None,
) -> str:
    """Register an account and its profile; return the confirmation message.

    The provider account is created first. If the profile row then cannot be
    written, the orphaned account id is logged and the caller gets a
    `BackendError` rather than a success message.
    """
    data = validate_fields(SignUpRequest, fields)
    if UserRepository(db).get_by_username(data.username) is not None:
        raise Conflict(USERNAME_TAKEN)

    try:
        outcome = await provider.sign_up(
            email=data.email,
            password=data.password,
            metadata={
                "username": data.username,
                "is_author": data.is_author,
                "is_reader": data.is_reader,
            },
            redirect_to=email_redirect_to,
            code_challenge=code_challenge,
        )
    except AuthProviderError as exc:
        logger.error("Auth sign up failed for %s: %s", data.email, exc.message)
        raise ValidationFailed(_sign_up_message(exc)) from exc

    if outcome.already_registered:
        logger.info("Sign up for already registered address %s", data.email)
        raise ValidationFailed(ALREADY_REGISTERED)

    try:
        create_profile(db, outcome.user_id, data)
    except ActionError as exc:
        logger.error(
            "Profile insert failed for new account %s (%s): %s",
            outcome.user_id,
            data.username,
            exc.message,
        )
        raise BackendError(PROFILE_SETUP_FAILED) from exc
    return SIGN_UP_SUCCESS


async def sign_in(provider: AuthProviderClient, fields: Mapping[str, Any]) -> AuthSession:
    """Verify credentials with the provider and return the issued session."""
    email = str(fields.get("email") or "").strip()
    password = str(fields.get("password") or "")
    if not email or not password:
        raise ValidationFailed("Email and password are required.")

    try:
        return await provider.sign_in_with_password(email=email, password=password)
    except AuthProviderError as exc:
        if exc.message == "Invalid login credentials":
            raise ValidationFailed(BAD_CREDENTIALS) from exc
        if "Email not confirmed" in exc.message:
            raise ValidationFailed(EMAIL_NOT_CONFIRMED) from exc
        raise BackendError(GENERIC_ERROR_MESSAGE) from exc


async def request_password_reset(
    provider: AuthProviderClient,
    fields: Mapping[str, Any],
    *,
    redirect_to: str,
    code_challenge: str | None = None,
) -> str:
    """Ask the provider to send a reset link; return the neutral confirmation."""
    email = str(fields.get("email") or "").strip()
    if not email:
        raise ValidationFailed("Email is required")

    try:
        await provider.send_password_recovery(
            email=email, redirect_to=redirect_to, code_challenge=code_challenge
        )
    except AuthProviderError as exc:
        logger.error("Forgot password failed: %s", exc.message)
        raise BackendError(RESET_EMAIL_FAILED) from exc
    return RESET_LINK_SENT


async def reset_password(
    provider: AuthProviderClient, access_token: str | None, fields: Mapping[str, Any]
) -> str:
    """Set a new password for the signed-in (recovery) session."""
    data = validate_fields(PasswordResetRequest, fields)
    if not access_token:
        raise NotAuthenticated(RESET_SESSION_REQUIRED)

    try:
        await provider.update_password(access_token=access_token, password=data.password)
    except AuthProviderError as exc:
        logger.error("Reset password failed: %s", exc.message)
        raise BackendError(PASSWORD_UPDATE_FAILED) from exc
    return PASSWORD_UPDATED


async def sign_out(provider: AuthProviderClient, access_token: str | None) -> None:
    """Revoke the provider session if there is one; failures are only logged."""
    if not access_token:
        return
    try:
        await provider.sign_out(access_token)
    except AuthProviderError as exc:
        logger.warning("Provider sign out failed: %s", exc.message)


async def exchange_callback_code(
    provider: AuthProviderClient, code: str, code_verifier: str | None = None
) -> AuthSession | None:
    """Trade an email-link code for a session; None if the provider refuses."""
    try:
        return await provider.exchange_code(code, code_verifier)
    except AuthProviderError as exc:
        logger.error("Auth callback code exchange failed: %s", exc.message)
        return None
