# src/little_stories/api/v1/endpoints/auth.py
"""Account endpoints: sign up, sign in, password recovery and sign out.

Every action answers with a 303 redirect back to a site page carrying an
`error` or `success` message, the way an HTML form submission expects.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import RedirectResponse

from little_stories.api.responses import (
    checkbox,
    encoded_redirect,
    form_fields,
    read_form,
    run_redirect_action,
    site_path,
)
from little_stories.api.v1.dependencies import AccessTokenDep, AuthProviderDep, SessionDep
from little_stories.core.security import code_challenge_for, generate_code_verifier
from little_stories.core.settings import settings
from little_stories.services import auth_service
from little_stories.services.auth_provider import AuthSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

CODE_VERIFIER_COOKIE_SUFFIX = "-code-verifier"
# Email links are honoured for an hour by the provider.
CODE_VERIFIER_MAX_AGE = 60 * 60


def _code_verifier_cookie() -> str:
    return settings.session_cookie_name + CODE_VERIFIER_COOKIE_SUFFIX


def _remember_code_verifier(response: RedirectResponse, verifier: str) -> RedirectResponse:
    response.set_cookie(
        _code_verifier_cookie(),
        verifier,
        max_age=CODE_VERIFIER_MAX_AGE,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


def _redirect_with_session(path: str, session: AuthSession) -> RedirectResponse:
    response = RedirectResponse(site_path(path), status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


def _callback_url(request: Request, next_path: str | None = None) -> str:
    url = str(request.url_for("auth_callback"))
    if next_path:
        url = f"{url}?next={next_path}"
    return url


@router.post("/sign-up")
async def sign_up(
    request: Request, db: SessionDep, provider: AuthProviderDep
) -> RedirectResponse:
    """Create an account and profile; the provider emails a verification link."""
    form = await read_form(request)
    fields = form_fields(form, "email", "password", "username")
    fields["is_author"] = checkbox(form, "is_author")
    fields["is_reader"] = checkbox(form, "is_reader")
    verifier = generate_code_verifier()

    async def action() -> RedirectResponse:
        message = await auth_service.sign_up(
            db,
            provider,
            fields,
            email_redirect_to=_callback_url(request),
            code_challenge=code_challenge_for(verifier),
        )
        return _remember_code_verifier(encoded_redirect("success", "/sign-up", message), verifier)

    return await run_redirect_action(action, "/sign-up")


@router.post("/sign-in")
async def sign_in(request: Request, provider: AuthProviderDep) -> RedirectResponse:
    """Sign in with email and password and start a cookie session."""
    form = await read_form(request)
    fields = form_fields(form, "email", "password")

    async def action() -> RedirectResponse:
        session = await auth_service.sign_in(provider, fields)
        return _redirect_with_session("/", session)

    return await run_redirect_action(action, "/sign-in")


@router.post("/forgot-password")
async def forgot_password(request: Request, provider: AuthProviderDep) -> RedirectResponse:
    """Send a password reset link if the address belongs to an account."""
    form = await read_form(request)
    fields = form_fields(form, "email")
    verifier = generate_code_verifier()

    async def action() -> RedirectResponse:
        message = await auth_service.request_password_reset(
            provider,
            fields,
            redirect_to=_callback_url(request, "/reset-password"),
            code_challenge=code_challenge_for(verifier),
        )
        return _remember_code_verifier(
            encoded_redirect("success", "/forgot-password", message), verifier
        )

    return await run_redirect_action(action, "/forgot-password")


@router.post("/reset-password")
async def reset_password(
    request: Request, provider: AuthProviderDep, access_token: AccessTokenDep
) -> RedirectResponse:
    """Set a new password for the recovery session."""
    form = await read_form(request)
    fields = form_fields(form, "password", "confirmPassword")

    async def action() -> RedirectResponse:
        message = await auth_service.reset_password(provider, access_token, fields)
        return encoded_redirect("success", "/sign-in", message)

    return await run_redirect_action(action, "/reset-password")


@router.post("/sign-out")
async def sign_out(provider: AuthProviderDep, access_token: AccessTokenDep) -> RedirectResponse:
    """End the provider session and clear the session cookie."""
    await auth_service.sign_out(provider, access_token)
    response = RedirectResponse(site_path("/"), status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/callback", name="auth_callback")
async def auth_callback(
    request: Request,
    provider: AuthProviderDep,
    code: str | None = None,
    next_path: Annotated[str | None, Query(alias="next")] = None,
) -> RedirectResponse:
    """Complete an email link sign-in and continue to `next`."""
    if not code:
        logger.warning("Auth callback accessed without code")
        return RedirectResponse(
            site_path("/sign-in?error=invalid_callback"),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    verifier = request.cookies.get(_code_verifier_cookie())
    session = await auth_service.exchange_callback_code(provider, code, verifier)
    if session is None:
        response = RedirectResponse(
            site_path("/sign-in?error=auth_callback_failed"),
            status_code=status.HTTP_303_SEE_OTHER,
        )
        response.delete_cookie(_code_verifier_cookie())
        return response

    # Only same-site paths; "//host" would leave the site.
    target = (
        next_path
        if next_path and next_path.startswith("/") and not next_path.startswith("//")
        else "/"
    )
    response = _redirect_with_session(target, session)
    # The verifier is single use.
    response.delete_cookie(_code_verifier_cookie())
    return response
