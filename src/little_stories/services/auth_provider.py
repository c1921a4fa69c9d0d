"""Client for the hosted auth provider.

Account creation, password checks, email confirmation and token issuance all
happen in a GoTrue-compatible REST service. This module wraps the handful of
endpoints the account actions need:

- sign up with email and password
- password and PKCE-code token grants
- password recovery emails and password updates
- logout
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from little_stories.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400


class AuthProviderError(RuntimeError):
    """Raised when the auth provider rejects a request or cannot be reached.

    `message` carries the provider's own error text, which callers translate
    before showing anything to a user.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class AuthProviderConfig:
    """Immutable configuration for auth provider calls."""

    base_url: str
    anon_key: str
    timeout_seconds: float


@dataclass(frozen=True)
class AuthSession:
    """Tokens issued by the provider after a successful sign-in."""

    access_token: str
    refresh_token: str | None
    expires_in: int | None
    user_id: str | None
    email: str | None


@dataclass(frozen=True)
class SignUpOutcome:
    """Account created by a sign-up request."""

    user_id: str
    email: str | None
    already_registered: bool = False


def load_auth_provider_config() -> AuthProviderConfig:
    """Build configuration object from global settings."""
    return AuthProviderConfig(
        base_url=settings.auth_provider_url.rstrip("/"),
        anon_key=settings.auth_provider_anon_key,
        timeout_seconds=float(settings.auth_http_timeout_seconds),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"Auth provider responded with {response.status_code}"
    if isinstance(payload, Mapping):
        for key in ("msg", "message", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Auth provider responded with {response.status_code}"


def _pkce_fields(code_challenge: str | None) -> dict[str, str]:
    if not code_challenge:
        return {}
    return {"code_challenge": code_challenge, "code_challenge_method": "s256"}


def _session_from(payload: Mapping[str, Any]) -> AuthSession:
    token = payload.get("access_token")
    if not token:
        raise AuthProviderError("Auth provider returned no access token")
    user = payload.get("user") or {}
    return AuthSession(
        access_token=str(token),
        refresh_token=payload.get("refresh_token"),
        expires_in=payload.get("expires_in"),
        user_id=user.get("id"),
        email=user.get("email"),
    )


class AuthProviderClient:
    """HTTP client wrapper for the hosted auth API."""

    def __init__(
        self,
        config: AuthProviderConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_auth_provider_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.config.anon_key}
        bearer = access_token or self.config.anon_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        params: Mapping[str, Any] | None = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        client = await self._ensure_client()
        try:
            response = await client.request(
                method,
                path,
                json=json_data,
                params=params,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as exc:
            logger.error("Auth provider request %s %s failed: %s", method, path, exc)
            raise AuthProviderError(f"Auth provider request failed: {exc}") from exc

        if response.status_code >= HTTP_BAD_REQUEST:
            message = _error_message(response)
            logger.warning(
                "Auth provider rejected %s %s (%s): %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise AuthProviderError(message, status_code=response.status_code)
        return response

    async def sign_up(
        self,
        *,
        email: str,
        password: str,
        metadata: Mapping[str, Any] | None = None,
        redirect_to: str | None = None,
        code_challenge: str | None = None,
    ) -> SignUpOutcome:
        """Register an account; the provider sends the confirmation email.

        With `code_challenge` the emailed link carries a PKCE code that
        `exchange_code` redeems together with the matching verifier.
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        body: dict[str, Any] = {"email": email, "password": password, "data": dict(metadata or {})}
        body.update(_pkce_fields(code_challenge))
        response = await self._request("POST", "/auth/v1/signup", json_data=body, params=params)
        payload = response.json()
        # Confirmed-email projects answer with a session; others with the bare user.
        user = payload.get("user") if isinstance(payload.get("user"), Mapping) else payload
        user_id = user.get("id") if isinstance(user, Mapping) else None
        if not user_id:
            raise AuthProviderError("Auth provider returned no user for sign up")
        # An address that is already registered gets an obfuscated user with no identities.
        identities = user.get("identities")
        return SignUpOutcome(
            user_id=str(user_id),
            email=user.get("email"),
            already_registered=isinstance(identities, list) and not identities,
        )

    async def sign_in_with_password(self, *, email: str, password: str) -> AuthSession:
        """Exchange email and password for an access token."""
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json_data={"email": email, "password": password},
        )
        return _session_from(response.json())

    async def exchange_code(self, code: str, code_verifier: str | None = None) -> AuthSession:
        """Exchange an email-link authorization code for a session."""
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "pkce"},
            json_data={"auth_code": code, "code_verifier": code_verifier or ""},
        )
        return _session_from(response.json())

    async def send_password_recovery(
        self,
        *,
        email: str,
        redirect_to: str | None = None,
        code_challenge: str | None = None,
    ) -> None:
        """Ask the provider to email a password reset link."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        body: dict[str, Any] = {"email": email}
        body.update(_pkce_fields(code_challenge))
        await self._request("POST", "/auth/v1/recover", json_data=body, params=params)

    async def update_password(self, *, access_token: str, password: str) -> None:
        """Set a new password for the account owning `access_token`."""
        await self._request(
            "PUT",
            "/auth/v1/user",
            json_data={"password": password},
            access_token=access_token,
        )

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind `access_token`."""
        await self._request("POST", "/auth/v1/logout", access_token=access_token)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _AuthProviderClientSingleton:
    """Singleton wrapper for AuthProviderClient."""

    _instance: AuthProviderClient | None = None

    @classmethod
    def get_instance(cls) -> AuthProviderClient:
        """Get or create the singleton AuthProviderClient instance."""
        if cls._instance is None:
            cls._instance = AuthProviderClient()
        return cls._instance


def get_auth_provider() -> AuthProviderClient:
    """Return a singleton auth provider client instance."""
    return _AuthProviderClientSingleton.get_instance()
