"""Token utilities: guest claim tokens, PKCE verifiers and provider-issued access tokens."""
from __future__ import annotations

import base64
import hashlib
import re
import secrets
import uuid
from dataclasses import dataclass

from jose import JWTError, jwt

from little_stories.core.settings import settings

CLAIM_TOKEN_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class InvalidAccessToken(ValueError):
    """Raised when an access token cannot be verified."""


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as asserted by a verified access token."""

    user_id: str
    email: str | None = None


def generate_claim_token() -> str:
    """Return a fresh random (version 4) UUID string."""
    return str(uuid.uuid4())


def is_claim_token(value: str) -> bool:
    """Return True if `value` has the canonical 8-4-4-4-12 UUID shape."""
    return bool(CLAIM_TOKEN_PATTERN.match(value))


def generate_code_verifier() -> str:
    """Return a random PKCE code verifier (64 URL-safe characters)."""
    return secrets.token_urlsafe(48)


def code_challenge_for(verifier: str) -> str:
    """Return the S256 code challenge for `verifier`: unpadded base64url of its SHA-256."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def decode_access_token(token: str) -> Principal:
    """Verify an access token and return the principal it identifies.

    Args:
        token: Encoded JWT issued by the auth provider.

    Returns:
        Principal carrying the token subject as user id.

    Raises:
        InvalidAccessToken: If the signature, expiry, audience or subject is invalid.
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as err:
        raise InvalidAccessToken("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise InvalidAccessToken("Could not validate credentials")
    return Principal(user_id=str(subject), email=payload.get("email"))
