"""Shared API dependencies for authentication and common functionality."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from little_stories.core.security import InvalidAccessToken, Principal, decode_access_token
from little_stories.core.settings import settings
from little_stories.db.session import get_db
from little_stories.services.auth_provider import AuthProviderClient, get_auth_provider

logger = logging.getLogger(__name__)

# Optional so anonymous callers reach guest-capable actions.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_access_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the caller's raw access token from the Bearer header or session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


AccessTokenDep = Annotated[str | None, Depends(get_access_token)]


def get_optional_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal | None:
    """Resolve the caller, or None for anonymous requests.

    An invalid Bearer token is rejected outright. An invalid or expired session
    cookie is treated as no session at all.

    Raises:
        HTTPException: If an explicit Bearer token fails verification.
    """
    if credentials is not None:
        try:
            return decode_access_token(credentials.credentials)
        except InvalidAccessToken as err:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
            ) from err

    cookie = request.cookies.get(settings.session_cookie_name)
    if not cookie:
        return None
    try:
        return decode_access_token(cookie)
    except InvalidAccessToken:
        logger.debug("Ignoring invalid session cookie")
        return None


# Type alias for the (possibly anonymous) caller
PrincipalDep = Annotated[Principal | None, Depends(get_optional_principal)]

AuthProviderDep = Annotated[AuthProviderClient, Depends(get_auth_provider)]
