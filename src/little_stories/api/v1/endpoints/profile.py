# src/little_stories/api/v1/endpoints/profile.py
"""Profile endpoints for reading and editing user profiles."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from little_stories.api.responses import checkbox, form_fields, raise_http, read_form, run_action
from little_stories.api.v1.dependencies import PrincipalDep, SessionDep
from little_stories.schemas.user import ProfilePage, ProfileResponse
from little_stories.services import user_service
from little_stories.services.errors import ActionError

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/me", response_model=ProfileResponse)
def read_own_profile(db: SessionDep, principal: PrincipalDep) -> ProfileResponse:
    """Return the caller's profile for the edit form."""
    try:
        return user_service.get_own_profile(db, principal)
    except ActionError as exc:
        raise_http(exc)


@router.post("/edit")
async def update_profile(request: Request, db: SessionDep, principal: PrincipalDep) -> JSONResponse:
    """Update the caller's username, bio and roles."""
    form = await read_form(request)
    fields = form_fields(form, "username", "bio")
    fields["is_author"] = checkbox(form, "is_author")
    fields["is_reader"] = checkbox(form, "is_reader")
    return run_action(lambda: user_service.update_profile(db, principal, fields))


@router.get("/{username}", response_model=ProfilePage)
def read_profile(username: str, db: SessionDep, principal: PrincipalDep) -> ProfilePage:
    """Return a profile with the stories the viewer may see."""
    try:
        return user_service.get_profile_page(db, principal, username)
    except ActionError as exc:
        raise_http(exc)
