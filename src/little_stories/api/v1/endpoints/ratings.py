# src/little_stories/api/v1/endpoints/ratings.py
"""Rating endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from little_stories.api.responses import form_fields, raise_http, read_form, run_action
from little_stories.api.v1.dependencies import PrincipalDep, SessionDep
from little_stories.schemas.rating import MyRatingResponse
from little_stories.services import rating_service
from little_stories.services.errors import ActionError

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("")
async def submit_rating(request: Request, db: SessionDep, principal: PrincipalDep) -> JSONResponse:
    """Rate a story 1-5, replacing any earlier rating by the caller."""
    form = await read_form(request)
    fields = form_fields(form, "story_id", "rating")
    return run_action(lambda: rating_service.submit_rating(db, principal, fields))


@router.post("/remove")
async def remove_rating(request: Request, db: SessionDep, principal: PrincipalDep) -> JSONResponse:
    """Clear the caller's rating of a story."""
    form = await read_form(request)
    fields = form_fields(form, "story_id")
    return run_action(lambda: rating_service.remove_rating(db, principal, fields))


@router.get("/{story_id}/mine", response_model=MyRatingResponse)
def read_my_rating(story_id: str, db: SessionDep, principal: PrincipalDep) -> MyRatingResponse:
    try:
        return rating_service.get_my_rating(db, principal, story_id)
    except ActionError as exc:
        raise_http(exc)
