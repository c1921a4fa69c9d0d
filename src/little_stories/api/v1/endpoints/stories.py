# src/little_stories/api/v1/endpoints/stories.py
"""Story endpoints: listing, story pages, submission, claiming and owner edits."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from little_stories.api.responses import form_fields, raise_http, read_form, run_action
from little_stories.api.v1.dependencies import PrincipalDep, SessionDep
from little_stories.schemas.story import StoryDetail, StoryEditData, StoryListResponse
from little_stories.services import story_service
from little_stories.services.errors import ActionError

router = APIRouter(prefix="/stories", tags=["stories"])

STORY_FIELDS = ("title", "content", "genre", "is_public")


@router.get("", response_model=StoryListResponse)
def list_stories(db: SessionDep, principal: PrincipalDep, page: str | None = None) -> StoryListResponse:
    """Return one page of public stories, highest rated first."""
    return story_service.list_public_stories(db, principal, page)


@router.post("/new-story")
async def create_story(request: Request, db: SessionDep, principal: PrincipalDep) -> JSONResponse:
    """Publish a story as an author, or submit one as a guest."""
    form = await read_form(request)
    fields = form_fields(form, *STORY_FIELDS, lists=("genre",))
    submitter = story_service.submitter_for(principal)
    return run_action(lambda: story_service.create_story(db, submitter, fields))


@router.post("/claim-story")
async def claim_story(request: Request, db: SessionDep, principal: PrincipalDep) -> JSONResponse:
    """Redeem a guest claim token for the signed-in caller."""
    form = await read_form(request)
    fields = form_fields(form, "claim_token")
    return run_action(lambda: story_service.claim_story(db, principal, fields))


@router.get("/{story_id}", response_model=StoryDetail)
def read_story(story_id: str, db: SessionDep, principal: PrincipalDep) -> StoryDetail:
    """Return a public story, or a private one to its owner."""
    try:
        return story_service.get_story(db, principal, story_id)
    except ActionError as exc:
        raise_http(exc)


@router.get("/{story_id}/edit", response_model=StoryEditData)
def read_story_for_edit(story_id: str, db: SessionDep, principal: PrincipalDep) -> StoryEditData:
    """Return the owner's current story values for the edit form."""
    try:
        return story_service.get_story_for_edit(db, principal, story_id)
    except ActionError as exc:
        raise_http(exc)


@router.post("/{story_id}/edit")
async def update_story(
    story_id: str, request: Request, db: SessionDep, principal: PrincipalDep
) -> JSONResponse:
    """Save the owner's edits."""
    form = await read_form(request)
    fields = form_fields(form, *STORY_FIELDS, lists=("genre",))
    return run_action(lambda: story_service.update_story(db, principal, story_id, fields))


@router.post("/{story_id}/delete")
def delete_story(story_id: str, db: SessionDep, principal: PrincipalDep) -> JSONResponse:
    """Delete the owner's story and its ratings."""
    return run_action(lambda: story_service.delete_story(db, principal, story_id))
